"""elasticsearch cookbook."""
