"""
Error taxonomy for cookplan.

Every error aborts plan production. No partial plan is ever handed to a
backend.
"""

from typing import Iterable


class CookplanError(Exception):
    """Base class for all cookplan errors."""


class ConfigurationError(CookplanError):
    """Raised when node attributes are missing, malformed or contradictory."""


class UnknownPlatformError(CookplanError):
    """Raised when a cookbook has no profile for the node's platform family."""

    def __init__(self, family: str, cookbook: str = ""):
        self.family = family
        self.cookbook = cookbook
        where = f" in cookbook {cookbook!r}" if cookbook else ""
        super().__init__(f"No platform profile for family {family!r}{where}")


class UnknownRecipeError(CookplanError):
    """Raised when a run list names a recipe that is not registered."""


class NotificationError(CookplanError):
    """Raised when a notification points at a missing or incompatible resource."""


class CycleError(CookplanError):
    """Raised when the notification graph is not acyclic."""

    def __init__(self, members: Iterable[str]):
        self.members = tuple(members)
        super().__init__("Notification cycle between: " + ", ".join(self.members))
