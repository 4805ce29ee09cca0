"""rsyslog cookbook."""
