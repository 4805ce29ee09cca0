"""
Package resource - declare system packages.

The package manager itself (apt, yum, pkgin, pkg) is the backend's concern.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from cookplan.core.resource import Resource

ENSURE_VALUES = ("present", "latest", "absent")


@dataclass(frozen=True)
class Package(Resource):
    """
    Package intent.

    Examples:
        Package("rsyslog")

        # Specific version (if supported by package manager)
        Package("rsyslog", version="5.8.6-1ubuntu8")

        # Ensure absent
        Package("sysklogd", ensure="absent")
    """

    name: str
    version: Optional[str] = None
    ensure: str = "present"

    def __post_init__(self):
        if self.ensure not in ENSURE_VALUES:
            raise ValueError(f"Invalid ensure for package {self.name}: {self.ensure!r}")

    def resource_type(self) -> str:
        return "pkg"

    def desired_state(self) -> Dict[str, Any]:
        """Return desired package state."""
        return {
            "exists": self.ensure in ("present", "latest"),
            "version": self.version,
        }
