"""
Service resource - declare service lifecycle.

Supervision (systemd, upstart, SMF, init scripts) belongs to the backend.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from cookplan.core.resource import Resource, ResourcePlan

SERVICE_FEATURES = ("restart", "reload", "status")


@dataclass(frozen=True)
class Service(Resource):
    """
    Service intent.

    Examples:
        # Enabled at boot and running
        Service("rsyslog", running=True, enabled=True)

        # Legacy daemon that must not run
        Service("syslog", running=False, enabled=False)

        # Only disable, leave the running state alone
        Service("system-log", enabled=False)

    Restarts and reloads are never part of desired state. They are
    requested through notifications from other resources.
    """

    name: str
    running: Optional[bool] = None
    enabled: Optional[bool] = None
    supports: Tuple[str, ...] = SERVICE_FEATURES

    def __post_init__(self):
        unknown = set(self.supports) - set(SERVICE_FEATURES)
        if unknown:
            raise ValueError(f"Unknown service features for {self.name}: {sorted(unknown)}")
        object.__setattr__(self, "supports", tuple(self.supports))

    def resource_type(self) -> str:
        return "svc"

    def desired_state(self) -> Dict[str, Any]:
        """Return desired service state."""
        return {
            "exists": True,
            "running": self.running,
            "enabled": self.enabled,
        }

    def diff(self, observed: Optional[Dict[str, Any]] = None) -> ResourcePlan:
        # Services are assumed to exist; only running/enabled can drift.
        actual = {"running": None, "enabled": None}
        actual.update(observed or {})
        actual["exists"] = True
        return super().diff(actual)

    def can(self, feature: str) -> bool:
        """Check if the service supports restart, reload or status."""
        return feature in self.supports

    @property
    def actions(self) -> Tuple[str, ...]:
        """Chef-style action list, e.g. ("enable", "start") or ("stop", "disable")."""
        actions = []
        if self.enabled is True:
            actions.append("enable")
        if self.running is True:
            actions.append("start")
        if self.running is False:
            actions.append("stop")
        if self.enabled is False:
            actions.append("disable")
        return tuple(actions)
