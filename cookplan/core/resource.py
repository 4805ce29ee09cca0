"""
Core resource abstraction for cookplan.

All intents (Package, Directory, Template, Service, Execute) inherit from
Resource. An intent only describes desired state. Comparing it against
state observed by a backend follows the Check/Plan pattern:

1. Observe: the backend reports current state as a dict
2. Diff: compare against desired_state()
3. Apply: left to the backend
"""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Action(Enum):
    """Resource actions a backend performs during apply."""
    NONE = "none"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class Change:
    """Represents a single property change."""
    field: str
    from_value: Any
    to_value: Any

    def __str__(self):
        return f"{self.field}: {self.from_value} → {self.to_value}"


@dataclass(frozen=True)
class ResourcePlan:
    """
    Outcome of diffing one intent against observed state.

    Similar to Terraform's plan, shows what will change.
    """
    action: Action
    changes: Tuple[Change, ...] = ()
    reason: str = ""

    def __post_init__(self):
        object.__setattr__(self, "changes", tuple(self.changes))

    def has_changes(self) -> bool:
        """Check if plan has any changes."""
        return self.action != Action.NONE

    def __str__(self):
        if self.action == Action.NONE:
            return "No changes"

        lines = [f"Action: {self.action.value}"]
        if self.reason:
            lines.append(f"Reason: {self.reason}")
        for change in self.changes:
            lines.append(f"  {change}")
        return "\n".join(lines)


class NotifyAction(Enum):
    """Verbs a notification can trigger on its target."""
    RESTART = "restart"
    RELOAD = "reload"
    RUN = "run"


class Timing(Enum):
    """When a notification fires relative to its source changing."""
    IMMEDIATELY = "immediately"
    DELAYED = "delayed"


@dataclass(frozen=True)
class Notification:
    """
    Directed edge: a change to ``source`` triggers ``action`` on ``target``.

    Both ends are resource ids (``svc:rsyslog``, ``exec:import rsyslog manifest``).
    """
    source: str
    target: str
    action: NotifyAction
    timing: Timing = Timing.DELAYED

    def __post_init__(self):
        object.__setattr__(self, "action", NotifyAction(self.action))
        object.__setattr__(self, "timing", Timing(self.timing))

    def to_dict(self) -> Dict[str, str]:
        return {
            "source": self.source,
            "target": self.target,
            "action": self.action.value,
            "timing": self.timing.value,
        }

    def __str__(self):
        return f"{self.source} → {self.action.value} {self.target} ({self.timing.value})"


class Resource(ABC):
    """
    Base class for all resource intents.

    Subclasses are frozen dataclasses with at least a ``name`` field. Once
    built an intent never changes; redeclaring the same id replaces it.
    """

    name: str

    @property
    def id(self) -> str:
        """
        Unique resource identifier.

        Format: resource_type:name
        Example: template:/etc/rsyslog.conf, pkg:rsyslog
        """
        return f"{self.resource_type()}:{self.name}"

    @abstractmethod
    def resource_type(self) -> str:
        """Return resource type string (pkg, directory, template, svc, exec)."""

    @abstractmethod
    def desired_state(self) -> Dict[str, Any]:
        """
        Return desired state properties.

        Values of None are unmanaged and never produce a change.

        Example:
            {"exists": True, "content": "...", "mode": 0o644}
        """

    def diff(self, observed: Optional[Dict[str, Any]] = None) -> ResourcePlan:
        """
        Generate a plan by comparing desired state with observed state.

        Args:
            observed: State reported by a backend (None = not present)

        Returns:
            ResourcePlan describing changes
        """
        actual = dict(observed or {})
        desired = self.desired_state()

        exists = actual.get("exists", False)
        should_exist = desired.get("exists", True)

        if not exists and should_exist:
            changes = [
                Change(key, None, value)
                for key, value in desired.items()
                if key != "exists" and value is not None
            ]
            return ResourcePlan(Action.CREATE, changes, "Resource does not exist")
        elif exists and not should_exist:
            changes = [
                Change(key, value, None)
                for key, value in actual.items()
                if key != "exists"
            ]
            return ResourcePlan(Action.DELETE, changes, "Resource should not exist")
        elif not exists and not should_exist:
            return ResourcePlan(Action.NONE, reason="Resource correctly absent")

        changes = self._detect_changes(desired, actual)
        if changes:
            return ResourcePlan(Action.UPDATE, changes, "Properties differ from desired state")
        return ResourcePlan(Action.NONE, reason="No changes needed")

    def _detect_changes(self, desired: Dict[str, Any], actual: Dict[str, Any]) -> List[Change]:
        changes = []

        for key, desired_value in desired.items():
            if key == "exists" or desired_value is None:
                continue

            actual_value = actual.get(key)
            if actual_value != desired_value:
                changes.append(Change(key, actual_value, desired_value))

        return changes

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict form used for JSON output."""
        data = {"id": self.id, "type": self.resource_type()}
        for key, value in asdict(self).items():
            if key == "mode" and value is not None:
                value = f"{value:04o}"
            elif isinstance(value, tuple):
                value = list(value)
            data[key] = value
        return data

    def __str__(self):
        return self.id
