"""
Dry-run backend - records and prints what a real backend would do.

Observed state comes from a mapping (for example a JSON file produced by an
inventory tool). Resources missing from it are treated as absent.
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple

from rich.console import Console

from cookplan.backend.base import ExecutionBackend
from cookplan.core.resource import Notification, Resource, ResourcePlan
from cookplan.logging import get_plan_logger


class DryRunBackend(ExecutionBackend):
    """
    Backend that never touches the system.

    Example:
        backend = DryRunBackend(observed={"pkg:rsyslog": {"exists": True}})
        result = converge(execution_plan, backend)
        backend.applied   # [(resource id, ResourcePlan), ...]
        backend.notified  # [Notification, ...]
    """

    def __init__(
        self,
        observed: Optional[Mapping[str, Optional[Mapping[str, Any]]]] = None,
        output: Optional[Console] = None,
    ):
        self.observed = dict(observed or {})
        self.log = get_plan_logger(__name__, output)
        self.applied: List[Tuple[str, ResourcePlan]] = []
        self.notified: List[Notification] = []

    def inspect(self, resource: Resource) -> Optional[Dict[str, Any]]:
        state = self.observed.get(resource.id)
        if state is None:
            self.log.debug("No observed state for %s, treating it as absent", resource.id)
            return None
        return dict(state)

    def apply(self, resource: Resource, resource_plan: ResourcePlan) -> None:
        self.applied.append((resource.id, resource_plan))
        self.log.action(resource_plan.action.value, resource.id, resource_plan.reason)
        for change in resource_plan.changes:
            if change.field == "content":
                self.log.dry_run(f"{resource.id}: content would be rewritten")
            else:
                self.log.dry_run(f"{resource.id}: {change}")

    def notify(self, notification: Notification, target: Resource) -> None:
        self.notified.append(notification)
        self.log.notification(notification.action.value, target.id, notification.source)
