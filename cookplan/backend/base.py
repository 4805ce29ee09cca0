"""
Base execution backend interface.

A backend inspects real system state and performs the changes an
ExecutionPlan asks for (packages, files, services, commands). cookplan only
ships a dry-run backend; real ones live outside this package.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from cookplan.core.planner import ExecutionPlan
from cookplan.core.resource import Notification, Resource, ResourcePlan
from cookplan.logging import get_logger

logger = get_logger(__name__)


class ExecutionBackend(ABC):
    """
    Abstract base class for convergence backends.

    Implementations:
    - DryRunBackend: record and print what would happen
    """

    @abstractmethod
    def inspect(self, resource: Resource) -> Optional[Dict[str, Any]]:
        """
        Report the current state of a resource.

        Returns:
            State dict comparable with resource.desired_state(), or None
            when the resource is absent
        """

    @abstractmethod
    def apply(self, resource: Resource, resource_plan: ResourcePlan) -> None:
        """
        Make the changes in ``resource_plan``.

        Raises:
            Exception if apply fails
        """

    @abstractmethod
    def notify(self, notification: Notification, target: Resource) -> None:
        """Run a notification action (restart, reload, run) on its target."""


@dataclass
class ApplyResult:
    """
    Result of a convergence run.

    Contains changed resource IDs, delivered notifications and errors.
    """
    changed_resources: List[str] = field(default_factory=list)
    notified: List[Notification] = field(default_factory=list)
    errors: List[Exception] = field(default_factory=list)
    duration: float = 0.0

    @property
    def success(self) -> bool:
        """Check if the run finished without errors."""
        return len(self.errors) == 0


def converge(plan: ExecutionPlan, backend: ExecutionBackend) -> ApplyResult:
    """
    Drive ``backend`` through ``plan``.

    Resources are handled in plan order. Immediate notifications that follow
    from a change are delivered right after it. Delayed ones, and whatever
    they cause, go once every resource has been handled. Failures are
    collected and the run carries on with the remaining resources.
    """
    result = ApplyResult()
    start_time = time.time()
    delivered: Set[Notification] = set()

    for resource in plan.resources:
        try:
            resource_plan = resource.diff(backend.inspect(resource))
        except Exception as e:
            result.errors.append(e)
            continue

        if not resource_plan.has_changes():
            continue

        try:
            backend.apply(resource, resource_plan)
        except Exception as e:
            result.errors.append(e)
            continue
        result.changed_resources.append(resource.id)

        for edge in plan.immediate_chain(resource.id):
            if edge not in delivered:
                _deliver(plan, backend, edge, result)
                delivered.add(edge)

    # Delayed notifications, and immediate ones they cause, in causal order
    for edge in plan.triggered(result.changed_resources):
        if edge not in delivered:
            _deliver(plan, backend, edge, result)
            delivered.add(edge)

    result.duration = time.time() - start_time
    logger.debug(
        "Converged %d resources, %d notifications, %d errors",
        len(result.changed_resources),
        len(result.notified),
        len(result.errors),
    )
    return result


def _deliver(plan: ExecutionPlan, backend: ExecutionBackend, edge: Notification, result: ApplyResult) -> None:
    try:
        backend.notify(edge, plan.get(edge.target))
        result.notified.append(edge)
    except Exception as e:
        result.errors.append(e)
