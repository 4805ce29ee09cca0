"""
ConvergencePlanner - turn derived intents and edges into an ExecutionPlan.

The planner:
1. Deduplicates intents (last declaration wins, first position kept)
2. Validates notification edges
3. Orders intents topologically over the notification graph
4. Reduces the edges to the minimal partial order a backend must respect

It also answers which notifications fire for a set of changed resources,
and diffs the plan against observed state.
"""

import heapq
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from cookplan.core.errors import CycleError, NotificationError
from cookplan.core.policy import Derivation
from cookplan.core.resource import Notification, NotifyAction, Resource, ResourcePlan, Timing
from cookplan.logging import get_logger
from cookplan.resources.exec import Execute
from cookplan.resources.service import Service

logger = get_logger(__name__)


@dataclass(frozen=True)
class ConvergenceReport:
    """
    Result of reconciling a plan against observed state.

    Contains per-resource plans, the ids that change and the notifications
    that fire because of them.
    """
    plans: Tuple[Tuple[str, ResourcePlan], ...] = ()
    changed: Tuple[str, ...] = ()
    triggered: Tuple[Notification, ...] = ()

    @property
    def change_count(self) -> int:
        return len(self.changed)

    @property
    def has_changes(self) -> bool:
        return bool(self.changed) or bool(self.triggered)

    def plan_for(self, resource_id: str) -> Optional[ResourcePlan]:
        return dict(self.plans).get(resource_id)


@dataclass(frozen=True)
class ExecutionPlan:
    """
    Ordered intents plus the notification graph, handed to a backend.

    ``dependencies`` maps a resource id to the ids that must be handled
    before it. It is the transitive reduction of the notification graph, so
    resources without a path between them may run in any order.
    """
    resources: Tuple[Resource, ...]
    notifications: Tuple[Notification, ...] = ()
    dependencies: Mapping[str, FrozenSet[str]] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        # Read-only view; the partial order is fixed once planned
        frozen = {rid: frozenset(before) for rid, before in self.dependencies.items()}
        object.__setattr__(self, "dependencies", MappingProxyType(frozen))

    @property
    def ids(self) -> Tuple[str, ...]:
        return tuple(r.id for r in self.resources)

    def get(self, resource_id: str) -> Optional[Resource]:
        """Get resource by ID."""
        for resource in self.resources:
            if resource.id == resource_id:
                return resource
        return None

    def __contains__(self, resource_id: str) -> bool:
        return self.get(resource_id) is not None

    def __len__(self) -> int:
        return len(self.resources)

    def notifications_from(self, resource_id: str) -> Tuple[Notification, ...]:
        return tuple(n for n in self.notifications if n.source == resource_id)

    def notifications_to(self, resource_id: str) -> Tuple[Notification, ...]:
        return tuple(n for n in self.notifications if n.target == resource_id)

    def stages(self) -> Tuple[Tuple[str, ...], ...]:
        """
        Group resource ids into layers.

        Every id in a layer depends only on ids in earlier layers, so a
        backend may handle one layer's resources in parallel.
        """
        depth: Dict[str, int] = {}
        for resource_id in self.ids:
            before = self.dependencies.get(resource_id, frozenset())
            depth[resource_id] = max((depth[d] + 1 for d in before), default=0)

        layers: List[List[str]] = []
        for resource_id in self.ids:
            level = depth[resource_id]
            while len(layers) <= level:
                layers.append([])
            layers[level].append(resource_id)
        return tuple(tuple(layer) for layer in layers)

    def triggered(self, changed: Iterable[str]) -> Tuple[Notification, ...]:
        """
        Notifications that fire when the given resources change.

        Immediate notifications fire right after their source. Delayed ones
        are queued, de-duplicated and fire at the end. A notified target
        counts as changed itself, so chains propagate, and every edge comes
        after the edge that caused it. A restart of a service supersedes a
        reload of the same service.
        """
        changed_ids = set(changed)
        fired: List[Notification] = []
        queued: List[Notification] = []
        updated: Set[str] = set()

        def fire(resource_id: str) -> None:
            if resource_id in updated:
                return
            updated.add(resource_id)
            for edge in self.notifications_from(resource_id):
                if edge.timing == Timing.IMMEDIATELY:
                    fired.append(edge)
                    fire(edge.target)
                else:
                    queued.append(edge)

        for resource_id in self.ids:
            if resource_id in changed_ids:
                fire(resource_id)

        # Delayed notifications run in rounds; targets notified in one round
        # may queue further delayed notifications for the next.
        restarted: Set[str] = set()
        seen: Set[Tuple[str, NotifyAction]] = set()
        while queued:
            batch, queued = queued, []
            restarted.update(e.target for e in batch if e.action == NotifyAction.RESTART)
            for edge in batch:
                if edge.action == NotifyAction.RELOAD and edge.target in restarted:
                    continue
                key = (edge.target, edge.action)
                if key in seen:
                    continue
                seen.add(key)
                fired.append(edge)
                fire(edge.target)

        return tuple(fired)

    def immediate_chain(self, resource_id: str) -> Tuple[Notification, ...]:
        """
        Immediate notifications that follow a change to ``resource_id``.

        Only immediate edges are followed. Whatever a delayed edge would
        cause is left to triggered().
        """
        fired: List[Notification] = []
        visited: Set[str] = set()

        def walk(source: str) -> None:
            if source in visited:
                return
            visited.add(source)
            for edge in self.notifications_from(source):
                if edge.timing == Timing.IMMEDIATELY:
                    fired.append(edge)
                    walk(edge.target)

        walk(resource_id)
        return tuple(fired)

    def reconcile(self, observed: Mapping[str, Optional[Mapping[str, Any]]]) -> ConvergenceReport:
        """
        Diff every intent against state observed by a backend.

        Args:
            observed: resource id -> observed state (missing = not present)

        Returns:
            ConvergenceReport; with observed == desired nothing changes
        """
        plans = []
        changed = []
        for resource in self.resources:
            state = observed.get(resource.id)
            resource_plan = resource.diff(dict(state) if state is not None else None)
            plans.append((resource.id, resource_plan))
            if resource_plan.has_changes():
                changed.append(resource.id)

        return ConvergenceReport(
            plans=tuple(plans),
            changed=tuple(changed),
            triggered=self.triggered(changed),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict form used for JSON output."""
        return {
            "resources": [r.to_dict() for r in self.resources],
            "notifications": [n.to_dict() for n in self.notifications],
            "dependencies": {k: sorted(v) for k, v in sorted(self.dependencies.items())},
            "stages": [list(stage) for stage in self.stages()],
        }


class ConvergencePlanner:
    """
    Builds ExecutionPlans.

    Example:
        planner = ConvergencePlanner()
        execution_plan = planner.plan(intents, notifications)
        for stage in execution_plan.stages():
            ...
    """

    def plan(
        self,
        intents: Sequence[Resource],
        notifications: Iterable[Notification] = (),
    ) -> ExecutionPlan:
        """
        Produce an ExecutionPlan.

        Raises:
            NotificationError: dangling or mismatched edge
            CycleError: the notification graph has a cycle
        """
        resources = self._deduplicate(intents)
        edges = self._unique_edges(notifications)

        registry = {r.id: r for r in resources}
        for edge in edges:
            self._validate(edge, registry)

        ordered = self._order(resources, edges)
        dependencies = self._reduce(ordered, edges)

        logger.debug("Planned %d resources, %d notifications", len(ordered), len(edges))
        return ExecutionPlan(
            resources=tuple(ordered),
            notifications=tuple(edges),
            dependencies=dependencies,
        )

    def _deduplicate(self, intents: Sequence[Resource]) -> List[Resource]:
        """Redeclaring an id replaces it in place."""
        resources: List[Resource] = []
        position: Dict[str, int] = {}
        for resource in intents:
            if resource.id in position:
                logger.debug("Replacing %s with its later declaration", resource.id)
                resources[position[resource.id]] = resource
            else:
                position[resource.id] = len(resources)
                resources.append(resource)
        return resources

    def _unique_edges(self, notifications: Iterable[Notification]) -> List[Notification]:
        edges: List[Notification] = []
        seen: Set[Notification] = set()
        for edge in notifications:
            if edge not in seen:
                seen.add(edge)
                edges.append(edge)
        return edges

    def _validate(self, edge: Notification, registry: Mapping[str, Resource]) -> None:
        if edge.source not in registry:
            raise NotificationError(f"Notification from undeclared resource {edge.source}")

        target = registry.get(edge.target)
        if target is None:
            raise NotificationError(
                f"{edge.source} notifies undeclared resource {edge.target}"
            )

        if edge.action == NotifyAction.RUN:
            if not isinstance(target, Execute):
                raise NotificationError(f"Can not run {edge.target}: not an execute resource")
        else:
            if not isinstance(target, Service):
                raise NotificationError(
                    f"Can not {edge.action.value} {edge.target}: not a service"
                )
            if not target.can(edge.action.value):
                raise NotificationError(
                    f"Service {target.name} does not support {edge.action.value}"
                )

    def _order(self, resources: List[Resource], edges: List[Notification]) -> List[Resource]:
        """Kahn's algorithm, ties broken by declaration order."""
        index = {r.id: i for i, r in enumerate(resources)}
        successors: Dict[str, Set[str]] = {r.id: set() for r in resources}
        indegree = {r.id: 0 for r in resources}

        for edge in edges:
            if edge.source == edge.target:
                raise CycleError([edge.source])
            if edge.target not in successors[edge.source]:
                successors[edge.source].add(edge.target)
                indegree[edge.target] += 1

        ready = [index[rid] for rid, degree in indegree.items() if degree == 0]
        heapq.heapify(ready)

        ordered: List[Resource] = []
        while ready:
            resource = resources[heapq.heappop(ready)]
            ordered.append(resource)
            for successor in successors[resource.id]:
                indegree[successor] -= 1
                if indegree[successor] == 0:
                    heapq.heappush(ready, index[successor])

        if len(ordered) != len(resources):
            remaining = [r.id for r in resources if indegree[r.id] > 0]
            raise CycleError(remaining)

        return ordered

    def _reduce(
        self,
        ordered: List[Resource],
        edges: List[Notification],
    ) -> Dict[str, FrozenSet[str]]:
        """Transitive reduction of the edge set, as id -> predecessors."""
        successors: Dict[str, Set[str]] = {r.id: set() for r in ordered}
        for edge in edges:
            successors[edge.source].add(edge.target)

        def reachable(start: str, skip: str) -> Set[str]:
            # Everything reachable from start without using the direct edge to skip
            seen: Set[str] = set()
            stack = [s for s in successors[start] if s != skip]
            while stack:
                node = stack.pop()
                if node in seen:
                    continue
                seen.add(node)
                stack.extend(successors[node])
            return seen

        predecessors: Dict[str, Set[str]] = {}
        for source, targets in successors.items():
            for target in targets:
                if target in reachable(source, target):
                    continue
                predecessors.setdefault(target, set()).add(source)

        return {rid: frozenset(before) for rid, before in predecessors.items()}


def plan(intents, notifications: Iterable[Notification] = ()) -> ExecutionPlan:
    """
    Plan a Derivation or an (intents, notifications) pair.

    Example:
        execution_plan = plan(derive(snapshot))
    """
    if isinstance(intents, Derivation):
        intents, notifications = intents
    return ConvergencePlanner().plan(intents, notifications)
