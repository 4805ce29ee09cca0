"""
PolicyEngine - derive resource intents and notification edges from a snapshot.

Recipes are plain functions taking a RecipeContext:

    def default(ctx):
        rsyslog = ctx.node.rsyslog
        ctx.add(Package("rsyslog"))
        if rsyslog.use_relp:
            ctx.add(Package("rsyslog-relp"))

        conf = ctx.add(Template("/etc/rsyslog.conf", ...))
        ctx.notify(conf, "restart", "svc:rsyslog")

Derivation is pure. A recipe that raises aborts the whole run and nothing
is returned, so a backend never sees a partial result.
"""

from typing import Callable, Dict, List, Mapping, NamedTuple, Optional, Sequence, Set, Tuple, Union

from cookplan.core.attributes import AttributeSnapshot
from cookplan.core.errors import UnknownRecipeError
from cookplan.core.resource import Notification, NotifyAction, Resource, Timing
from cookplan.logging import get_logger

logger = get_logger(__name__)

Recipe = Callable[["RecipeContext"], None]
ResourceRef = Union[Resource, str]

DEFAULT_RUN_LIST = ("rsyslog::default",)


class Derivation(NamedTuple):
    """Intents and edges in declaration order."""
    intents: Tuple[Resource, ...]
    notifications: Tuple[Notification, ...]


def _ref(resource: ResourceRef) -> str:
    return resource if isinstance(resource, str) else resource.id


class RecipeContext:
    """
    Collects what recipes declare during one derivation.

    Only lives for a single derive() call.
    """

    def __init__(self, node: AttributeSnapshot, recipes: Mapping[str, Recipe]):
        self.node = node
        self._recipes = recipes
        self._intents: List[Resource] = []
        self._notifications: List[Notification] = []
        self._seen_edges: Set[Notification] = set()
        self._included: List[str] = []

    @property
    def platform(self):
        return self.node.platform

    def add(self, resource: Resource) -> Resource:
        """
        Declare a resource.

        Returns:
            The resource (for notify/subscribe references)
        """
        self._intents.append(resource)
        return resource

    def notify(
        self,
        source: ResourceRef,
        action: Union[NotifyAction, str],
        target: ResourceRef,
        timing: Union[Timing, str] = Timing.DELAYED,
    ) -> Notification:
        """A change to ``source`` triggers ``action`` on ``target``."""
        edge = Notification(_ref(source), _ref(target), action, timing)
        if edge not in self._seen_edges:
            self._seen_edges.add(edge)
            self._notifications.append(edge)
        return edge

    def subscribe(
        self,
        resource: ResourceRef,
        action: Union[NotifyAction, str],
        source: ResourceRef,
        timing: Union[Timing, str] = Timing.DELAYED,
    ) -> Notification:
        """``resource`` runs ``action`` whenever ``source`` changes."""
        return self.notify(source, action, resource, timing)

    def include_recipe(self, name: str) -> None:
        """Run another recipe, at most once per derivation."""
        if name in self._included:
            return
        recipe = self._recipes.get(name)
        if recipe is None:
            raise UnknownRecipeError(f"Unknown recipe: {name}")

        self._included.append(name)
        logger.debug("Including recipe %s", name)
        recipe(self)

    @property
    def included_recipes(self) -> Tuple[str, ...]:
        return tuple(self._included)

    def derivation(self) -> Derivation:
        return Derivation(tuple(self._intents), tuple(self._notifications))


class PolicyEngine:
    """
    Maps an AttributeSnapshot to a Derivation by running recipes.

    Example:
        engine = PolicyEngine()
        intents, edges = engine.derive(snapshot, ["rsyslog::default"])
    """

    def __init__(self, recipes: Optional[Mapping[str, Recipe]] = None):
        if recipes is None:
            # Import here to avoid circular import
            from cookplan.cookbooks.registry import RECIPES
            recipes = RECIPES
        self.recipes: Dict[str, Recipe] = dict(recipes)

    def derive(
        self,
        snapshot: AttributeSnapshot,
        run_list: Sequence[str] = DEFAULT_RUN_LIST,
    ) -> Derivation:
        """
        Run every recipe of the run list against ``snapshot``.

        Raises:
            UnknownRecipeError: a recipe in the run list is not registered
            ConfigurationError: contradictory attributes
            UnknownPlatformError: a recipe has no profile for the family
        """
        for name in run_list:
            if name not in self.recipes:
                raise UnknownRecipeError(f"Unknown recipe: {name}")

        ctx = RecipeContext(snapshot, self.recipes)
        for name in run_list:
            ctx.include_recipe(name)

        derivation = ctx.derivation()
        logger.debug(
            "Derived %d intents and %d notifications for %s from %s",
            len(derivation.intents),
            len(derivation.notifications),
            snapshot.platform,
            ", ".join(ctx.included_recipes),
        )
        return derivation


def derive(snapshot: AttributeSnapshot, run_list: Sequence[str] = DEFAULT_RUN_LIST) -> Derivation:
    """Derive with the built-in cookbooks."""
    return PolicyEngine().derive(snapshot, run_list)
