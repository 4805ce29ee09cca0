"""
Core cookplan functionality.

Exports the resolver, policy engine and planner plus the base abstractions.
"""

from cookplan.core.resource import Action, Change, Notification, NotifyAction, Resource, ResourcePlan, Timing
from cookplan.core.errors import (
    ConfigurationError,
    CookplanError,
    CycleError,
    NotificationError,
    UnknownPlatformError,
    UnknownRecipeError,
)
from cookplan.core.platform import Platform
from cookplan.core.attributes import AttributeSnapshot, PlatformPaths, resolve
from cookplan.core.policy import Derivation, PolicyEngine, RecipeContext, derive
from cookplan.core.planner import ConvergencePlanner, ConvergenceReport, ExecutionPlan, plan

__all__ = [
    "Action",
    "Change",
    "Notification",
    "NotifyAction",
    "Resource",
    "ResourcePlan",
    "Timing",
    "ConfigurationError",
    "CookplanError",
    "CycleError",
    "NotificationError",
    "UnknownPlatformError",
    "UnknownRecipeError",
    "Platform",
    "AttributeSnapshot",
    "PlatformPaths",
    "resolve",
    "Derivation",
    "PolicyEngine",
    "RecipeContext",
    "derive",
    "ConvergencePlanner",
    "ConvergenceReport",
    "ExecutionPlan",
    "plan",
]
