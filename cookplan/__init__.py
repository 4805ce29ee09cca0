__version__ = "0.1.0"

from cookplan.core import (
    AttributeSnapshot,
    ConfigurationError,
    ConvergencePlanner,
    CookplanError,
    CycleError,
    ExecutionPlan,
    Notification,
    NotificationError,
    Platform,
    PolicyEngine,
    Resource,
    UnknownPlatformError,
    derive,
    plan,
    resolve,
)
from cookplan.resources import Directory, Execute, Package, Service, Template
from cookplan.logging import get_logger, get_plan_logger, setup_logging

"""
Foundations of cookplan:
    AttributeSnapshot is the resolved, immutable view of a node's attributes.
    PolicyEngine runs cookbook recipes against a snapshot and derives intents.
    Resource is an intent: a desired piece of system state.
    Notification is an edge: a change to one intent triggers an action on another.
    ConvergencePlanner orders intents and edges into an ExecutionPlan.
    ExecutionPlan is what an execution backend converges.
"""

__all__ = [
    "AttributeSnapshot",
    "ConfigurationError",
    "ConvergencePlanner",
    "CookplanError",
    "CycleError",
    "ExecutionPlan",
    "Notification",
    "NotificationError",
    "Platform",
    "PolicyEngine",
    "Resource",
    "UnknownPlatformError",
    "derive",
    "plan",
    "resolve",
    "Directory",
    "Execute",
    "Package",
    "Service",
    "Template",
    "get_logger",
    "get_plan_logger",
    "setup_logging",
]
