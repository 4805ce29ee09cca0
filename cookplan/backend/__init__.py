"""
Execution backends consume ExecutionPlans.
"""

from cookplan.backend.base import ApplyResult, ExecutionBackend, converge
from cookplan.backend.dry_run import DryRunBackend

__all__ = ["ApplyResult", "ExecutionBackend", "DryRunBackend", "converge"]
