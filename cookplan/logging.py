"""
Logging for cookplan.

Example:
    from cookplan.logging import get_logger

    logger = get_logger(__name__)
    logger.debug("Derived %d intents", len(intents))
    logger.warning("Platform has no profile")
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.theme import Theme

COOKPLAN_THEME = Theme({
    "log.time": "dim cyan",
    "log.level.debug": "dim blue",
    "log.level.info": "green",
    "log.level.warning": "yellow",
    "log.level.error": "bold red",
    "log.level.critical": "bold white on red",
    "cookplan.success": "bold green",
    "cookplan.action.create": "green",
    "cookplan.action.update": "yellow",
    "cookplan.action.delete": "red",
    "cookplan.notify": "magenta",
    "cookplan.dry_run": "cyan",
})

# Global console instance
console = Console(theme=COOKPLAN_THEME, stderr=True)

_initialized = False


def setup_logging(
    level: str = "WARNING",
    show_time: bool = True,
    show_path: bool = False,
    rich_tracebacks: bool = True,
) -> None:
    """
    init cookplan's logging

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        show_time: Show timestamps in log output
        show_path: Show file path in log output
        rich_tracebacks: Use rich formatting for tracebacks

    Note:
        Handlers are installed once. Later calls only change the level.
    """
    global _initialized

    numeric_level = getattr(logging, level.upper(), logging.WARNING)

    if _initialized:
        logging.getLogger().setLevel(numeric_level)
        return

    handler = RichHandler(
        console=console,
        show_time=show_time,
        show_path=show_path,
        rich_tracebacks=rich_tracebacks,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    logging.basicConfig(
        level=numeric_level,
        handlers=[handler],
        force=True,
    )

    _initialized = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a given module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    if not _initialized:
        setup_logging()

    return logging.getLogger(name)


class PlanLogger:
    """
    cookplan-specific logger

    Wraps a standard logger with console helpers for printing plans.
    """

    def __init__(self, name: str, output: Optional[Console] = None):
        self.logger = get_logger(name)
        self.console = output if output is not None else console

    def debug(self, message: str, *args) -> None:
        self.logger.debug(message, *args)

    def success(self, message: str) -> None:
        """Print a success line."""
        self.console.print(f"[cookplan.success]✓[/cookplan.success] {escape(message)}")

    def action(self, action: str, resource_id: str, details: Optional[str] = None) -> None:
        """
        Print a resource action (create/update/delete).

        Args:
            action: Action type (create, update, delete)
            resource_id: Resource identifier
            details: Optional details about the action
        """
        symbols = {
            "create": "+",
            "update": "~",
            "delete": "-",
        }
        symbol = symbols.get(action.lower(), "•")
        style = f"cookplan.action.{action.lower()}"

        if action.lower() in symbols:
            msg = f"[{style}]{symbol}[/{style}] {escape(resource_id)}"
        else:
            msg = f"{symbol} {escape(resource_id)}"
        if details:
            msg += f" [dim]({escape(details)})[/dim]"

        self.console.print(msg)

    def notification(self, action: str, target: str, source: Optional[str] = None) -> None:
        """Print a notification that fires on a target."""
        symbol = "↻" if action == "restart" else "⟳" if action == "reload" else "▶"
        msg = f"  [cookplan.notify]{symbol}[/cookplan.notify] {escape(action)} {escape(target)}"
        if source:
            msg += f" [dim](from {escape(source)})[/dim]"
        self.console.print(msg)

    def dry_run(self, message: str) -> None:
        self.console.print(f"[cookplan.dry_run][DRY RUN][/cookplan.dry_run] {escape(message)}")

    def table_row(self, *columns, widths: Optional[list] = None) -> None:
        """
        Print a table row (for listings).

        Args:
            *columns: Column values
            widths: Optional column widths
        """
        if widths:
            row = "  ".join(str(col).ljust(w) for col, w in zip(columns, widths))
        else:
            row = "  ".join(str(col) for col in columns)

        self.console.print(escape(row))


def get_plan_logger(name: str, output: Optional[Console] = None) -> PlanLogger:
    """
    Get a PlanLogger instance for the given module.

    Example:
        logger = get_plan_logger(__name__)
        logger.action("create", "template:/etc/rsyslog.conf")
    """
    return PlanLogger(name, output)
