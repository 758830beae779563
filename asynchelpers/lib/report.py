"""
Rich rendering of an engine's invocation records.

Debug aid: shows every issued token with its helper, kind, state and outcome.

Example:
    from asynchelpers.lib.report import records_print
    records_print(engine)
"""

from typing import Any, Final, Optional
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from asynchelpers.models.dataModel import InvocationRecord, InvocationState

console: Final[Console] = Console()

STATE_STYLE: Final[dict[InvocationState, str]] = {
    InvocationState.PENDING: "yellow",
    InvocationState.RESOLVING: "cyan",
    InvocationState.RESOLVED: "green",
}


def outcome_describe(record: InvocationRecord, width: int = 40) -> str:
    if not record.resolved:
        return ""
    if record.error is not None:
        return f"[bold red]{type(record.error).__name__}: {escape(str(record.error))}[/bold red]"
    text: str = repr(record.value)
    return escape(text if len(text) <= width else text[: width - 1] + "…")


def records_table(engine: Any) -> Table:
    """Build a table of the engine's invocation records, in issue order.

    Args:
        engine: An ``AsyncHelpers`` instance

    Returns:
        rich Table with one row per record
    """
    table: Table = Table(
        title=f"engine {engine.instance_index} ({escape(engine.prefix)})",
        title_style="bold cyan",
    )
    table.add_column("token", style="magenta", no_wrap=True)
    table.add_column("helper", style="cyan")
    table.add_column("kind")
    table.add_column("state")
    table.add_column("outcome", overflow="fold")

    for record in engine.records:
        style: str = STATE_STYLE[record.state]
        table.add_row(
            escape(record.token),
            escape(record.helper_name),
            record.helper.kind.value,
            f"[{style}]{record.state.name.lower()}[/{style}]",
            outcome_describe(record),
        )
    return table


def records_print(engine: Any, out: Optional[Console] = None) -> None:
    (out or console).print(records_table(engine))
