from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Sequence

from .levenshtein import Operation, OperationKind

if TYPE_CHECKING:
    import rich.console

    from .config import UpgradesConfig


@dataclass(frozen=True)
class ErrorDescription:
    msg: Callable[[Operation[Any]], str]
    hint: Optional[str] = None
    link: Optional[str] = None


def _label(variable: Optional[Any]) -> str:
    label = getattr(variable, "label", None)
    return f"`{label}`" if label else "<unknown>"


ERROR_DESCRIPTIONS: Dict[OperationKind, ErrorDescription] = {
    OperationKind.EQUAL: ErrorDescription(
        msg=lambda o: f"Variable {_label(o.original)} was not changed",
    ),
    OperationKind.TYPECHANGE: ErrorDescription(
        msg=lambda o: f"Type of variable {_label(o.updated)} was changed",
    ),
    OperationKind.RENAME: ErrorDescription(
        msg=lambda o: f"Variable {_label(o.original)} was renamed to {_label(o.updated)}",
    ),
    OperationKind.REPLACE: ErrorDescription(
        msg=lambda o: f"Variable {_label(o.original)} was replaced with {_label(o.updated)}",
    ),
    OperationKind.INSERT: ErrorDescription(
        msg=lambda o: f"Inserted variable {_label(o.updated)}",
        hint="Only insert variables at the end of the most derived contract",
    ),
    OperationKind.DELETE: ErrorDescription(
        msg=lambda o: f"Deleted variable {_label(o.original)}",
        hint="Keep the variable even if unused",
    ),
    OperationKind.APPEND: ErrorDescription(
        msg=lambda o: f"Appended variable {_label(o.updated)}",
    ),
}


def _location(op: Operation[Any]) -> str:
    if op.updated is not None:
        return op.updated.src
    if op.original is not None:
        return op.original.contract
    return "unknown"


def describe_error(op: Operation[Any]) -> str:
    """
    Returns:
        Plain text description of a storage operation, followed by a hint on a separate line if there is one.
    """
    info = ERROR_DESCRIPTIONS[op.kind]
    log = [f"{_location(op)}: {info.msg(op)}"]
    if info.hint is not None:
        log.append(info.hint)
    if info.link is not None:
        log.append(info.link)
    return "\n    ".join(log)


def print_storage_errors(
    errors: Sequence[Operation[Any]],
    console: rich.console.Console,
    config: Optional[UpgradesConfig] = None,
) -> None:
    """
    Print storage operations in a human-readable form.
    """
    from rich.markup import escape
    from rich.panel import Panel
    from rich.text import Text

    for op in errors:
        info = ERROR_DESCRIPTIONS[op.kind]
        location = _location(op)

        title = f"[bold red]{op.kind.value.upper()}[/bold red]"
        subtitle = escape(location)
        if config is not None and ":" in location:
            path, line = location.rsplit(":", 1)
            if line.isdigit():
                link = config.general.link_format.format(path=path, line=line, col=1)
                subtitle = f"[link={link}]{escape(location)}[/link]"

        body: List[Text] = [Text(info.msg(op), style="bold")]
        if op.original is not None and op.updated is not None:
            body.append(
                Text(f"{op.original.type.item.label} -> {op.updated.type.item.label}")
            )
        if info.hint is not None:
            body.append(Text(info.hint, style="dim"))
        if info.link is not None:
            body.append(Text(info.link, style="dim"))

        console.print(
            Panel(
                Text("\n").join(body),
                title=title,
                title_align="left",
                subtitle=subtitle,
                subtitle_align="left",
            )
        )
