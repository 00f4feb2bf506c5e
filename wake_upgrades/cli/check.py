from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import rich_click as click
from click.core import Context


@click.command(name="check")
@click.argument("original", type=click.Path(exists=True, dir_okay=False))
@click.argument("updated", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--allow-custom-type-churn/--no-allow-custom-type-churn",
    default=None,
    help="Ignore type changes caused only by different AST ids of structs, enums and contracts.",
)
@click.pass_context
def run_check(
    ctx: Context,
    original: str,
    updated: str,
    allow_custom_type_churn: Optional[bool],
) -> None:
    """
    Check that a storage layout can be upgraded to another one.
    """
    from rich.markup import escape

    from wake_upgrades.config import UpgradesConfig
    from wake_upgrades.core.logging import is_debug
    from wake_upgrades.errors import RecursionDetected
    from wake_upgrades.layout import StorageLayout
    from wake_upgrades.report import print_storage_errors
    from wake_upgrades.storage import get_storage_upgrade_errors

    from .console import console

    config = UpgradesConfig(local_config_path=ctx.obj.get("local_config_path", None))
    config.load_configs()

    if allow_custom_type_churn is None:
        allow_custom_type_churn = config.storage.allow_custom_type_churn

    original_layout = StorageLayout.model_validate_json(Path(original).read_text())
    updated_layout = StorageLayout.model_validate_json(Path(updated).read_text())

    try:
        errors = get_storage_upgrade_errors(
            original_layout,
            updated_layout,
            allow_custom_type_churn,
            allow_append=config.storage.allow_append,
        )
    except RecursionDetected as e:
        if is_debug():
            raise
        console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(2)

    if len(errors) > 0:
        print_storage_errors(errors, console, config)
        console.print(
            f"[red]Storage layout is not upgrade safe, found {len(errors)} incompatible changes[/red]"
        )
        sys.exit(1)

    console.print("[green]Storage layout is upgrade safe[/green]")
