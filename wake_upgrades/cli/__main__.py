import logging
import sys
from typing import Optional

import rich_click as click
from click.core import Context
from rich.logging import RichHandler

from .check import run_check
from .console import console
from .extract import run_extract


def excepthook(type, value, traceback):
    from rich.console import Console
    from rich.traceback import Traceback

    traceback_console = Console(stderr=True)
    traceback_console.print(
        Traceback.from_exception(
            type,
            value,
            traceback,
            suppress=[click],
        )
    )


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--debug",
    "-d",
    is_flag=True,
    default=False,
    help="Set logging level to debug.",
)
@click.option(
    "--config",
    required=False,
    type=click.Path(exists=False, dir_okay=False),
    envvar="WAKE_UPGRADES_CONFIG",
    help="Path to the local config file.",
)
@click.version_option(message="%(version)s", package_name="wake-upgrades")
@click.pass_context
def main(ctx: Context, debug: bool, config: Optional[str]) -> None:
    logging.basicConfig(
        format="%(asctime)s %(name)s: %(message)s",
        handlers=[RichHandler(show_time=False, console=console, markup=True)],
        force=True,  # pyright: ignore reportGeneralTypeIssues
    )
    sys.excepthook = excepthook

    if debug:
        from wake_upgrades.core.logging import set_debug

        set_debug(True)

    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["local_config_path"] = config


main.add_command(run_check)
main.add_command(run_extract)


@main.command(name="config")
@click.pass_context
def config(ctx: Context) -> None:
    """Print loaded config options in JSON format."""
    from wake_upgrades.config import UpgradesConfig

    config = UpgradesConfig(local_config_path=ctx.obj.get("local_config_path", None))
    config.load_configs()
    console.print_json(str(config))


if __name__ == "__main__":
    main()
