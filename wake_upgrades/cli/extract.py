from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import rich_click as click
from click.core import Context

from wake_upgrades.ast import SolcContractDefinition, SolcSourceUnit
from wake_upgrades.layout import StorageLayout


def _read_source(source_unit_name: str, absolute_path: str) -> Optional[bytes]:
    for candidate in (Path(source_unit_name), Path(absolute_path)):
        if candidate.is_file():
            return candidate.read_bytes()
    return None


def load_solc_output(
    solc_output: Dict[str, Any]
) -> Tuple[List[SolcSourceUnit], Dict[int, Tuple[str, Optional[bytes]]]]:
    """
    Validate all source unit ASTs of a solc standard JSON output.

    Returns:
        Source units and a mapping from file ids to source unit names and source code (if the file can be found).
    """
    source_units = []
    sources = {}
    for source_unit_name, source in solc_output.get("sources", {}).items():
        if "ast" not in source:
            raise click.BadParameter(
                f"Source unit {source_unit_name} has no AST, compile with the `ast` output selection"
            )
        source_unit = SolcSourceUnit.model_validate(source["ast"])
        source_units.append(source_unit)
        sources[source["id"]] = (
            source_unit_name,
            _read_source(source_unit_name, source_unit.absolute_path),
        )
    return source_units, sources


def find_contract(
    source_units: List[SolcSourceUnit], name: str
) -> SolcContractDefinition:
    """
    Args:
        name: Contract name, optionally prefixed with the source unit name (`contracts/Token.sol:Token`).
    """
    if ":" in name:
        path, name = name.rsplit(":", 1)
    else:
        path = None

    candidates = [
        node
        for source_unit in source_units
        if path is None or source_unit.absolute_path == path
        for node in source_unit.nodes
        if isinstance(node, SolcContractDefinition) and node.name == name
    ]
    if len(candidates) == 0:
        raise click.BadParameter(f"Contract {name} not found")
    elif len(candidates) > 1:
        raise click.BadParameter(
            f"Contract name {name} is ambiguous, use <source unit name>:{name}"
        )
    return candidates[0]


def extract(solc_output: Dict[str, Any], contract_name: str) -> StorageLayout:
    from wake_upgrades.dereferencer import AstDereferencer
    from wake_upgrades.layout import extract_storage_layout
    from wake_upgrades.src_decoder import SrcDecoder

    source_units, sources = load_solc_output(solc_output)
    contract = find_contract(source_units, contract_name)
    return extract_storage_layout(
        contract, SrcDecoder(sources), AstDereferencer(source_units)
    )


@click.command(name="extract")
@click.argument(
    "solc_output", type=click.Path(exists=True, dir_okay=False, readable=True)
)
@click.argument("contract", type=str)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Write the storage layout to a file instead of stdout.",
)
@click.pass_context
def run_extract(
    ctx: Context, solc_output: str, contract: str, output: Optional[str]
) -> None:
    """
    Extract storage layout of a contract from a solc standard JSON output.
    """
    from .console import console

    with open(solc_output, "r") as f:
        data = json.load(f)

    layout = extract(data, contract)
    layout_json = layout.model_dump_json(indent=4)

    if output is None:
        click.echo(layout_json)
    else:
        Path(output).write_text(layout_json)
        console.print(
            f"[green]Storage layout of {contract} with {len(layout.storage)} variables written to {output}[/green]"
        )
