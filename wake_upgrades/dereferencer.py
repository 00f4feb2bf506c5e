from __future__ import annotations

from typing import Dict, Iterable, Tuple, Type

from wake_upgrades.core import get_logger

from .ast import AstNodeId, SolcDefinition, SolcSourceUnit, SolidityNode

logger = get_logger(__name__)


class AstDereferencer:
    """
    Looks up definition nodes (contracts, structs, enums, user defined value types) by their AST id.

    AST ids are unique only within a single compilation unit, so all the source units must come from the same compiler output.
    """

    _nodes: Dict[AstNodeId, SolidityNode]

    def __init__(self, source_units: Iterable[SolcSourceUnit]):
        self._nodes = {}
        for source_unit in source_units:
            self._nodes[source_unit.id] = source_unit
            for node in source_unit:
                self._nodes[node.id] = node
        logger.debug(f"Indexed {len(self._nodes)} AST nodes")

    def __call__(
        self, node_types: Tuple[Type[SolidityNode], ...], node_id: AstNodeId
    ) -> SolcDefinition:
        assert node_id in self._nodes, f"AST node with id {node_id} not found"
        node = self._nodes[node_id]

        assert isinstance(
            node, node_types
        ), f"Expected AST node {node_id} to be one of {', '.join(t.__name__ for t in node_types)}, got {node.node_type}"
        return node  # pyright: ignore reportGeneralTypeIssues
