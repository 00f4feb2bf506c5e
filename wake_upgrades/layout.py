from __future__ import annotations

import re
from collections import deque
from typing import Callable, Deque, Dict, List, Optional, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict

from wake_upgrades.core import get_logger

from .ast import (
    AstNodeId,
    SolcArrayTypeName,
    SolcContractDefinition,
    SolcDefinition,
    SolcElementaryTypeName,
    SolcEnumDefinition,
    SolcFunctionTypeName,
    SolcMapping,
    SolcStructDefinition,
    SolcTypeName,
    SolcUserDefinedTypeName,
    SolcUserDefinedValueTypeDefinition,
    SolcVariableDeclaration,
    SolidityNode,
)
from .enums import DataLocation, Mutability
from .type_identifier import normalize_type_identifier

logger = get_logger(__name__)

CONTRACT_TYPE_RE = re.compile(r"^t_contract\b")

SrcDecoder = Callable[[SolidityNode], str]
"""
Returns a human-readable location (e.g. `contracts/Token.sol:12`) of an AST node.
"""

AstDereferencer = Callable[[Tuple[Type[SolidityNode], ...], AstNodeId], SolcDefinition]
"""
Returns the definition node with the given AST id. The node must be an instance of one of the given node types.
"""


class LayoutModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
    )


class StructMember(LayoutModel):
    label: str
    type: str


class TypeItem(LayoutModel):
    label: str
    """Type string as printed by the compiler, e.g. `struct Vault.Position` or `mapping(address => uint256)`."""
    members: Optional[Union[Tuple[StructMember, ...], Tuple[str, ...]]] = None
    """Struct fields or enum values. `None` for all other types."""


class StorageItem(LayoutModel):
    contract: str
    label: str
    type: str
    src: str


class StorageLayout(LayoutModel):
    """
    Storage variables of a contract in declaration order with all the types they (transitively) reference.
    """

    storage: Tuple[StorageItem, ...] = ()
    types: Dict[str, TypeItem] = {}


def _occupies_storage(var_decl: SolcVariableDeclaration) -> bool:
    if var_decl.constant:
        return False
    if var_decl.mutability in {Mutability.CONSTANT, Mutability.IMMUTABLE}:
        return False
    # transient variables (>=0.8.27) live in a separate address space
    return var_decl.storage_location != DataLocation.TRANSIENT


def extract_storage_layout(
    contract_def: SolcContractDefinition,
    decode_src: SrcDecoder,
    deref: AstDereferencer,
) -> StorageLayout:
    """
    Extract storage layout of state variables declared directly in the given contract.
    Inherited variables are not included.

    Args:
        contract_def: Contract definition AST node.
        decode_src: Source location decoder.
        deref: AST dereferencer used to look up struct and enum definitions.

    Returns:
        Storage layout of the contract.
    """
    storage: List[StorageItem] = []
    types: Dict[str, TypeItem] = {}

    for var_decl in contract_def.nodes:
        if not isinstance(var_decl, SolcVariableDeclaration):
            continue
        if not _occupies_storage(var_decl):
            continue

        type_identifier = var_decl.type_descriptions.type_identifier
        type_string = var_decl.type_descriptions.type_string
        assert (
            type_identifier is not None
        ), f"Missing type identifier of {contract_def.name}.{var_decl.name}"
        assert (
            type_string is not None
        ), f"Missing type string of {contract_def.name}.{var_decl.name}"

        storage.append(
            StorageItem(
                contract=contract_def.name,
                label=var_decl.name,
                type=normalize_type_identifier(type_identifier),
                src=decode_src(var_decl),
            )
        )

        assert (
            var_decl.type_name is not None
        ), f"Missing type name of {contract_def.name}.{var_decl.name}"
        _collect_types(var_decl.type_name, deref, types)

    logger.debug(
        f"Extracted {len(storage)} storage variables and {len(types)} types from {contract_def.name}"
    )
    return StorageLayout(storage=tuple(storage), types=types)


def _collect_types(
    type_name: SolcTypeName, deref: AstDereferencer, types: Dict[str, TypeItem]
) -> None:
    queue: Deque[SolcTypeName] = deque([type_name])

    while len(queue) > 0:
        current = queue.popleft()
        type_identifier = current.type_descriptions.type_identifier
        type_string = current.type_descriptions.type_string
        assert type_identifier is not None, f"Missing type identifier of {current}"
        assert type_string is not None, f"Missing type string of {current}"

        normalized = normalize_type_identifier(type_identifier)
        if normalized in types:
            continue

        members = None

        if isinstance(current, SolcArrayTypeName):
            queue.append(current.base_type)
        elif isinstance(current, SolcMapping):
            queue.append(current.key_type)
            queue.append(current.value_type)
        elif isinstance(current, SolcFunctionTypeName):
            for param in (
                current.parameter_types.parameters
                + current.return_parameter_types.parameters
            ):
                assert param.type_name is not None, f"Missing type name of {param}"
                queue.append(param.type_name)
        elif isinstance(current, SolcUserDefinedTypeName):
            if CONTRACT_TYPE_RE.match(normalized) is None:
                type_def = deref(
                    (
                        SolcStructDefinition,
                        SolcEnumDefinition,
                        SolcUserDefinedValueTypeDefinition,
                    ),
                    current.referenced_declaration,
                )
                if isinstance(type_def, SolcStructDefinition):
                    for member in type_def.members:
                        assert (
                            member.type_name is not None
                        ), f"Missing type name of {type_def.name}.{member.name}"
                        queue.append(member.type_name)
                members = _get_type_members(type_def)
        else:
            assert isinstance(current, SolcElementaryTypeName)

        types[normalized] = TypeItem(label=type_string, members=members)


def _get_type_members(
    type_def: SolcDefinition,
) -> Optional[Union[Tuple[StructMember, ...], Tuple[str, ...]]]:
    if isinstance(type_def, SolcStructDefinition):
        members = []
        for member in type_def.members:
            type_identifier = member.type_descriptions.type_identifier
            assert (
                type_identifier is not None
            ), f"Missing type identifier of {type_def.name}.{member.name}"
            members.append(
                StructMember(
                    label=member.name,
                    type=normalize_type_identifier(type_identifier),
                )
            )
        return tuple(members)
    elif isinstance(type_def, SolcEnumDefinition):
        return tuple(value.name for value in type_def.members)
    else:
        # user defined value types have no members
        return None
