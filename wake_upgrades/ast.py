import re
from typing import Any, Dict, FrozenSet, List, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    GetCoreSchemaHandler,
    StrictBool,
    StrictInt,
    StrictStr,
    Tag,
    model_validator,
)
from pydantic.dataclasses import dataclass
from pydantic_core import CoreSchema, core_schema
from typing_extensions import Annotated, Literal

from .enums import ContractKind, DataLocation, Mutability, StateMutability, Visibility

REGEX_SRC = re.compile(r"(-?\d+):(-?\d+):(-?\d+)")


def to_camel(s: str) -> str:
    split = s.split("_")
    return split[0].lower() + "".join([w.capitalize() for w in split[1:]])


class AstModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        extra="forbid",
        frozen=True,
    )


class AstNodeId(int):
    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> CoreSchema:
        return core_schema.no_info_before_validator_function(cls.validate, handler(int))

    @classmethod
    def validate(cls, v):
        if not isinstance(v, int):
            raise TypeError(f"{cls.__name__} must be an int")
        return v

    def __repr__(self):
        return f"AstNodeId({int(self)})"


@dataclass(frozen=True)
class Src:
    byte_offset: int
    byte_length: int
    file_id: int

    @model_validator(mode="before")
    def validate(cls, v):
        if isinstance(v, str):
            match = re.search(REGEX_SRC, v)
            assert (
                match
            ), f"Src must be in the format '<byte_offset>:<byte_length>:<file_id>': {v}"
            [m1, m2, m3] = [int(match.group(i)) for i in range(1, 4)]
            return {"byte_offset": m1, "byte_length": m2, "file_id": m3}
        return v

    def __str__(self) -> str:
        return f"{self.byte_offset}:{self.byte_length}:{self.file_id}"


class TypeDescriptionsModel(AstModel):
    type_identifier: Optional[StrictStr] = None
    type_string: Optional[StrictStr] = None


class SolcNode(AstModel):
    node_type: str
    src: Src


class SolidityNode(SolcNode):
    id: AstNodeId

    def __iter__(self):
        def iter_list(l: List):
            for item in l:
                if isinstance(item, SolidityNode):
                    yield item
                    yield from item
                elif isinstance(item, List):
                    yield from iter_list(item)

        for item in self.__dict__.values():
            if isinstance(item, SolidityNode):
                yield item
                yield from item
            elif isinstance(item, List):
                yield from iter_list(item)


class SolcOpaqueNode(SolcNode):
    """
    Any AST node that does not influence storage layout (functions, events, expressions, documentation, ...).
    The node is kept as-is without validating its fields and is not traversed.
    """

    model_config = ConfigDict(extra="allow")

    node_type: StrictStr
    id: Optional[AstNodeId] = None


class SolcSourceUnit(SolidityNode):
    # override alias
    node_type: Literal["SourceUnit"] = Field(alias="nodeType")
    # required
    absolute_path: StrictStr
    exported_symbols: Dict[StrictStr, List[AstNodeId]]
    nodes: List["SolcTopLevelMemberUnion"]
    # optional
    license: Optional[StrictStr] = None
    experimental_solidity: Optional[StrictBool] = None  # new in 0.8.21


class SolcVariableDeclaration(SolidityNode):
    # override alias
    node_type: Literal["VariableDeclaration"] = Field(alias="nodeType")
    # required
    name: StrictStr
    constant: StrictBool
    scope: AstNodeId
    state_variable: StrictBool
    storage_location: DataLocation
    type_descriptions: TypeDescriptionsModel
    visibility: Visibility
    # optional
    name_location: Optional[Src] = None  # new in 0.8.2
    # `mutability` is exported in >=0.6.6, older versions only set `constant`
    mutability: Optional[Mutability] = None
    base_functions: Optional[List[AstNodeId]] = None
    documentation: Optional[SolcOpaqueNode] = None
    function_selector: Optional[StrictStr] = None
    indexed: Optional[StrictBool] = None
    overrides: Optional[SolcOpaqueNode] = None
    type_name: "OptionalSolcTypeNameUnion" = (
        None  # is None only for <0.5.0 where `var` keyword was supported
    )
    value: Optional[SolcOpaqueNode] = None


class SolcEnumValue(SolidityNode):
    # override alias
    node_type: Literal["EnumValue"] = Field(alias="nodeType")
    # required
    name: StrictStr
    # optional
    name_location: Optional[Src] = None  # new in 0.8.2


class SolcEnumDefinition(SolidityNode):
    # override alias
    node_type: Literal["EnumDefinition"] = Field(alias="nodeType")
    # required
    name: StrictStr
    canonical_name: StrictStr
    members: List[SolcEnumValue]
    # optional
    name_location: Optional[Src] = None  # new in 0.8.2
    documentation: Optional[SolcOpaqueNode] = None  # new in 0.8.20


class SolcStructDefinition(SolidityNode):
    # override alias
    node_type: Literal["StructDefinition"] = Field(alias="nodeType")
    # required
    name: StrictStr
    canonical_name: StrictStr
    members: List[SolcVariableDeclaration]
    scope: AstNodeId
    visibility: Visibility
    # optional
    name_location: Optional[Src] = None  # new in 0.8.2
    documentation: Optional[SolcOpaqueNode] = None  # new in 0.8.20


# new in 0.8.8
class SolcUserDefinedValueTypeDefinition(SolidityNode):
    # override alias
    node_type: Literal["UserDefinedValueTypeDefinition"] = Field(alias="nodeType")
    # required
    name: StrictStr
    underlying_type: "SolcElementaryTypeName"
    # optional
    name_location: Optional[Src] = None  # new in 0.8.2
    canonical_name: Optional[
        StrictStr
    ] = None  # should be present but because of a bug it is exported in >=0.8.9


class SolcContractDefinition(SolidityNode):
    # override alias
    node_type: Literal["ContractDefinition"] = Field(alias="nodeType")
    # required
    name: StrictStr
    abstract: StrictBool
    base_contracts: List[SolcOpaqueNode]
    contract_dependencies: List[AstNodeId]
    contract_kind: ContractKind
    linearized_base_contracts: List[AstNodeId]
    nodes: List["SolcContractMemberUnion"]
    scope: AstNodeId
    # optional
    name_location: Optional[Src] = None  # new in 0.8.2
    canonical_name: Optional[
        StrictStr
    ] = None  # should be present but because of a bug it is exported in >=0.8.9
    fully_implemented: Optional[
        StrictBool
    ] = None  # missing when a file that imports the contract cannot be compiled
    documentation: Union[SolcOpaqueNode, str, None] = None
    used_errors: Optional[List[AstNodeId]] = None  # new in 0.8.4
    used_events: Optional[List[AstNodeId]] = None  # new in 0.8.20
    internal_function_ids: Optional[Dict[int, StrictInt]] = Field(
        None, alias="internalFunctionIDs"
    )


class SolcArrayTypeName(SolidityNode):
    # override alias
    node_type: Literal["ArrayTypeName"] = Field(alias="nodeType")
    # required
    type_descriptions: TypeDescriptionsModel
    base_type: "SolcTypeNameUnion"
    # optional
    length: Optional[SolcOpaqueNode] = None


class SolcElementaryTypeName(SolidityNode):
    # override alias
    node_type: Literal["ElementaryTypeName"] = Field(alias="nodeType")
    # required
    type_descriptions: TypeDescriptionsModel
    name: StrictStr
    # optional
    state_mutability: Optional[StateMutability] = None


class SolcParameterList(SolidityNode):
    # override alias
    node_type: Literal["ParameterList"] = Field(alias="nodeType")
    # required
    parameters: List[SolcVariableDeclaration]


class SolcFunctionTypeName(SolidityNode):
    # override alias
    node_type: Literal["FunctionTypeName"] = Field(alias="nodeType")
    # required
    type_descriptions: TypeDescriptionsModel
    parameter_types: SolcParameterList
    return_parameter_types: SolcParameterList
    state_mutability: StateMutability
    visibility: Visibility


class SolcMapping(SolidityNode):
    # override alias
    node_type: Literal["Mapping"] = Field(alias="nodeType")
    # required
    type_descriptions: TypeDescriptionsModel
    key_type: "SolcTypeNameUnion"
    value_type: "SolcTypeNameUnion"
    # optional
    key_name: Optional[StrictStr] = None  # new in 0.8.18
    key_name_location: Optional[Src] = None  # new in 0.8.18
    value_name: Optional[StrictStr] = None  # new in 0.8.18
    value_name_location: Optional[Src] = None  # new in 0.8.18


# new in 0.8.0 to replace SolcUserDefinedTypeName in many places
class SolcIdentifierPath(SolidityNode):
    node_type: Literal["IdentifierPath"] = Field(alias="nodeType")
    # required
    name: StrictStr
    referenced_declaration: AstNodeId
    # optional
    name_locations: Optional[List[Src]] = None  # added in 0.8.16


class SolcUserDefinedTypeName(SolidityNode):
    node_type: Literal["UserDefinedTypeName"] = Field(alias="nodeType")
    # required
    type_descriptions: TypeDescriptionsModel
    referenced_declaration: AstNodeId
    # optional
    contract_scope: Optional[AstNodeId] = None  # removed in 0.8.0
    name: Optional[StrictStr] = None  # removed in 0.8.0 in favor of path_node
    path_node: Optional[SolcIdentifierPath] = None  # added in 0.8.0


def _node_type(v: Any) -> Optional[str]:
    if isinstance(v, dict):
        return v.get("nodeType", v.get("node_type"))
    return getattr(v, "node_type", None)


def _known_or_opaque(known: FrozenSet[str]):
    def discriminator(v: Any) -> str:
        node_type = _node_type(v)
        return node_type if node_type in known else "Opaque"

    return discriminator


SolcTopLevelMemberUnion = Annotated[
    Union[
        Annotated[SolcContractDefinition, Tag("ContractDefinition")],
        Annotated[SolcEnumDefinition, Tag("EnumDefinition")],
        Annotated[SolcStructDefinition, Tag("StructDefinition")],
        # new in 0.8.8
        Annotated[
            SolcUserDefinedValueTypeDefinition, Tag("UserDefinedValueTypeDefinition")
        ],
        # file-level constants
        Annotated[SolcVariableDeclaration, Tag("VariableDeclaration")],
        # pragmas, imports, free functions, errors, events, using-for directives
        Annotated[SolcOpaqueNode, Tag("Opaque")],
    ],
    Discriminator(
        _known_or_opaque(
            frozenset(
                {
                    "ContractDefinition",
                    "EnumDefinition",
                    "StructDefinition",
                    "UserDefinedValueTypeDefinition",
                    "VariableDeclaration",
                }
            )
        )
    ),
]

SolcContractMemberUnion = Annotated[
    Union[
        Annotated[SolcEnumDefinition, Tag("EnumDefinition")],
        Annotated[SolcStructDefinition, Tag("StructDefinition")],
        Annotated[
            SolcUserDefinedValueTypeDefinition, Tag("UserDefinedValueTypeDefinition")
        ],
        Annotated[SolcVariableDeclaration, Tag("VariableDeclaration")],
        # functions, modifiers, events, errors, using-for directives
        Annotated[SolcOpaqueNode, Tag("Opaque")],
    ],
    Discriminator(
        _known_or_opaque(
            frozenset(
                {
                    "EnumDefinition",
                    "StructDefinition",
                    "UserDefinedValueTypeDefinition",
                    "VariableDeclaration",
                }
            )
        )
    ),
]

SolcTypeNameUnion = Annotated[
    Union[
        SolcArrayTypeName,
        SolcElementaryTypeName,
        SolcFunctionTypeName,
        SolcMapping,
        SolcUserDefinedTypeName,
    ],
    Field(discriminator="node_type"),
]

OptionalSolcTypeNameUnion = Annotated[
    Union[
        SolcArrayTypeName,
        SolcElementaryTypeName,
        SolcFunctionTypeName,
        SolcMapping,
        SolcUserDefinedTypeName,
        None,
    ],
    Field(discriminator="node_type"),
]

# type names usable in declarations
SolcTypeName = Union[
    SolcArrayTypeName,
    SolcElementaryTypeName,
    SolcFunctionTypeName,
    SolcMapping,
    SolcUserDefinedTypeName,
]

# nodes a reference id can be dereferenced to
SolcDefinition = Union[
    SolcContractDefinition,
    SolcEnumDefinition,
    SolcStructDefinition,
    SolcUserDefinedValueTypeDefinition,
]

for _model in (
    SolcVariableDeclaration,
    SolcStructDefinition,
    SolcUserDefinedValueTypeDefinition,
    SolcContractDefinition,
    SolcArrayTypeName,
    SolcParameterList,
    SolcFunctionTypeName,
    SolcMapping,
    SolcSourceUnit,
):
    _model.model_rebuild()
