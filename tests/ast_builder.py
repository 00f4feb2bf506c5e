"""
Builds solc compact JSON AST dictionaries of state variable declarations and the types they use.
Only the fields read by the storage layout extractor (and required by the AST models) are generated.
"""
from typing import Any, Dict, List, Optional, Sequence, Tuple

from wake_upgrades.type_identifier import (
    decode_type_identifier,
    encode_type_identifier,
)

Node = Dict[str, Any]


class AstBuilder:
    def __init__(self, file_id: int = 0, first_id: int = 1):
        self.file_id = file_id
        self._next_id = first_id
        self.source = b""

    def _node(self, node_type: str, source_line: Optional[str] = None) -> Node:
        node_id = self._next_id
        self._next_id += 1
        if source_line is None:
            src = f"0:0:{self.file_id}"
        else:
            # every declaration gets its own line of fake source code
            line = source_line.encode() + b"\n"
            src = f"{len(self.source)}:{len(line) - 1}:{self.file_id}"
            self.source += line
        return {"id": node_id, "src": src, "nodeType": node_type}

    @staticmethod
    def _type_descriptions(type_identifier: str, type_string: str) -> Node:
        return {
            "typeIdentifier": encode_type_identifier(type_identifier),
            "typeString": type_string,
        }

    @staticmethod
    def decoded_id(type_name: Node) -> str:
        return decode_type_identifier(type_name["typeDescriptions"]["typeIdentifier"])

    @staticmethod
    def type_string(type_name: Node) -> str:
        return type_name["typeDescriptions"]["typeString"]

    def elementary(self, name: str) -> Node:
        node = self._node("ElementaryTypeName")
        node["name"] = name
        node["typeDescriptions"] = self._type_descriptions(f"t_{name}", name)
        return node

    def mapping(self, key: Node, value: Node) -> Node:
        node = self._node("Mapping")
        node["keyType"] = key
        node["valueType"] = value
        node["typeDescriptions"] = self._type_descriptions(
            f"t_mapping({self.decoded_id(key)},{self.decoded_id(value)})",
            f"mapping({self.type_string(key)} => {self.type_string(value)})",
        )
        return node

    def array(self, base: Node, length: Optional[int] = None) -> Node:
        node = self._node("ArrayTypeName")
        node["baseType"] = base
        size = "dyn" if length is None else str(length)
        node["typeDescriptions"] = self._type_descriptions(
            f"t_array({self.decoded_id(base)}){size}_storage_ptr",
            f"{self.type_string(base)}[{'' if length is None else length}]",
        )
        return node

    def function(
        self, params: Sequence[Node], returns: Sequence[Node] = ()
    ) -> Node:
        node = self._node("FunctionTypeName")
        node["parameterTypes"] = self._parameter_list(params)
        node["returnParameterTypes"] = self._parameter_list(returns)
        node["stateMutability"] = "nonpayable"
        node["visibility"] = "internal"
        args = ",".join(self.decoded_id(p) for p in params)
        rets = ",".join(self.decoded_id(r) for r in returns)
        type_string = f"function ({','.join(self.type_string(p) for p in params)})"
        if len(returns) > 0:
            type_string += (
                f" returns ({','.join(self.type_string(r) for r in returns)})"
            )
        node["typeDescriptions"] = self._type_descriptions(
            f"t_function_internal_nonpayable({args})returns({rets})", type_string
        )
        return node

    def _parameter_list(self, type_names: Sequence[Node]) -> Node:
        node = self._node("ParameterList")
        node["parameters"] = [
            self.variable("", t, state_variable=False, scope=0) for t in type_names
        ]
        return node

    def _user_defined(
        self, definition: Node, type_identifier: str, type_string: str
    ) -> Node:
        node = self._node("UserDefinedTypeName")
        node["referencedDeclaration"] = definition["id"]
        node["typeDescriptions"] = self._type_descriptions(type_identifier, type_string)
        return node

    def struct_ref(self, struct: Node) -> Node:
        return self._user_defined(
            struct,
            f"t_struct({struct['name']}){struct['id']}_storage_ptr",
            f"struct {struct['canonicalName']}",
        )

    def enum_ref(self, enum: Node) -> Node:
        return self._user_defined(
            enum,
            f"t_enum({enum['name']}){enum['id']}",
            f"enum {enum['canonicalName']}",
        )

    def contract_ref(self, contract: Node) -> Node:
        return self._user_defined(
            contract,
            f"t_contract({contract['name']}){contract['id']}",
            f"contract {contract['name']}",
        )

    def udvt_ref(self, udvt: Node) -> Node:
        return self._user_defined(
            udvt,
            f"t_userDefinedValueType({udvt['name']}){udvt['id']}",
            udvt["canonicalName"],
        )

    def variable(
        self,
        name: str,
        type_name: Node,
        *,
        constant: bool = False,
        mutability: str = "mutable",
        storage_location: str = "default",
        state_variable: bool = True,
        scope: int = 0,
    ) -> Node:
        node = self._node(
            "VariableDeclaration",
            f"{self.type_string(type_name)} {name};",
        )
        node.update(
            {
                "name": name,
                "constant": constant,
                "mutability": mutability,
                "scope": scope,
                "stateVariable": state_variable,
                "storageLocation": storage_location,
                "visibility": "internal",
                "typeName": type_name,
            }
        )
        type_identifier = self.decoded_id(type_name)
        if state_variable and type_identifier.endswith("_storage_ptr"):
            type_identifier = type_identifier[: -len("_ptr")]
        node["typeDescriptions"] = self._type_descriptions(
            type_identifier, self.type_string(type_name)
        )
        return node

    def struct(
        self,
        name: str,
        members: Sequence[Tuple[str, Node]],
        contract: Optional[str] = None,
    ) -> Node:
        node = self._node("StructDefinition", f"struct {name} {{")
        node.update(
            {
                "name": name,
                "canonicalName": name if contract is None else f"{contract}.{name}",
                "members": [
                    self.variable(
                        member_name, t, state_variable=False, scope=node["id"]
                    )
                    for member_name, t in members
                ],
                "scope": 0,
                "visibility": "public",
            }
        )
        return node

    def enum(
        self, name: str, values: Sequence[str], contract: Optional[str] = None
    ) -> Node:
        node = self._node("EnumDefinition", f"enum {name} {{")
        node.update(
            {
                "name": name,
                "canonicalName": name if contract is None else f"{contract}.{name}",
                "members": [],
            }
        )
        for value in values:
            value_node = self._node("EnumValue")
            value_node["name"] = value
            node["members"].append(value_node)
        return node

    def udvt(self, name: str, underlying: Node) -> Node:
        node = self._node("UserDefinedValueTypeDefinition", f"type {name} is ...;")
        node.update(
            {"name": name, "canonicalName": name, "underlyingType": underlying}
        )
        return node

    def function_definition(self, name: str) -> Node:
        node = self._node("FunctionDefinition", f"function {name}() {{}}")
        node.update({"name": name, "kind": "function", "implemented": True})
        return node

    def contract(self, name: str, nodes: Optional[List[Node]] = None) -> Node:
        node = self._node("ContractDefinition", f"contract {name} {{")
        node.update(
            {
                "name": name,
                "abstract": False,
                "baseContracts": [],
                "contractDependencies": [],
                "contractKind": "contract",
                "linearizedBaseContracts": [node["id"]],
                "nodes": [] if nodes is None else list(nodes),
                "scope": 0,
            }
        )
        return node

    def source_unit(self, absolute_path: str, nodes: List[Node]) -> Node:
        node = self._node("SourceUnit")
        node["src"] = f"0:{len(self.source)}:{self.file_id}"
        node.update(
            {
                "absolutePath": absolute_path,
                "exportedSymbols": {
                    n["name"]: [n["id"]] for n in nodes if "name" in n
                },
                "nodes": nodes,
            }
        )
        return node
