import pytest

from wake_upgrades.ast import (
    SolcContractDefinition,
    SolcEnumDefinition,
    SolcOpaqueNode,
    SolcSourceUnit,
    SolcStructDefinition,
)
from wake_upgrades.dereferencer import AstDereferencer
from wake_upgrades.layout import (
    StorageLayout,
    StructMember,
    extract_storage_layout,
)
from wake_upgrades.src_decoder import SrcDecoder


def build_vault(b):
    token = b.contract("Token")

    inner = b.struct("Inner", [("amount", b.elementary("uint128"))], contract="Vault")
    position = b.struct(
        "Position",
        [
            ("owner", b.elementary("address")),
            ("inner", b.struct_ref(inner)),
            ("tags", b.array(b.elementary("uint256"))),
        ],
        contract="Vault",
    )
    color = b.enum("Color", ["Red", "Green"], contract="Vault")
    price = b.udvt("Price", b.elementary("uint256"))

    variables = [
        b.variable("total", b.elementary("uint256")),
        b.variable(
            "MAX",
            b.elementary("uint256"),
            constant=True,
            mutability="constant",
        ),
        b.variable(
            "positions", b.mapping(b.elementary("address"), b.struct_ref(position))
        ),
        b.variable("deployer", b.elementary("address"), mutability="immutable"),
        b.variable("colors", b.array(b.enum_ref(color))),
        b.variable("locked", b.elementary("bool"), storage_location="transient"),
        b.variable(
            "callback",
            b.function([b.elementary("uint256")], [b.elementary("bool")]),
        ),
        b.variable("token", b.contract_ref(token)),
        b.variable("price", b.udvt_ref(price)),
    ]
    vault = b.contract(
        "Vault",
        [inner, position, color, price]
        + variables[:3]
        + [b.function_definition("deposit")]
        + variables[3:],
    )
    source_unit = SolcSourceUnit.model_validate(
        b.source_unit("contracts/Vault.sol", [token, vault])
    )
    return source_unit, {
        "token": token,
        "inner": inner,
        "position": position,
        "color": color,
        "price": price,
    }


def extract(b, source_unit, name="Vault"):
    contract = next(
        n
        for n in source_unit.nodes
        if isinstance(n, SolcContractDefinition) and n.name == name
    )
    return extract_storage_layout(
        contract,
        SrcDecoder({0: ("contracts/Vault.sol", b.source)}),
        AstDereferencer([source_unit]),
    )


def test_ast_validation(builder):
    source_unit, _ = build_vault(builder)
    vault = source_unit.nodes[1]
    assert isinstance(vault, SolcContractDefinition)
    assert any(isinstance(n, SolcOpaqueNode) for n in vault.nodes)
    assert isinstance(vault.nodes[0], SolcStructDefinition)
    assert isinstance(vault.nodes[2], SolcEnumDefinition)


def test_extract_storage(builder):
    source_unit, _ = build_vault(builder)
    layout = extract(builder, source_unit)

    assert [item.label for item in layout.storage] == [
        "total",
        "positions",
        "colors",
        "callback",
        "token",
        "price",
    ]
    assert all(item.contract == "Vault" for item in layout.storage)
    assert all(item.src.startswith("contracts/Vault.sol:") for item in layout.storage)

    lines = [int(item.src.rsplit(":", 1)[1]) for item in layout.storage]
    assert lines == sorted(lines)
    assert len(set(lines)) == len(lines)


def test_extract_types(builder):
    source_unit, defs = build_vault(builder)
    layout = extract(builder, source_unit)

    inner_id = f"t_struct(Inner){defs['inner']['id']}_storage"
    position_id = f"t_struct(Position){defs['position']['id']}_storage"
    color_id = f"t_enum(Color){defs['color']['id']}"
    token_id = f"t_contract(Token){defs['token']['id']}"
    price_id = f"t_userDefinedValueType(Price){defs['price']['id']}"

    assert layout.storage[0].type == "t_uint256"
    assert layout.storage[1].type == f"t_mapping(t_address,{position_id})"
    assert layout.storage[2].type == f"t_array({color_id})dyn_storage"
    assert (
        layout.storage[3].type
        == "t_function_internal_nonpayable(t_uint256)returns(t_bool)"
    )
    assert layout.storage[4].type == token_id
    assert layout.storage[5].type == price_id

    assert layout.types[position_id].label == "struct Vault.Position"
    assert layout.types[position_id].members == (
        StructMember(label="owner", type="t_address"),
        StructMember(label="inner", type=inner_id),
        StructMember(label="tags", type="t_array(t_uint256)dyn_storage"),
    )
    assert layout.types[inner_id].label == "struct Vault.Inner"
    assert layout.types[inner_id].members == (
        StructMember(label="amount", type="t_uint128"),
    )
    assert layout.types[color_id].label == "enum Vault.Color"
    assert layout.types[color_id].members == ("Red", "Green")
    assert layout.types[token_id].label == "contract Token"
    assert layout.types[token_id].members is None
    assert layout.types[price_id].label == "Price"
    assert layout.types[price_id].members is None
    assert layout.types["t_array(t_uint256)dyn_storage"].label == "uint256[]"
    assert layout.types[f"t_mapping(t_address,{position_id})"].members is None

    # nested types are collected, too
    for type_identifier in ("t_uint128", "t_bool", "t_address", "t_uint256"):
        assert layout.types[type_identifier].members is None


def test_extract_closed_under_references(builder):
    source_unit, _ = build_vault(builder)
    layout = extract(builder, source_unit)

    for item in layout.storage:
        assert item.type in layout.types
    for type_item in layout.types.values():
        for member in type_item.members or ():
            if isinstance(member, StructMember):
                assert member.type in layout.types


def test_extract_self_referencing_struct(builder):
    b = builder
    node = b.struct("Node", [])
    node["members"].append(
        b.variable(
            "children",
            b.mapping(b.elementary("uint256"), b.struct_ref(node)),
            state_variable=False,
            scope=node["id"],
        )
    )
    tree = b.contract("Tree", [node, b.variable("root", b.struct_ref(node))])
    source_unit = SolcSourceUnit.model_validate(b.source_unit("Tree.sol", [tree]))

    layout = extract(b, source_unit, "Tree")
    struct_id = f"t_struct(Node){node['id']}_storage"
    assert [item.type for item in layout.storage] == [struct_id]
    assert layout.types[struct_id].members == (
        StructMember(label="children", type=f"t_mapping(t_uint256,{struct_id})"),
    )
    assert set(layout.types) == {
        struct_id,
        f"t_mapping(t_uint256,{struct_id})",
        "t_uint256",
    }


def test_layout_json(builder):
    source_unit, _ = build_vault(builder)
    layout = extract(builder, source_unit)
    assert StorageLayout.model_validate_json(layout.model_dump_json()) == layout


def test_empty_contract(builder):
    contract = builder.contract("Empty")
    source_unit = SolcSourceUnit.model_validate(
        builder.source_unit("Empty.sol", [contract])
    )
    layout = extract(builder, source_unit, "Empty")
    assert layout.storage == ()
    assert layout.types == {}


def test_dereferencer(builder):
    source_unit, defs = build_vault(builder)
    deref = AstDereferencer([source_unit])

    position = deref((SolcStructDefinition,), defs["position"]["id"])
    assert isinstance(position, SolcStructDefinition)
    assert position.name == "Position"

    with pytest.raises(AssertionError):
        deref((SolcEnumDefinition,), defs["position"]["id"])
    with pytest.raises(AssertionError):
        deref((SolcStructDefinition,), 123456)


def test_src_decoder():
    content = b"pragma solidity ^0.8.0;\n\ncontract A {\n    uint x;\n}\n"
    decoder = SrcDecoder({0: ("A.sol", content), 1: ("B.sol", None)})

    assert decoder.get_line(0, 0) == 1
    assert decoder.get_line(0, content.index(b"contract")) == 3
    assert decoder.get_line(0, content.index(b"uint")) == 4
    assert decoder.get_line(1, 10) is None

    def node(src):
        return SolcOpaqueNode.model_validate({"nodeType": "Block", "src": src})

    assert decoder(node("42:5:0")) == "A.sol:4"
    assert decoder(node("10:2:1")) == "B.sol:@10"
    assert decoder(node("5:1:7")) == "<file 7>:@5"
