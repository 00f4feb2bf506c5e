import pytest

from layout_helpers import enum_type, make_layout, struct_type
from wake_upgrades.detailed import (
    DetailedStructMember,
    DetailedTypeResolver,
    get_detailed_layout,
)
from wake_upgrades.errors import RecursionDetected
from wake_upgrades.layout import TypeItem

POSITION = "t_struct(Position)5_storage"
BALANCES = "t_mapping(t_address,t_uint256)"


def test_detailed_elementary():
    layout = make_layout([("total", "t_uint256"), ("owner", "t_address")])
    detailed = get_detailed_layout(layout)

    assert [item.label for item in detailed] == ["total", "owner"]
    assert detailed[0].type.id == "t_uint256"
    assert detailed[0].type.head == "t_uint256"
    assert detailed[0].type.item.label == "uint256"
    assert detailed[0].type.item.members is None
    assert detailed[0].type.args is None
    assert detailed[1].contract == "Vault"
    assert detailed[1].src == "contracts/Vault.sol:4"


def test_detailed_nested():
    layout = make_layout(
        [("positions", f"t_mapping(t_address,{POSITION})")],
        {
            f"t_mapping(t_address,{POSITION})": TypeItem(
                label="mapping(address => struct Vault.Position)"
            ),
            POSITION: struct_type(
                "struct Vault.Position",
                [("owner", "t_address"), ("side", "t_enum(Side)3")],
            ),
            "t_enum(Side)3": enum_type("enum Vault.Side", ["Long", "Short"]),
        },
    )
    (positions,) = get_detailed_layout(layout)

    mapping = positions.type
    assert mapping.head == "t_mapping"
    assert mapping.args is not None
    key, value = mapping.args
    assert key.id == "t_address"
    assert value.id == POSITION
    assert value.name == "Position"
    assert value.item.label == "struct Vault.Position"

    members = value.item.members
    assert members is not None
    assert all(isinstance(m, DetailedStructMember) for m in members)
    assert [m.label for m in members] == ["owner", "side"]
    assert members[1].type.item.members == ("Long", "Short")


def test_detailed_function():
    fn = "t_function_internal_view(t_uint256,t_address)returns(t_bool)"
    layout = make_layout(
        [("callback", fn)],
        {fn: TypeItem(label="function (uint256,address) view returns (bool)")},
    )
    (callback,) = get_detailed_layout(layout)
    assert callback.type.args is not None
    assert [a.id for a in callback.type.args] == ["t_uint256", "t_address"]
    assert callback.type.rets is not None
    assert [r.id for r in callback.type.rets] == ["t_bool"]


def test_shared_types_are_not_recursion():
    pair = "t_struct(Pair)7_storage"
    layout = make_layout(
        [
            ("a", BALANCES),
            ("b", BALANCES),
            ("pair", pair),
        ],
        {
            BALANCES: TypeItem(label="mapping(address => uint256)"),
            pair: struct_type(
                "struct Pair",
                [("left", BALANCES), ("right", BALANCES)],
            ),
        },
    )
    resolver = DetailedTypeResolver(layout)
    a = resolver.resolve(BALANCES)
    b = resolver.resolve(BALANCES)
    assert a is b

    pair_type = resolver.resolve(pair)
    assert pair_type.item.members is not None
    left, right = pair_type.item.members
    assert left.type is right.type is a

    detailed = get_detailed_layout(layout)
    assert detailed[0].type is detailed[1].type


def test_recursion_detected():
    node = "t_struct(Node)3_storage"
    children = f"t_mapping(t_uint256,{node})"
    layout = make_layout(
        [("root", node)],
        {
            node: struct_type("struct Tree.Node", [("children", children)]),
            children: TypeItem(label="mapping(uint256 => struct Tree.Node)"),
        },
    )

    with pytest.raises(RecursionDetected) as e:
        get_detailed_layout(layout)
    assert e.value.chain == [node, children, node]
    assert "Recursion found" in str(e.value)


def test_indirect_recursion_detected():
    a = "t_struct(A)1_storage"
    b = "t_struct(B)2_storage"
    array = f"t_array({a})dyn_storage"
    layout = make_layout(
        [("value", "t_uint256"), ("a", a)],
        {
            a: struct_type("struct A", [("b", b)]),
            b: struct_type("struct B", [("x", "t_uint256"), ("items", array)]),
            array: TypeItem(label="struct A[]"),
        },
    )

    with pytest.raises(RecursionDetected) as e:
        get_detailed_layout(layout)
    assert e.value.chain == [a, b, array, a]


def test_missing_type():
    layout = make_layout([("x", "t_uint8")])
    with pytest.raises(AssertionError):
        get_detailed_layout(layout)
