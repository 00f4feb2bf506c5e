from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from wake_upgrades.errors import DecodeError
from wake_upgrades.utils import StringReader

# Type identifiers in the AST are encoded so that they don't contain parentheses or commas:
#    (  ->  $_
#    )  ->  _$
#    ,  ->  _$_
# The code is not prefix-free (`_$` is a prefix of `_$_`), so a token is only accepted
# if the rest of the escape sequence can still be split into tokens.
ESCAPE_RE = re.compile(r"(\$_|_\$_|_\$)(?=(\$_|_\$_|_\$)*([^_$]|$))")
ESCAPE_TOKENS = {"$_": "(", "_$": ")", "_$_": ","}
# a leftover token, or a `$` next to a decoded token
UNDECODED_RE = re.compile(r"\$_|_\$|\$[(),]|[(),]\$")

STORAGE_PTR_RE = re.compile(r"_storage_ptr\b")

NOMINAL_TYPE_RE = re.compile(r"(t_struct|t_enum|t_contract)\(")
AST_ID_RE = re.compile(r"\d+_?")

# heads whose parenthesized part is a declared name, not a list of types
NOMINAL_HEADS = frozenset(
    {"t_struct", "t_enum", "t_contract", "t_super", "t_userDefinedValueType"}
)


def encode_type_identifier(type_identifier: str) -> str:
    """
    Inverse of [decode_type_identifier][wake_upgrades.type_identifier.decode_type_identifier].
    """
    return (
        type_identifier.replace("(", "$_").replace(")", "_$").replace(",", "_$_")
    )


def decode_type_identifier(type_identifier: str) -> str:
    """
    Replace the escape tokens of a compiler-generated type identifier with parentheses and commas.

    Raises:
        DecodeError: If an escape token cannot be decoded.
    """
    decoded = ESCAPE_RE.sub(lambda m: ESCAPE_TOKENS[m.group(1)], type_identifier)
    if UNDECODED_RE.search(decoded) is not None:
        raise DecodeError(type_identifier, "escape sequence cannot be decoded")
    return decoded


def normalize_type_identifier(type_identifier: str) -> str:
    """
    Decode a type identifier and fold storage pointers into storage references.
    The `_ptr` suffix appears in some places of the AST and not in others.
    """
    return STORAGE_PTR_RE.sub("_storage", decode_type_identifier(type_identifier))


def stabilize_type_identifier(type_identifier: str) -> str:
    """
    Remove AST ids embedded in struct, enum and contract type identifiers.
    AST ids change with unrelated edits of the source code, stabilized identifiers do not.

    Raises:
        DecodeError: If the parentheses of the identifier are not balanced.
    """
    decoded = decode_type_identifier(type_identifier)
    pos = 0
    while True:
        match = NOMINAL_TYPE_RE.search(decoded, pos)
        if match is None:
            break

        depth = 1
        i = match.end()
        while depth != 0:
            if i >= len(decoded):
                raise DecodeError(type_identifier, "unbalanced parentheses")
            c = decoded[i]
            if c == "(":
                depth += 1
            elif c == ")":
                depth -= 1
            i += 1

        ast_id = AST_ID_RE.match(decoded, i)
        if ast_id is not None:
            decoded = decoded[:i] + decoded[ast_id.end() :]
        pos = match.end()
    return decoded


@dataclass(frozen=True)
class ParsedTypeId:
    """
    Structural view of a decoded type identifier.

    !!! example
        - `t_uint256` has the head `t_uint256` and nothing else,
        - `t_mapping(t_uint256,t_address)` has the head `t_mapping` and two arguments,
        - `t_array(t_uint256)dyn_storage` has the head `t_array`, one argument and the tail `dyn_storage`,
        - `t_function_internal_nonpayable(t_uint256)returns(t_address)` has one argument, the tail `returns` and one return type,
        - `t_struct(S)12_storage` has the head `t_struct`, the name `S` and the tail `12_storage`.
    """

    id: str
    head: str
    args: Optional[Tuple[ParsedTypeId, ...]] = None
    tail: Optional[str] = None
    rets: Optional[Tuple[ParsedTypeId, ...]] = None
    name: Optional[str] = None


def parse_type_id(type_identifier: str) -> ParsedTypeId:
    """
    Parse a decoded (normalized) type identifier.

    Raises:
        DecodeError: If the identifier is not well-formed.
    """
    reader = StringReader(type_identifier)
    try:
        parsed = _parse(reader)
    except ValueError as e:
        raise DecodeError(type_identifier, str(e)) from None
    if len(reader) != 0:
        raise DecodeError(type_identifier, f"unexpected `{reader.data}`")
    return parsed


def _parse(reader: StringReader) -> ParsedTypeId:
    start = reader.offset
    head = reader.read_until("(),")
    if len(head) == 0:
        raise ValueError(f"missing type at offset {start}")

    args = None
    tail = None
    rets = None
    name = None

    if reader.startswith("("):
        if head in NOMINAL_HEADS:
            reader.read("(")
            name = reader.read_until("()")
            reader.read(")")
        else:
            args = _parse_list(reader)
        tail = reader.read_until("(),") or None
        if reader.startswith("("):
            rets = _parse_list(reader)
            rest = reader.read_until("(),")
            if rest:
                tail = (tail or "") + rest

    return ParsedTypeId(
        id=reader.original[start : reader.offset],
        head=head,
        args=args,
        tail=tail,
        rets=rets,
        name=name,
    )


def _parse_list(reader: StringReader) -> Tuple[ParsedTypeId, ...]:
    reader.read("(")
    ret: List[ParsedTypeId] = []
    if reader.startswith(")"):
        reader.read(")")
        return tuple(ret)

    while True:
        ret.append(_parse(reader))
        if reader.startswith(","):
            reader.read(",")
        elif reader.startswith(")"):
            reader.read(")")
            break
        else:
            raise ValueError("unterminated type list")
    return tuple(ret)
