from __future__ import annotations

import functools
import re
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple, TypeVar

from typing_extensions import Protocol

from wake_upgrades.core import get_logger

from .detailed import (
    DetailedStructMember,
    DetailedType,
    StorageItemDetailed,
    get_detailed_layout,
)
from .errors import StorageUpgradeErrors
from .layout import StorageLayout
from .levenshtein import Operation, OperationKind, levenshtein
from .type_identifier import stabilize_type_identifier

if TYPE_CHECKING:
    from .config import UpgradesConfig

logger = get_logger(__name__)

# an enum is stored in a single byte
MAX_ENUM_MEMBERS = 256

# `struct Vault.Position` -> `struct Position`
QUALIFIED_NAME_RE = re.compile(r"\b(struct|enum) (?:[a-zA-Z$_][a-zA-Z0-9$_]*\.)+")

StorageOperation = Operation[StorageItemDetailed]


class StorageField(Protocol):
    @property
    def label(self) -> str:
        ...

    @property
    def type(self) -> DetailedType:
        ...


F = TypeVar("F", bound=StorageField)

# results of `types_match` keyed by the compared type identifiers,
# valid only for one pair of detailed layouts
TypeMatchCache = Dict[Tuple[str, str], bool]


def match_storage_field(
    original: StorageField,
    updated: StorageField,
    cache: Optional[TypeMatchCache] = None,
) -> OperationKind:
    """
    Classify a pair of storage variables (or struct members) by comparing their names and types.
    """
    name_matches = original.label == updated.label
    type_matches = types_match(original.type, updated.type, cache)

    if type_matches and name_matches:
        return OperationKind.EQUAL
    elif type_matches:
        return OperationKind.RENAME
    elif name_matches:
        return OperationKind.TYPECHANGE
    else:
        return OperationKind.REPLACE


def types_match(
    original: DetailedType,
    updated: DetailedType,
    cache: Optional[TypeMatchCache] = None,
) -> bool:
    """
    Structural type equality. AST ids embedded in type identifiers are ignored,
    types are compared by their head, type string and (recursively) by the types they contain.

    Args:
        original: Type from the original layout.
        updated: Type from the updated layout.
        cache: Results of previous comparisons between the same two layouts.
            Every type identifier maps to a single `DetailedType` within a layout, so results can be reused by id.
    """
    if original is updated:
        return True
    if cache is None:
        cache = {}

    key = (original.id, updated.id)
    if key not in cache:
        cache[key] = _types_match(original, updated, cache)
    return cache[key]


def _types_match(
    original: DetailedType, updated: DetailedType, cache: TypeMatchCache
) -> bool:
    if original.head != updated.head:
        return False
    if _unqualified(original.item.label) != _unqualified(updated.item.label):
        return False
    if not _type_lists_match(original.args, updated.args, cache):
        return False
    if not _type_lists_match(original.rets, updated.rets, cache):
        return False
    return _members_match(original.item.members, updated.item.members, cache)


def _unqualified(label: str) -> str:
    # the declaring contract may be renamed between versions
    return QUALIFIED_NAME_RE.sub(r"\1 ", label)


def _type_lists_match(
    original: Optional[Tuple[DetailedType, ...]],
    updated: Optional[Tuple[DetailedType, ...]],
    cache: TypeMatchCache,
) -> bool:
    if original is None or updated is None:
        return original is updated
    if len(original) != len(updated):
        return False
    return all(types_match(o, u, cache) for o, u in zip(original, updated))


def _members_match(original, updated, cache: TypeMatchCache) -> bool:
    if original is None or updated is None:
        return original is updated

    if len(original) > 0 and isinstance(original[0], DetailedStructMember):
        # struct members are laid out like storage variables but a struct cannot grow
        ops = levenshtein(
            original, updated, functools.partial(match_storage_field, cache=cache)
        )
        return all(op.kind == OperationKind.EQUAL for op in ops)
    elif len(updated) > 0 and isinstance(updated[0], DetailedStructMember):
        return False
    else:
        # enum values may only be appended
        return (
            len(updated) <= MAX_ENUM_MEMBERS
            and tuple(updated[: len(original)]) == tuple(original)
        )


def get_storage_upgrade_errors_generic(
    original: Sequence[F], updated: Sequence[F], *, can_grow: bool
) -> List[Operation[F]]:
    cache: TypeMatchCache = {}
    ops = levenshtein(
        original, updated, functools.partial(match_storage_field, cache=cache)
    )
    return [
        op
        for op in ops
        if op.kind != OperationKind.EQUAL
        and (not can_grow or op.kind != OperationKind.APPEND)
    ]


def get_storage_upgrade_errors(
    original: StorageLayout,
    updated: StorageLayout,
    allow_custom_type_churn: bool = False,
    *,
    allow_append: bool = True,
) -> List[StorageOperation]:
    """
    Compare two storage layouts.

    Args:
        original: Storage layout of the deployed version.
        updated: Storage layout of the new version.
        allow_custom_type_churn: Ignore type changes of variables whose stabilized type identifiers are equal.
            This silences all changes inside structs and enums and should only be used when the reported changes are known to be noise.
        allow_append: Do not report variables appended after the last original variable.

    Raises:
        RecursionDetected: If a type of either layout (transitively) contains itself.

    Returns:
        All operations that make the upgrade unsafe, in storage order.
    """
    original_detailed = get_detailed_layout(original)
    updated_detailed = get_detailed_layout(updated)
    errors = get_storage_upgrade_errors_generic(
        original_detailed, updated_detailed, can_grow=allow_append
    )

    if allow_custom_type_churn:
        errors = [e for e in errors if not _is_custom_type_churn(e)]

    logger.debug(
        f"Compared {len(original_detailed)} original and {len(updated_detailed)} updated storage variables, {len(errors)} errors"
    )
    return errors


def _is_custom_type_churn(op: StorageOperation) -> bool:
    if op.kind != OperationKind.TYPECHANGE:
        return False
    assert op.original is not None and op.updated is not None
    return stabilize_type_identifier(op.original.type.id) == stabilize_type_identifier(
        op.updated.type.id
    )


def assert_storage_upgrade_safe(
    original: StorageLayout,
    updated: StorageLayout,
    allow_custom_type_churn: bool = False,
    *,
    allow_append: bool = True,
) -> None:
    """
    Same as [get_storage_upgrade_errors][wake_upgrades.storage.get_storage_upgrade_errors] but raises instead of returning the errors.

    Raises:
        StorageUpgradeErrors: If the upgrade is not safe.
        RecursionDetected: If a type of either layout (transitively) contains itself.
    """
    errors = get_storage_upgrade_errors(
        original,
        updated,
        allow_custom_type_churn,
        allow_append=allow_append,
    )
    if len(errors) > 0:
        raise StorageUpgradeErrors(errors)


def check_storage_upgrade(
    original: StorageLayout,
    updated: StorageLayout,
    config: Optional[UpgradesConfig] = None,
) -> None:
    """
    Run [assert_storage_upgrade_safe][wake_upgrades.storage.assert_storage_upgrade_safe] with options taken from the config.
    """
    if config is None:
        assert_storage_upgrade_safe(original, updated)
    else:
        assert_storage_upgrade_safe(
            original,
            updated,
            config.storage.allow_custom_type_churn,
            allow_append=config.storage.allow_append,
        )
