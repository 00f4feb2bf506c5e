from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, List, Optional, Sequence, TypeVar

from wake_upgrades.utils import StrEnum

T = TypeVar("T")


class OperationKind(StrEnum):
    """
    Kind of an edit operation produced by [levenshtein][wake_upgrades.levenshtein.levenshtein].
    """

    EQUAL = "equal"
    RENAME = "rename"
    """Same type, different name."""
    TYPECHANGE = "typechange"
    """Same name, different type."""
    REPLACE = "replace"
    """Different name and different type."""
    INSERT = "insert"
    DELETE = "delete"
    APPEND = "append"
    """Insertion after the last element of the original sequence."""


SUBSTITUTION_KINDS = frozenset(
    {
        OperationKind.EQUAL,
        OperationKind.RENAME,
        OperationKind.TYPECHANGE,
        OperationKind.REPLACE,
    }
)

SUBSTITUTION_COST = 3
INSERTION_COST = 2
DELETION_COST = 2


@dataclass(frozen=True)
class Operation(Generic[T]):
    """
    Single edit operation. Substitutions carry both `original` and `updated`,
    [DELETE][wake_upgrades.levenshtein.OperationKind.DELETE] carries only `original`,
    [INSERT][wake_upgrades.levenshtein.OperationKind.INSERT] and [APPEND][wake_upgrades.levenshtein.OperationKind.APPEND] carry only `updated`.
    """

    kind: OperationKind
    original: Optional[T] = None
    updated: Optional[T] = None


Match = Callable[[T, T], OperationKind]


@dataclass(frozen=True)
class _Cell:
    cost: int
    kind: OperationKind  # last operation of the cheapest edit script ending in this cell


def levenshtein(
    original: Sequence[T], updated: Sequence[T], match: Match[T]
) -> List[Operation[T]]:
    """
    Compute the cheapest edit script transforming `original` into `updated`.

    Pairs are scored by `match`: [EQUAL][wake_upgrades.levenshtein.OperationKind.EQUAL] substitutions are free,
    all other substitutions cost `SUBSTITUTION_COST`. Insertions and deletions cost `INSERTION_COST` and `DELETION_COST`.
    When several scripts have the same cost, [EQUAL][wake_upgrades.levenshtein.OperationKind.EQUAL] substitutions win,
    otherwise insertions win over deletions and deletions over other substitutions.

    Insertions behind the last original element are reported as [APPEND][wake_upgrades.levenshtein.OperationKind.APPEND].

    Args:
        original: Original sequence.
        updated: Updated sequence.
        match: Classifies a pair of elements, must return one of `equal`, `rename`, `typechange` and `replace`.

    Returns:
        Edit operations in sequence order, including `equal` operations.
    """
    matrix = _build_matrix(original, updated, match)
    return _walk_matrix(matrix, original, updated)


def _build_matrix(
    a: Sequence[T], b: Sequence[T], match: Match[T]
) -> List[List[_Cell]]:
    matrix: List[List[_Cell]] = []

    for i in range(len(a) + 1):
        row: List[_Cell] = []
        for j in range(len(b) + 1):
            if i == 0 and j == 0:
                cell = _Cell(0, OperationKind.EQUAL)
            elif i == 0:
                cell = _Cell(row[j - 1].cost + INSERTION_COST, OperationKind.INSERT)
            elif j == 0:
                cell = _Cell(
                    matrix[i - 1][j].cost + DELETION_COST, OperationKind.DELETE
                )
            else:
                kind = match(a[i - 1], b[j - 1])
                assert kind in SUBSTITUTION_KINDS, f"Invalid substitution kind {kind}"
                substitution_cost = (
                    0 if kind == OperationKind.EQUAL else SUBSTITUTION_COST
                )

                substitution = _Cell(
                    matrix[i - 1][j - 1].cost + substitution_cost, kind
                )
                deletion = _Cell(
                    matrix[i - 1][j].cost + DELETION_COST, OperationKind.DELETE
                )
                insertion = _Cell(row[j - 1].cost + INSERTION_COST, OperationKind.INSERT)

                # order of candidates defines the tie-break
                if kind == OperationKind.EQUAL:
                    candidates = (substitution, insertion, deletion)
                else:
                    candidates = (insertion, deletion, substitution)
                cell = min(candidates, key=lambda c: c.cost)
            row.append(cell)
        matrix.append(row)

    return matrix


def _walk_matrix(
    matrix: List[List[_Cell]], a: Sequence[T], b: Sequence[T]
) -> List[Operation[T]]:
    operations: List[Operation[T]] = []
    i = len(a)
    j = len(b)

    while i > 0 or j > 0:
        kind = matrix[i][j].kind

        if kind == OperationKind.INSERT:
            operations.append(
                Operation(
                    OperationKind.APPEND if i == len(a) else OperationKind.INSERT,
                    updated=b[j - 1],
                )
            )
            j -= 1
        elif kind == OperationKind.DELETE:
            operations.append(Operation(OperationKind.DELETE, original=a[i - 1]))
            i -= 1
        else:
            operations.append(Operation(kind, original=a[i - 1], updated=b[j - 1]))
            i -= 1
            j -= 1

    operations.reverse()
    return operations
