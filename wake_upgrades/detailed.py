from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Set, Tuple, Union

from wake_upgrades.core import get_logger

from .errors import RecursionDetected
from .layout import StorageLayout, StructMember
from .type_identifier import ParsedTypeId, parse_type_id

logger = get_logger(__name__)


@dataclass(frozen=True)
class DetailedStructMember:
    label: str
    type: DetailedType


@dataclass(frozen=True)
class DetailedTypeItem:
    label: str
    members: Optional[Union[Tuple[DetailedStructMember, ...], Tuple[str, ...]]] = None


@dataclass(frozen=True)
class DetailedType:
    """
    [ParsedTypeId][wake_upgrades.type_identifier.ParsedTypeId] with all referenced types expanded.
    """

    id: str
    head: str
    item: DetailedTypeItem
    args: Optional[Tuple[DetailedType, ...]] = None
    tail: Optional[str] = None
    rets: Optional[Tuple[DetailedType, ...]] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class StorageItemDetailed:
    contract: str
    label: str
    src: str
    type: DetailedType


class DetailedTypeResolver:
    """
    Expands type identifiers of a single storage layout into [DetailedType][wake_upgrades.detailed.DetailedType] trees.

    Every type identifier is expanded only once, subsequent lookups return the same `DetailedType` instance.
    Types currently being expanded are tracked so that a type containing itself is reported
    as [RecursionDetected][wake_upgrades.errors.RecursionDetected] instead of recursing forever.
    """

    _layout: StorageLayout
    _resolved: Dict[str, DetailedType]
    _path: List[str]
    _on_path: Set[str]

    def __init__(self, layout: StorageLayout):
        self._layout = layout
        self._resolved = {}
        self._path = []
        self._on_path = set()

    def __len__(self) -> int:
        return len(self._resolved)

    @contextmanager
    def _visiting(self, type_identifier: str) -> Iterator[None]:
        self._path.append(type_identifier)
        self._on_path.add(type_identifier)
        try:
            yield
        finally:
            self._on_path.remove(type_identifier)
            self._path.pop()

    def resolve(self, type_identifier: str) -> DetailedType:
        """
        Args:
            type_identifier: Normalized type identifier present in the storage layout.

        Raises:
            RecursionDetected: If the type (transitively) contains itself.

        Returns:
            Expanded type.
        """
        if type_identifier in self._resolved:
            return self._resolved[type_identifier]
        return self._resolve_parsed(parse_type_id(type_identifier))

    def _resolve_parsed(self, parsed: ParsedTypeId) -> DetailedType:
        if parsed.id in self._resolved:
            return self._resolved[parsed.id]
        if parsed.id in self._on_path:
            raise RecursionDetected(self._path + [parsed.id])

        with self._visiting(parsed.id):
            assert (
                parsed.id in self._layout.types
            ), f"Type {parsed.id} not found in storage layout"
            type_item = self._layout.types[parsed.id]

            members = None
            if type_item.members is not None:
                members = tuple(
                    DetailedStructMember(member.label, self.resolve(member.type))
                    if isinstance(member, StructMember)
                    else member
                    for member in type_item.members
                )

            detailed = DetailedType(
                id=parsed.id,
                head=parsed.head,
                item=DetailedTypeItem(type_item.label, members),
                args=tuple(self._resolve_parsed(arg) for arg in parsed.args)
                if parsed.args is not None
                else None,
                tail=parsed.tail,
                rets=tuple(self._resolve_parsed(ret) for ret in parsed.rets)
                if parsed.rets is not None
                else None,
                name=parsed.name,
            )

        self._resolved[parsed.id] = detailed
        return detailed


def get_detailed_layout(layout: StorageLayout) -> List[StorageItemDetailed]:
    """
    Raises:
        RecursionDetected: If any type of the layout (transitively) contains itself.

    Returns:
        Storage items of the layout with expanded types.
    """
    resolver = DetailedTypeResolver(layout)
    ret = [
        StorageItemDetailed(
            contract=item.contract,
            label=item.label,
            src=item.src,
            type=resolver.resolve(item.type),
        )
        for item in layout.storage
    ]
    logger.debug(
        f"Expanded {len(ret)} storage variables using {len(resolver)} distinct types"
    )
    return ret
