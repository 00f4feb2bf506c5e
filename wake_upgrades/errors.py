from __future__ import annotations

from typing import TYPE_CHECKING, Callable, List, Optional, Sequence

if TYPE_CHECKING:
    from .storage import StorageOperation


class UpgradesError(Exception):
    """
    Base class for all errors raised by wake-upgrades.

    The message is a one-line summary. Details are built lazily (they may be expensive to render)
    and appended to the message when the error is converted to a string.
    """

    message: str
    _details: Optional[Callable[[], str]]

    def __init__(self, message: str, details: Optional[Callable[[], str]] = None):
        self.message = message
        self._details = details
        super().__init__(message)

    def details(self) -> Optional[str]:
        if self._details is None:
            return None
        return self._details()

    def __str__(self) -> str:
        details = self.details()
        if details is None:
            return self.message
        return self.message + "\n\n" + details


class DecodeError(UpgradesError, ValueError):
    """
    A type identifier could not be decoded. Type identifiers are generated by the compiler,
    so this means the compiler output is corrupted or not supported.
    """

    type_identifier: str

    def __init__(self, type_identifier: str, reason: str):
        self.type_identifier = type_identifier
        super().__init__(f"Malformed type identifier `{type_identifier}`: {reason}")


class RecursionDetected(UpgradesError):
    """
    A type references itself (directly or through other types) and cannot be expanded into a finite type tree.
    """

    chain: List[str]

    def __init__(self, chain: Sequence[str]):
        self.chain = list(chain)
        super().__init__(
            f"Recursion found in type `{self.chain[-1]}`",
            lambda: "\n    -> ".join(self.chain),
        )


class StorageUpgradeErrors(UpgradesError):
    """
    The updated storage layout is not compatible with the original one.
    """

    errors: List[StorageOperation]

    def __init__(self, errors: Sequence[StorageOperation]):
        from .report import describe_error

        self.errors = list(errors)
        super().__init__(
            "New storage layout is incompatible due to the following changes",
            lambda: "\n\n".join(describe_error(e) for e in self.errors),
        )
