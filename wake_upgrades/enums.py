from wake_upgrades.utils import StrEnum


class ContractKind(StrEnum):
    """
    Kind of a contract definition node.
    """

    CONTRACT = "contract"
    INTERFACE = "interface"
    LIBRARY = "library"


class Mutability(StrEnum):
    """
    Mutability of a variable declaration node.
    Only [MUTABLE][wake_upgrades.enums.Mutability.MUTABLE] state variables occupy storage slots.
    """

    MUTABLE = "mutable"
    IMMUTABLE = "immutable"
    CONSTANT = "constant"


class Visibility(StrEnum):
    EXTERNAL = "external"
    PUBLIC = "public"
    INTERNAL = "internal"
    PRIVATE = "private"


class StateMutability(StrEnum):
    PAYABLE = "payable"
    PURE = "pure"
    NONPAYABLE = "nonpayable"
    VIEW = "view"


class DataLocation(StrEnum):
    """
    Data location of a variable declaration node.
    """

    CALLDATA = "calldata"
    DEFAULT = "default"
    """
    Set when the data location is not specified, which is always the case for state variables.
    """
    MEMORY = "memory"
    STORAGE = "storage"
    TRANSIENT = "transient"
