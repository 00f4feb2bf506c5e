from .errors import (
    DecodeError,
    RecursionDetected,
    StorageUpgradeErrors,
    UpgradesError,
)
from .layout import StorageItem, StorageLayout, StructMember, TypeItem, extract_storage_layout
from .levenshtein import Operation, OperationKind, levenshtein
from .storage import (
    assert_storage_upgrade_safe,
    check_storage_upgrade,
    get_storage_upgrade_errors,
)
