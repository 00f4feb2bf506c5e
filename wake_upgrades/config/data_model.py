from pathlib import Path
from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.functional_validators import BeforeValidator
from typing_extensions import Annotated


class UpgradesConfigModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
    )


class StorageConfig(UpgradesConfigModel):
    allow_custom_type_churn: bool = False
    """
    Do not report type changes of storage variables whose type identifiers differ only in AST ids.
    Changes inside structs and enums are not reported either.
    """
    allow_append: bool = True
    """
    Allow new storage variables after the last original variable.
    """


class GeneralConfig(UpgradesConfigModel):
    link_format: str = "vscode://file/{path}:{line}:{col}"
    """
    Format of links to source files used when printing storage errors.
    """


class TopLevelConfig(UpgradesConfigModel):
    subconfigs: List[Annotated[Path, BeforeValidator(lambda p: Path(p).resolve())]] = []
    storage: StorageConfig = Field(default_factory=StorageConfig)
    general: GeneralConfig = Field(default_factory=GeneralConfig)
