from .context_managers import change_cwd
from .enums import StrEnum
from .string import StringReader
