import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union


@contextmanager
def change_cwd(path: Union[str, Path]) -> Iterator[None]:
    """
    Temporarily change the current working directory. Relative paths in config files are resolved against it.
    """
    previous = Path.cwd()
    os.chdir(path)
    try:
        yield
    finally:
        os.chdir(previous)
