from collections import UserString
from typing import Container


class StringReader(UserString):
    __original: str

    def __init__(self, original: str):
        self.__original = original
        super().__init__(original)

    def read(self, prefix: str) -> None:
        if self.startswith(prefix):
            self.data = self.data[len(prefix) :]
        else:
            raise ValueError(
                f"String does not start with '{prefix}'. Original: {self.__original}"
            )

    def read_until(self, delimiters: Container[str]) -> str:
        """
        Consume characters up to (not including) the first delimiter character or the end of the string.

        Returns:
            Consumed characters.
        """
        for i, c in enumerate(self.data):
            if c in delimiters:
                ret = self.data[:i]
                self.data = self.data[i:]
                return ret
        ret = self.data
        self.data = ""
        return ret

    @property
    def offset(self) -> int:
        """
        Returns:
            Number of characters of the original string consumed so far.
        """
        return len(self.__original) - len(self.data)

    @property
    def original(self) -> str:
        return self.__original
