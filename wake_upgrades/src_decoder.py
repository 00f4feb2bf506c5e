from __future__ import annotations

from bisect import bisect_right
from typing import Dict, List, Mapping, Optional, Tuple

from .ast import SolcNode


class SrcDecoder:
    """
    Converts the `src` attribute of AST nodes (`<byte_offset>:<byte_length>:<file_id>`) into `<source unit name>:<line>`.

    Sources without content are reported as `<source unit name>:@<byte_offset>`.
    """

    _source_unit_names: Dict[int, str]
    _contents: Dict[int, Optional[bytes]]
    _lines_index: Dict[int, List[int]]  # line start byte offsets

    def __init__(self, sources: Mapping[int, Tuple[str, Optional[bytes]]]):
        """
        Args:
            sources: Mapping from file ids (as assigned by the compiler) to source unit names and source code.
        """
        self._source_unit_names = {}
        self._contents = {}
        self._lines_index = {}
        for file_id, (source_unit_name, content) in sources.items():
            self._source_unit_names[file_id] = source_unit_name
            self._contents[file_id] = content

    def _get_line_starts(self, file_id: int) -> Optional[List[int]]:
        if file_id in self._lines_index:
            return self._lines_index[file_id]

        content = self._contents.get(file_id)
        if content is None:
            return None

        prefix_sum = 0
        line_starts = []
        for line in content.splitlines(keepends=True):
            line_starts.append(prefix_sum)
            prefix_sum += len(line)
        self._lines_index[file_id] = line_starts
        return line_starts

    def get_line(self, file_id: int, byte_offset: int) -> Optional[int]:
        """
        Returns:
            One-indexed line number, `None` if the source code is not known.
        """
        line_starts = self._get_line_starts(file_id)
        if line_starts is None:
            return None
        return max(bisect_right(line_starts, byte_offset), 1)

    def __call__(self, node: SolcNode) -> str:
        file_id = node.src.file_id
        source_unit_name = self._source_unit_names.get(file_id, f"<file {file_id}>")
        line = self.get_line(file_id, node.src.byte_offset)
        if line is None:
            return f"{source_unit_name}:@{node.src.byte_offset}"
        return f"{source_unit_name}:{line}"
