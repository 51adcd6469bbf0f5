# graphdump/sink.py
from __future__ import annotations

from typing import Optional, TextIO

__all__ = ["TextSink"]


class TextSink:
    """
    Indentation-aware text accumulator.

    Every output unit goes on its own line, indented by the current depth.
    The very first unit is written without a leading newline, so the finished
    text has neither leading nor trailing line terminators.
    """

    SPACES_PER_INDENT = 2

    def __init__(self, out: TextIO) -> None:
        self.out = out
        self.indent = 0
        self.is_first = True

    def output(self, label: Optional[str], text: str) -> None:
        self._emit_newline_and_indent()
        if label is not None:
            self.out.write(label)
        self.out.write(text)

    def open_aggregate(self, label: Optional[str], header: str) -> None:
        self.output(label, header + " [")
        self.indent += self.SPACES_PER_INDENT

    def complete_aggregate(self) -> None:
        self.indent -= self.SPACES_PER_INDENT
        # An aggregate was opened before, so this is never the first unit.
        self.out.write("\n" + " " * self.indent + "]")

    def _emit_newline_and_indent(self) -> None:
        if self.is_first:
            self.is_first = False
            return
        self.out.write("\n" + " " * self.indent)
