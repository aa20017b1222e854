"""Elastic tab-stop alignment for tabular CLI output.

Text between tabs is a cell; the text after the last tab on a line is not
part of any column. A column is aligned across each run of consecutive
lines that have a cell in it, so a line without tabs starts a new block.
"""

from __future__ import annotations

from collections.abc import Callable
from io import StringIO
from typing import TextIO


def align(text: str, min_width: int = 0, padding: int = 2, pad_char: str = " ") -> str:
    """Align the tab-separated cells of *text*."""
    lines = text.split("\n")
    rows = [line.split("\t") for line in lines]
    widths: list[list[int]] = [[0] * (len(row) - 1) for row in rows]

    column = 0
    while True:
        has_cell = [len(row) - 1 > column for row in rows]
        if not any(has_cell):
            break
        start = 0
        while start < len(rows):
            if not has_cell[start]:
                start += 1
                continue
            end = start
            while end < len(rows) and has_cell[end]:
                end += 1
            width = max(len(rows[i][column]) + padding for i in range(start, end))
            width = max(width, min_width)
            for i in range(start, end):
                widths[i][column] = width
            start = end
        column += 1

    out = []
    for row, row_widths in zip(rows, widths):
        cells = [cell.ljust(width, pad_char) for cell, width in zip(row, row_widths)]
        out.append("".join(cells) + row[-1])
    return "\n".join(out)


def tabbed_string(write: Callable[[TextIO], None]) -> str:
    """Collect what *write* emits and return it tab-aligned."""
    buf = StringIO()
    write(buf)
    return align(buf.getvalue())
