"""Hex dumps of byte buffers for debugging output."""

from __future__ import annotations

import sys
from typing import TextIO

_BYTES_PER_LINE = 16


def hex_dump_lines(indentation: str, data: bytes) -> list[str]:
    """Format data as lines of up to 16 upper-case hex bytes.

    Each line starts with the indentation and every byte is followed by a
    space. Empty data yields a single line holding only the indentation.
    """
    if not data:
        return [indentation]
    return [
        indentation + "".join(f"{b:02X} " for b in data[start:start + _BYTES_PER_LINE])
        for start in range(0, len(data), _BYTES_PER_LINE)
    ]


def print_all(
    label: str,
    indentation: str,
    data: bytes | None,
    stream: TextIO | None = None,
) -> None:
    """Write the label, the length and a hex dump of data to stream.

    If data is None only "<label> null" is written. The stream defaults
    to standard error.
    """
    out = sys.stderr if stream is None else stream
    if data is None:
        out.write(f"{label} null\n")
        return
    out.write(f"{label} length {len(data)}\n")
    for line in hex_dump_lines(indentation, data):
        out.write(line + "\n")