"""Text helpers for parsing command output."""

import re
from typing import List

_LINE_SPLIT = re.compile(r"\r?\n")


def split_lines(output: str) -> List[str]:
    """Split process output into lines, ignoring surrounding whitespace.

    Empty output yields an empty list rather than ``[""]``.
    """
    output = output.strip()
    if not output:
        return []

    return _LINE_SPLIT.split(output)
