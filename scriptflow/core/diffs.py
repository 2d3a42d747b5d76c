"""Unified diffs over script content.

Content is treated as a list of lines split on ``\\n`` so that
``"\\n".join(lines)`` restores it exactly, trailing newline included.
"""
from __future__ import annotations

import re
from difflib import unified_diff
from typing import List, Tuple

_HUNK_HEADER = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")


class DiffApplyError(ValueError):
    """The diff does not match the content it is applied to."""


def make_unified_diff(original: str, updated: str, name: str = "script") -> str:
    """Return a unified diff turning ``original`` into ``updated`` ("" if equal)."""
    lines = unified_diff(
        original.split("\n"),
        updated.split("\n"),
        fromfile=f"a/{name}",
        tofile=f"b/{name}",
        lineterm="",
    )
    return "\n".join(lines)


def _parse_hunks(diff: str) -> List[Tuple[int, int, int, List[str]]]:
    hunks: List[Tuple[int, int, int, List[str]]] = []
    current = None
    for line in diff.split("\n"):
        match = _HUNK_HEADER.match(line)
        if match:
            old_start = int(match.group(1))
            old_len = int(match.group(2)) if match.group(2) is not None else 1
            new_len = int(match.group(4)) if match.group(4) is not None else 1
            current = (old_start, old_len, new_len, [])
            hunks.append(current)
        elif current is None:
            # file headers ("---", "+++", "diff", "index") before the first hunk
            continue
        else:
            current[3].append(line)
    return hunks


def apply_unified_diff(original: str, diff: str) -> str:
    """Apply a unified diff to ``original`` and return the new content.

    Every context and removed line must match exactly; otherwise
    ``DiffApplyError`` is raised and nothing is returned.
    """
    if not diff.strip():
        return original

    source = original.split("\n")
    hunks = _parse_hunks(diff)
    if not hunks:
        raise DiffApplyError("diff contains no hunks")

    output: List[str] = []
    pos = 0
    for old_start, old_len, new_len, body in hunks:
        # a zero-length old range names the line *after which* to insert
        start = old_start - 1 if old_len > 0 else old_start
        if start < pos or start > len(source):
            raise DiffApplyError(f"hunk at line {old_start} is out of order or out of range")
        output.extend(source[pos:start])
        pos = start

        consumed = produced = 0
        for line in body:
            if consumed == old_len and produced == new_len:
                break
            tag, text = (line[:1], line[1:]) if line else (" ", "")
            if tag in (" ", "-"):
                if pos >= len(source) or source[pos] != text:
                    raise DiffApplyError(f"content mismatch at line {pos + 1}")
                pos += 1
                consumed += 1
                if tag == " ":
                    output.append(text)
                    produced += 1
            elif tag == "+":
                output.append(text)
                produced += 1
            elif tag == "\\":
                continue
            else:
                raise DiffApplyError(f"unexpected diff line: {line!r}")

        if consumed != old_len or produced != new_len:
            raise DiffApplyError(f"hunk at line {old_start} is truncated")

    output.extend(source[pos:])
    return "\n".join(output)
