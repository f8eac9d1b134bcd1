# ldiff_patcher/patterns.py
from __future__ import annotations
import re
from pathlib import Path
from typing import Iterable

from .errors import FatalStartupError
from .log import log


def compile_pattern(pattern: str) -> re.Pattern:
    """Turn a glob-ish pattern into a regex: '*' is any run of chars, the rest is literal."""
    body = ".*".join(re.escape(part) for part in pattern.split("*"))
    return re.compile(body, re.DOTALL)


class PatternFilter:
    def __init__(self, patterns: Iterable[str]):
        self.patterns = [p for p in patterns if p]
        self._compiled = [compile_pattern(p) for p in self.patterns]

    def matches(self, file_name: str) -> bool:
        # whole-name match only; "a*.txt" must not hit "xabc.txt"
        return any(rx.fullmatch(file_name) for rx in self._compiled)

    def __len__(self) -> int:
        return len(self.patterns)

    def __repr__(self) -> str:
        return f"PatternFilter({self.patterns!r})"


def parse_patterns(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


def load_patterns(path: str | Path, echo: bool = True) -> PatternFilter:
    """Read the pattern list (one per line). A missing list is fatal for the run."""
    p = Path(path)
    try:
        raw = p.read_text(encoding="utf-8")
    except OSError as e:
        raise FatalStartupError(f"cannot read pattern list {p}: {e}") from e

    patterns = parse_patterns(raw)
    if echo:
        for i, pat in enumerate(patterns, 1):
            log(f"Path {i}: {pat}")
        if not patterns:
            log(f"pattern list {p} is empty; nothing will be selected")
    return PatternFilter(patterns)
