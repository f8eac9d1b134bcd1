# ldiff_patcher/verify.py
from __future__ import annotations
import hashlib
from dataclasses import dataclass
from pathlib import Path

from .errors import ReadError

CHUNK = 1024 * 1024


@dataclass(frozen=True)
class HashCheck:
    ok: bool
    actual: str
    expected: str
    size: int | None = None

    def __bool__(self) -> bool:
        return self.ok


def _digest(p: str | Path) -> tuple[str, int]:
    h = hashlib.md5()
    size = 0
    try:
        with Path(p).open("rb") as f:
            for chunk in iter(lambda: f.read(CHUNK), b""):
                h.update(chunk)
                size += len(chunk)
    except OSError as e:
        raise ReadError(f"error reading {p}: {e}") from e
    return h.hexdigest(), size


def md5_file(p: str | Path) -> str:
    """Hex MD5 of a file, streamed in 1 MiB chunks."""
    return _digest(p)[0]


def verify_file(p: str | Path, expected: str) -> HashCheck:
    """Only the hash decides; the byte count is carried along for reporting."""
    actual, size = _digest(p)
    return HashCheck(actual == expected.strip().lower(), actual, expected, size)
