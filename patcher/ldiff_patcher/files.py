# ldiff_patcher/files.py
from __future__ import annotations
import os, threading
from pathlib import Path

from .errors import MoveError


def ensure_parent(p: Path) -> None:
    p.parent.mkdir(parents=True, exist_ok=True)


def tmp_path_for(dst: Path) -> Path:
    """Sibling temp name, so the final os.replace stays on one volume."""
    return dst.with_name(f".{dst.name}.{os.getpid()}.{threading.get_ident()}.part")


def safe_replace(src_tmp: Path, dst: Path) -> None:
    """Atomic replace on same volume (os.replace is atomic on Windows too).
    Caller ensures src_tmp exists and is complete.
    """
    ensure_parent(dst)
    os.replace(str(src_tmp), str(dst))


def publish(src: str | Path, dst: str | Path) -> Path:
    """Move a verified file to its published location. Not retried on failure."""
    src, dst = Path(src), Path(dst)
    try:
        safe_replace(src, dst)
    except OSError as e:
        raise MoveError(f"error moving {src} -> {dst}: {e}") from e
    return dst
