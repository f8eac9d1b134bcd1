# ldiff_patcher/hpatch.py
from __future__ import annotations
import threading
from pathlib import Path
from typing import Sequence

from .errors import PatchProcessError
from .files import ensure_parent
from .log import log
from .paths import default_patcher_cmd
from .proc import run_quiet

FORCE_FLAG = "-f"


def build_command(base_file: str | Path, diff_file: str | Path, out_file: str | Path,
                  patcher: Sequence[str] | None = None) -> list[str]:
    prefix = list(patcher) if patcher else default_patcher_cmd()
    return prefix + [str(base_file), str(diff_file), str(out_file), FORCE_FLAG]


def apply_patch(base_file: str | Path, diff_file: str | Path, out_file: str | Path,
                patcher: Sequence[str] | None = None,
                timeout: float | None = None,
                cancel_event: threading.Event | None = None) -> int:
    """
    Run hpatchz base + diff -> out and wait for it to exit.
    A missing base file is left for hpatchz to report; no output means no match.
    Returns the exit code; whether the output is any good is decided by
    its hash, not by this number.
    """
    out_file = Path(out_file)
    ensure_parent(out_file)

    cmd = build_command(base_file, diff_file, out_file, patcher)
    name = out_file.name
    try:
        res = run_quiet(cmd, timeout=timeout, cancel_event=cancel_event,
                        on_stderr=lambda line: log(f"[hpatchz] {name}: {line}"))
    except OSError as e:
        raise PatchProcessError(f"cannot start {cmd[0]}: {e}") from e

    if res.returncode != 0:
        log(f"[hpatchz] {name}: exited with code {res.returncode}")
    return res.returncode
