# ldiff_patcher/log.py
from __future__ import annotations
import io, os, sys

from tqdm import tqdm


def log(msg: str) -> None:
    """
    Console log that plays nicely with a running progress bar.
    - tqdm.write keeps the bar at the bottom of the terminal.
    - Fallback to plain print, even if sys.stderr is None (frozen GUI builds).
    """
    try:
        tqdm.write(msg, file=_tqdm_file())
        return
    except Exception:
        pass
    if getattr(sys, "stderr", None) is not None:
        print(msg, file=sys.stderr)
    else:
        print(msg)


def progress(total: int, desc: str) -> tqdm:
    return tqdm(total=total, desc=desc, unit="file", file=_tqdm_file(), disable=_tqdm_disable())


def _tqdm_file():
    """
    Return a file-like object for tqdm to write to.
    When stderr is missing, fall back to a sink.
    """
    f = getattr(sys, "stderr", None)
    return f if (f is not None and hasattr(f, "write")) else io.StringIO()


def _tqdm_disable() -> bool:
    """
    Disable the bar when there is no real stderr.
    Env override: LDIFF_TQDM=0 forces enable, =1 forces disable.
    """
    env = os.environ.get("LDIFF_TQDM")
    if env == "0":
        return False
    if env == "1":
        return True
    f = getattr(sys, "stderr", None)
    return not (f is not None and hasattr(f, "write"))
