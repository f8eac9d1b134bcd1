# ldiff_patcher/proc.py
from __future__ import annotations
import os, subprocess, threading, time
from typing import Callable

from .errors import Cancelled, PatchTimeout

# Track live processes so Ctrl+C can kill them
_live: set[subprocess.Popen] = set()
_live_lock = threading.Lock()

# Windows flags to hide console windows
CREATE_NO_WINDOW = 0x08000000
STARTF_USESHOWWINDOW = 0x00000001
SW_HIDE = 0


def _startupinfo_windows():
    if os.name != "nt":
        return None
    si = subprocess.STARTUPINFO()
    si.dwFlags |= STARTF_USESHOWWINDOW
    si.wShowWindow = SW_HIDE
    return si


def _reader(pipe, sink: list[str], on_line: Callable[[str], None] | None) -> None:
    """Drain one pipe line by line; undecodable bytes are replaced, not fatal."""
    try:
        for raw in iter(pipe.readline, b""):
            line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            sink.append(line)
            if on_line and line:
                on_line(line)
    finally:
        pipe.close()


def _stop(p: subprocess.Popen) -> None:
    p.terminate()
    try:
        p.wait(timeout=0.5)
    except subprocess.TimeoutExpired:
        p.kill()
        p.wait()


def run_quiet(cmd: list[str],
              cwd: str | None = None,
              timeout: float | None = None,
              cancel_event: threading.Event | None = None,
              poll_interval: float = 0.05,
              on_stderr: Callable[[str], None] | None = None) -> subprocess.CompletedProcess:
    """
    Spawn a process with no console window (on Windows), forward its stderr
    line by line via on_stderr, and wait for it to exit.
    stdout is drained and discarded. The exit code is returned, never checked.
    Raises OSError if the process cannot be spawned, PatchTimeout when
    `timeout` seconds pass, Cancelled when cancel_event is set.
    """
    p = subprocess.Popen(
        cmd, cwd=cwd, shell=False,
        stdin=subprocess.DEVNULL, stdout=subprocess.DEVNULL, stderr=subprocess.PIPE,
        startupinfo=_startupinfo_windows(),
        creationflags=CREATE_NO_WINDOW if os.name == "nt" else 0,
    )
    with _live_lock:
        _live.add(p)

    err_lines: list[str] = []
    t_err = threading.Thread(target=_reader, args=(p.stderr, err_lines, on_stderr), daemon=True)
    t_err.start()
    deadline = time.monotonic() + timeout if timeout else None

    try:
        while p.poll() is None:
            if cancel_event and cancel_event.is_set():
                _stop(p)
                raise Cancelled()
            if deadline is not None and time.monotonic() >= deadline:
                _stop(p)
                raise PatchTimeout(cmd, timeout)
            time.sleep(poll_interval)

        t_err.join(timeout=0.5)
        return subprocess.CompletedProcess(cmd, p.returncode, None, "\n".join(err_lines))
    finally:
        with _live_lock:
            _live.discard(p)


def kill_all() -> None:
    """Force-kill all tracked child processes (used on Ctrl+C)."""
    with _live_lock:
        procs = list(_live)
    for p in procs:
        if p.poll() is None:
            try:
                _stop(p)
            except OSError:
                pass
    with _live_lock:
        _live.clear()
