# ldiff_patcher/system.py
from __future__ import annotations
import shutil
from pathlib import Path

import psutil

from .log import log


def check_resources(work_dir: str | Path, min_ram_gb: float = 1, min_disk_gb: float = 2) -> None:
    """Warn (never fail) when memory or staging disk space looks tight."""
    mem = psutil.virtual_memory().available / (1024**3)
    p = Path(work_dir)
    while not p.exists() and p != p.parent:
        p = p.parent
    disk = shutil.disk_usage(p).free / (1024**3)
    if mem < min_ram_gb:
        log(f"WARNING: Low memory ({mem:.1f} GB available)")
    if disk < min_disk_gb:
        log(f"WARNING: Low disk space in {p} ({disk:.1f} GB free)")


def optimal_threads(cap: int = 8) -> int:
    # one hpatchz per physical core, leave one free; 1GB per worker
    cores = max(psutil.cpu_count(logical=False) or 1, 1)
    ram_gb = psutil.virtual_memory().total / (1024**3)
    by_ram = max(1, int(ram_gb))
    by_cpu = max(1, cores - 1)
    return max(1, min(by_ram, by_cpu, cap))
