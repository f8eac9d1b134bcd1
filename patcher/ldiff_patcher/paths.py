# ldiff_patcher/paths.py
from __future__ import annotations
import os, shlex, sys
from dataclasses import dataclass
from pathlib import Path

from .errors import UnsafePath

# Where the package code lives (…/ldiff_patcher)
PKG_ROOT: Path = Path(__file__).resolve().parent

# Where the bundled files live at runtime:
# - Frozen: sys._MEIPASS (top of the extracted bundle)
# - Dev: project root (one level above ldiff_patcher/)
if getattr(sys, "frozen", False) and hasattr(sys, "_MEIPASS"):
    APP_ROOT: Path = Path(sys._MEIPASS)
else:
    APP_ROOT: Path = PKG_ROOT.parent

# ---- Binaries (top-level bin/) ----
BIN_DIR: Path     = APP_ROOT / "bin"
HPATCHZ_EXE: str  = str(BIN_DIR / ("hpatchz.exe" if os.name == "nt" else "hpatchz"))
HPATCHZ_ENV: str  = "LDIFF_HPATCHZ"

# ---- Fixed names ----
CONTAINER_SUBDIR: str = "ldiff"     # under the game folder
STAGING_SUBDIR: str   = "hdiff"     # under the working dir
OUTPUT_SUBDIR: str    = "output"    # under the working dir
PATTERN_FILE: str     = "list.txt"
MANIFEST_JSON: str    = "manifest.json"
DIFF_SUFFIX: str      = ".hdiff"


def default_patcher_cmd() -> list[str]:
    """hpatchz command prefix; LDIFF_HPATCHZ may hold a full command line."""
    env = os.environ.get(HPATCHZ_ENV)
    if env:
        return shlex.split(env, posix=os.name != "nt")
    return [HPATCHZ_EXE]


def relative_name(file_name: str) -> str:
    """Manifest file name as a relative POSIX path. Absolute, drive and '..' names raise UnsafePath."""
    parts = [p for p in file_name.replace("\\", "/").split("/") if p not in ("", ".")]
    if not parts or ".." in parts or ":" in parts[0]:
        raise UnsafePath(file_name)
    return "/".join(parts)


def group_key(file_name: str) -> str:
    """Entries sharing this key touch the same staging files and must not run concurrently."""
    key = relative_name(file_name)
    while key.endswith(DIFF_SUFFIX):
        key = key[: -len(DIFF_SUFFIX)]
    return key.casefold()


@dataclass(frozen=True)
class Layout:
    game_dir: Path
    container_dir: Path
    staging_dir: Path
    output_dir: Path

    @classmethod
    def for_game(cls, game_dir: str | Path, work_dir: str | Path = ".") -> "Layout":
        game_dir, work_dir = Path(game_dir), Path(work_dir)
        return cls(
            game_dir=game_dir,
            container_dir=game_dir / CONTAINER_SUBDIR,
            staging_dir=work_dir / STAGING_SUBDIR,
            output_dir=work_dir / OUTPUT_SUBDIR,
        )

    def base_file(self, file_name: str) -> Path:
        return self.game_dir / relative_name(file_name)

    def diff_file(self, file_name: str) -> Path:
        return self.staging_dir / (relative_name(file_name) + DIFF_SUFFIX)

    def candidate_file(self, file_name: str) -> Path:
        return self.staging_dir / relative_name(file_name)

    def publish_file(self, file_name: str) -> Path:
        return self.output_dir / relative_name(file_name)


__all__ = [
    "PKG_ROOT", "APP_ROOT", "BIN_DIR",
    "HPATCHZ_EXE", "HPATCHZ_ENV",
    "CONTAINER_SUBDIR", "STAGING_SUBDIR", "OUTPUT_SUBDIR",
    "PATTERN_FILE", "MANIFEST_JSON", "DIFF_SUFFIX",
    "default_patcher_cmd", "relative_name", "group_key", "Layout",
]
