# ldiff_patcher/extract.py
from __future__ import annotations
from pathlib import Path

from .errors import ExtractionError, NoSegmentAvailable, SegmentNotFound
from .files import ensure_parent, safe_replace, tmp_path_for
from .log import log
from .manifest import ManifestEntry, PatchSegment

CHUNK = 1024 * 1024


def container_path(container_dir: str | Path, container_id: str) -> Path | None:
    """Path of a present container, or None. Ids must be bare file names."""
    if not container_id or container_id in (".", "..") or "/" in container_id or "\\" in container_id:
        return None
    p = Path(container_dir) / container_id
    return p if p.is_file() else None


def extract_segment(container_dir: str | Path, segment: PatchSegment, out_path: str | Path) -> Path:
    """Copy container bytes [offset, offset+size) to out_path, atomically."""
    src = container_path(container_dir, segment.container_id)
    if src is None:
        raise SegmentNotFound(segment.container_id, str(container_dir))

    out_path = Path(out_path)
    ensure_parent(out_path)
    tmp = tmp_path_for(out_path)
    try:
        with src.open("rb") as f_in, tmp.open("wb") as f_out:
            f_in.seek(segment.offset)
            left = segment.size
            while left:
                chunk = f_in.read(min(CHUNK, left))
                if not chunk:
                    raise ExtractionError(
                        f"{src}: short read, wanted {segment.size} bytes at offset {segment.offset}, "
                        f"got {segment.size - left}")
                f_out.write(chunk)
                left -= len(chunk)
        safe_replace(tmp, out_path)
    except OSError as e:
        raise ExtractionError(f"error extracting from {src}: {e}") from e
    finally:
        if tmp.exists():
            tmp.unlink()

    log(f"extracted {segment.size} bytes from {src} at offset {segment.offset} -> {out_path}")
    return out_path


def extract_first_available(entry: ManifestEntry, container_dir: str | Path,
                            out_path: str | Path) -> PatchSegment:
    """Extract the first segment whose container is present; later ones are never tried."""
    for segment in entry.segments:
        try:
            extract_segment(container_dir, segment, out_path)
        except SegmentNotFound as e:
            log(f"{entry.file_name}: {e}")
            continue
        return segment
    raise NoSegmentAvailable(entry.file_name, len(entry.segments))
