import os

import pytest

from ldiff_patcher import extract
from ldiff_patcher.errors import ExtractionError, NoSegmentAvailable, SegmentNotFound
from ldiff_patcher.extract import container_path, extract_first_available, extract_segment
from ldiff_patcher.manifest import ManifestEntry, PatchSegment


@pytest.fixture
def containers(game):
    d = game / "ldiff"
    (d / "X").write_bytes(bytes(range(256)) * 4)
    (d / "Y").write_bytes(b"yyyy-payload-yyyy")
    return d


@pytest.mark.parametrize("offset, size", [(0, 10), (7, 1), (250, 300), (1023, 1), (512, 0)])
def test_extraction_is_byte_exact(containers, tmp_path, offset, size):
    out = tmp_path / "hdiff" / "a" / "b.bin.hdiff"
    extract_segment(containers, PatchSegment("X", offset, size), out)
    blob = (containers / "X").read_bytes()
    assert out.read_bytes() == blob[offset:offset + size]
    assert out.stat().st_size == size


def test_large_range_is_streamed(tmp_path, monkeypatch, containers):
    monkeypatch.setattr(extract, "CHUNK", 7)
    out = tmp_path / "out.hdiff"
    extract_segment(containers, PatchSegment("X", 3, 100), out)
    assert out.read_bytes() == (containers / "X").read_bytes()[3:103]


def test_existing_diff_is_overwritten(containers, tmp_path):
    out = tmp_path / "out.hdiff"
    out.write_bytes(b"old contents that are longer")
    extract_segment(containers, PatchSegment("Y", 5, 7), out)
    assert out.read_bytes() == b"payload"


def test_missing_container(containers, tmp_path):
    with pytest.raises(SegmentNotFound) as exc:
        extract_segment(containers, PatchSegment("nope", 0, 1), tmp_path / "out")
    assert exc.value.container_id == "nope"
    assert not (tmp_path / "out").exists()


@pytest.mark.parametrize("cid", ["", ".", "..", "../X", "sub/X"])
def test_ids_must_be_bare_names(containers, cid):
    (containers / "sub").mkdir()
    (containers / "sub" / "X").write_bytes(b"x")
    assert container_path(containers, cid) is None


def test_short_container_leaves_nothing_behind(containers, tmp_path):
    out = tmp_path / "stage" / "out.hdiff"
    with pytest.raises(ExtractionError):
        extract_segment(containers, PatchSegment("Y", 10, 100), out)
    assert not out.exists()
    assert os.listdir(out.parent) == []


def test_first_present_container_wins(containers, tmp_path, monkeypatch):
    calls = []
    real = extract.extract_segment

    def spy(container_dir, segment, out_path):
        calls.append(segment.container_id)
        return real(container_dir, segment, out_path)

    monkeypatch.setattr(extract, "extract_segment", spy)
    entry = ManifestEntry("a.bin", "h", 1, (
        PatchSegment("missing", 0, 1),
        PatchSegment("Y", 0, 4),
        PatchSegment("X", 0, 4),
    ))
    out = tmp_path / "a.bin.hdiff"
    chosen = extract_first_available(entry, containers, out)
    assert chosen == PatchSegment("Y", 0, 4)
    assert calls == ["missing", "Y"]
    assert out.read_bytes() == b"yyyy"


def test_no_present_container(containers, tmp_path):
    entry = ManifestEntry("a.bin", "h", 1, (PatchSegment("A", 0, 1), PatchSegment("B", 0, 1)))
    with pytest.raises(NoSegmentAvailable) as exc:
        extract_first_available(entry, containers, tmp_path / "out")
    assert exc.value.tried == 2
