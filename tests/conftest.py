import hashlib
import sys
import textwrap
from pathlib import Path

import pytest

from ldiff_patcher.manifest import RootMessage
from ldiff_patcher.paths import Layout

EMPTY_MD5 = "d41d8cd98f00b204e9800998ecf8427e"

# Every fake diff starts with a 10 byte header; the rest is the new file content.
HEADER_OK = b"FAKEHDIFF:"
HEADER_EXIT3 = b"FAKEEXIT3:"
HEADER_FAIL = b"FAKEFAIL!:"
HEADER_SLEEP = b"FAKESLEEP:"

FAKE_HPATCHZ = textwrap.dedent('''
    import sys, time
    base, diff, out, *rest = sys.argv[1:]
    if rest != ["-f"]:
        sys.stderr.write("usage: base diff out -f\\n")
        sys.exit(9)
    with open(base, "rb") as f:
        f.read()
    with open(diff, "rb") as f:
        payload = f.read()
    header, body = payload[:10], payload[10:]
    if header == b"FAKESLEEP:":
        time.sleep(30)
    if header == b"FAKEFAIL!:":
        sys.stderr.write("patch failed, no output\\n")
        sys.exit(4)
    with open(out, "wb") as f:
        f.write(body)
    sys.stderr.write("patch ok\\n")
    sys.exit(3 if header == b"FAKEEXIT3:" else 0)
''')


def md5(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()


@pytest.fixture
def fake_hpatchz(tmp_path):
    script = tmp_path / "fake_hpatchz.py"
    script.write_text(FAKE_HPATCHZ, encoding="utf-8")
    return [sys.executable, str(script)]


@pytest.fixture
def game(tmp_path) -> Path:
    d = tmp_path / "game"
    (d / "ldiff").mkdir(parents=True)
    return d


@pytest.fixture
def layout(tmp_path, game) -> Layout:
    return Layout.for_game(game, tmp_path / "work")


@pytest.fixture
def make_manifest():
    """Serialize rows of (fileName, fileHash, size, [[(id, offset, size), ...], ...])."""
    def _make(rows) -> bytes:
        root = RootMessage()
        for name, file_hash, size, groups in rows:
            m = root.manifests.add(fileName=name, fileHash=file_hash, size=size)
            for group in groups:
                fd = m.fileData.add()
                for cid, offset, seg_size in group:
                    fd.patchInfo.add(id=cid, offset=offset, size=seg_size)
        return root.SerializeToString()
    return _make
