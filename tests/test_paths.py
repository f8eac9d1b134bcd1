import pytest

from ldiff_patcher.errors import UnsafePath
from ldiff_patcher.paths import Layout, group_key, relative_name


@pytest.mark.parametrize("name, expected", [
    ("a/b.bin", "a/b.bin"),
    ("/a/b.bin", "a/b.bin"),
    ("\\a\\b.bin", "a/b.bin"),
    ("a//./b.bin", "a/b.bin"),
    ("StreamingAssets\\Asb\\x.block", "StreamingAssets/Asb/x.block"),
])
def test_names_become_relative(name, expected):
    assert relative_name(name) == expected


@pytest.mark.parametrize("name", ["", "/", ".", "..", "a/../../f.bin", "..\\f.bin", "C:/f.bin", "C:f.bin"])
def test_escaping_names_are_refused(name):
    with pytest.raises(UnsafePath):
        relative_name(name)


def test_layout_stays_inside_its_folders(tmp_path):
    layout = Layout.for_game(tmp_path / "game", tmp_path / "work")
    victim = str(tmp_path / "outside" / "victim.bin")
    assert layout.publish_file(victim).is_relative_to(layout.output_dir)
    assert layout.candidate_file(victim).is_relative_to(layout.staging_dir)
    assert layout.diff_file(victim).is_relative_to(layout.staging_dir)
    assert layout.base_file(victim).is_relative_to(layout.game_dir)
    with pytest.raises(UnsafePath):
        layout.publish_file("a/../../../f.bin")


def test_group_key_joins_names_sharing_staging_files():
    assert group_key("a/b.bin") == group_key("/a/./b.bin")
    assert group_key("a/b.bin") == group_key("a/b.bin.hdiff")
    assert group_key("a/b.bin") == group_key("A/B.BIN")
    assert group_key("a/b.bin") != group_key("a/c.bin")
