import pytest

from ldiff_patcher.errors import FatalStartupError
from ldiff_patcher.patterns import PatternFilter, load_patterns, parse_patterns


@pytest.mark.parametrize("name, expected", [
    ("a.txt", True),
    ("abc.txt", True),
    ("xabc.txt", False),
    ("abc.txt.bak", False),
    ("a/b.txt", True),
])
def test_star_is_multichar_and_anchored(name, expected):
    assert PatternFilter(["a*.txt"]).matches(name) is expected


def test_literal_pattern_is_exact():
    f = PatternFilter(["data/file.bin"])
    assert f.matches("data/file.bin")
    assert not f.matches("data/fileXbin")
    assert not f.matches("data/file.bin2")
    assert not f.matches("xdata/file.bin")


def test_regex_metacharacters_are_literal():
    f = PatternFilter(["a+b(1)?.dat"])
    assert f.matches("a+b(1)?.dat")
    assert not f.matches("aab1.dat")


def test_any_pattern_may_match():
    f = PatternFilter(["*.pak", "StreamingAssets/*"])
    assert f.matches("x.pak")
    assert f.matches("StreamingAssets/Video/intro.usm")
    assert not f.matches("x.pck")


def test_empty_list_matches_nothing():
    f = PatternFilter([])
    assert not f.matches("")
    assert not f.matches("anything")


def test_parse_trims_and_drops_blank_lines():
    assert parse_patterns("  a/*.bin \n\n\t\nb.txt\r\n") == ["a/*.bin", "b.txt"]


def test_load_patterns_echoes_each_pattern(tmp_path, capsys):
    p = tmp_path / "list.txt"
    p.write_text("a/*.bin\n\nb.txt\n", encoding="utf-8")
    f = load_patterns(p)
    assert f.patterns == ["a/*.bin", "b.txt"]
    err = capsys.readouterr().err
    assert "Path 1: a/*.bin" in err
    assert "Path 2: b.txt" in err


def test_missing_pattern_list_is_fatal(tmp_path):
    with pytest.raises(FatalStartupError):
        load_patterns(tmp_path / "nope.txt")
