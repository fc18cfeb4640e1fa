from types import SimpleNamespace

from nexplore.config import DEFAULT_EXPAND_ALL_LIMIT, ExplorerConfig
from nexplore.errors import FetchFailedError, InvalidPatternError, ReadError
from nexplore.formatting import format_attr_value, format_shape, format_size
from nexplore.keymap import Key, KeyEvent, translate_key
from nexplore.provider import base_name, join_path


def test_format_size():
    assert format_size(None) == "?"
    assert format_size(0) == "0 bytes"
    assert format_size(1500) == "1.5 kB"


def test_format_shape():
    assert format_shape(()) == "scalar"
    assert format_shape((10, 3)) == "10 × 3"


def test_format_attr_value():
    assert format_attr_value("a\nb") == "a\\nb"
    long = format_attr_value("x" * 500)
    assert len(long) == 200
    assert long.endswith("…")
    assert format_attr_value(2.5) == "2.5"


def test_paths():
    assert join_path("/", "entry") == "/entry"
    assert join_path("/entry", "data") == "/entry/data"
    assert base_name("/entry/data") == "data"
    assert base_name("/") == "/"


def test_error_messages():
    err = FetchFailedError("/entry", ReadError("boom"))
    assert str(err) == "Failed to read '/entry': boom"
    assert str(InvalidPatternError("(", "missing ), unterminated subpattern", 0)) == (
        "Invalid pattern '(': missing ), unterminated subpattern at position 0"
    )


def test_translate_named_and_printable_keys():
    assert translate_key(SimpleNamespace(key="up", character=None)) == KeyEvent(Key.UP)
    assert translate_key(SimpleNamespace(key="ctrl+q", character="\x11")) == KeyEvent(Key.FORCE_QUIT)
    assert translate_key(SimpleNamespace(key="f1", character=None)) == KeyEvent(Key.HELP)
    assert translate_key(SimpleNamespace(key="question_mark", character="?")) == KeyEvent.of_char("?")
    assert translate_key(SimpleNamespace(key="q", character="q")) == KeyEvent.of_char("q")


def test_translate_ignores_modifier_combos():
    assert translate_key(SimpleNamespace(key="ctrl+x", character="\x18")) is None
    assert translate_key(SimpleNamespace(key="f5", character=None)) is None


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("NEXPLORE_SEARCH_ATTRS", "yes")
    monkeypatch.setenv("NEXPLORE_IGNORE_CASE", "0")
    monkeypatch.setenv("NEXPLORE_EXPAND_LIMIT", "12")
    config = ExplorerConfig.from_env()
    assert config.search_attributes
    assert not config.ignore_case
    assert config.expand_all_limit == 12


def test_config_bad_limit_falls_back(monkeypatch):
    monkeypatch.setenv("NEXPLORE_EXPAND_LIMIT", "lots")
    assert ExplorerConfig.from_env().expand_all_limit == DEFAULT_EXPAND_ALL_LIMIT
