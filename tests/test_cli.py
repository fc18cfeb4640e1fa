import h5py
import pytest
from click.testing import CliRunner

from nexplore import cli


@pytest.fixture
def runner(monkeypatch):
    for name in ("NEXPLORE_DEBUG", "NEXPLORE_SEARCH_ATTRS", "NEXPLORE_IGNORE_CASE", "NEXPLORE_EXPAND_LIMIT"):
        monkeypatch.delenv(name, raising=False)
    return CliRunner()


def test_missing_argument_is_usage_error(runner):
    result = runner.invoke(cli.main, [])
    assert result.exit_code == 2


def test_directory_is_usage_error(runner, tmp_path):
    result = runner.invoke(cli.main, [str(tmp_path)])
    assert result.exit_code == 2


def test_bad_expand_limit_is_usage_error(runner, tmp_path):
    result = runner.invoke(cli.main, [str(tmp_path / "x.h5"), "--expand-limit", "0"])
    assert result.exit_code == 2


def test_missing_file_exits_1(runner, tmp_path):
    result = runner.invoke(cli.main, [str(tmp_path / "missing.h5")])
    assert result.exit_code == 1


def test_non_hdf5_file_exits_1(runner, tmp_path):
    path = tmp_path / "plain.txt"
    path.write_text("hello")
    result = runner.invoke(cli.main, [str(path)])
    assert result.exit_code == 1


def test_normal_quit_exits_0(runner, tmp_path, monkeypatch):
    path = tmp_path / "ok.h5"
    with h5py.File(path, "w") as f:
        f.create_group("entry")
    seen = {}

    def fake_run(self):
        seen["engine"] = self.engine

    monkeypatch.setattr(cli.ExplorerApp, "run", fake_run)
    result = runner.invoke(cli.main, [str(path), "--ignore-case", "--expand-limit", "7"])
    assert result.exit_code == 0
    engine = seen["engine"]
    assert engine.search.ignore_case
    assert not engine.search.search_attributes
    assert engine.config.expand_all_limit == 7
    assert [engine.store.node(c).name for c in engine.store.root.children] == ["entry"]
