from __future__ import annotations

import re
from pathlib import Path

import pytest

from ttrack import cli
from ttrack.config import TrackerSettings, get_settings
from ttrack.storage import FileStore, TrackedFile


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("TT_CASCADE_DEFAULTS", raising=False)
    monkeypatch.delenv("TT_LOG_LEVEL", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def _entry(duration: str) -> str:
    return f"  {duration} | Mon Jan 01 2024 | 09:00:00 - 10:30:00"


def test_parser_counts_summarize_flags() -> None:
    args = cli.build_parser().parse_args(["-sss", "logs"])

    assert args.summarize == 3
    assert args.paths == ["logs"]
    assert args.entry is None


def test_manual_entry_appends_verbatim(tmp_path: Path) -> None:
    path = tmp_path / "work" / "log.tt"

    cli.main([str(path), "-e", "lunch"])
    cli.main([str(path), "--entry", "  spaced  "])

    assert FileStore(TrackerSettings()).read(path).entries == ["lunch", "  spaced  "]


def test_summarize_prints_grand_total(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    store = FileStore(TrackerSettings())
    store.write(TrackedFile(path=tmp_path / "a.tt", entries=[_entry("00:45:00")]))
    store.write(TrackedFile(path=tmp_path / "b.tt", entries=[_entry("00:45:00")]))

    cli.main(["-s", str(tmp_path)])

    assert capsys.readouterr().out.splitlines() == ["total: 01:30:00"]


def test_summarize_each_path_separately(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    store = FileStore(TrackerSettings())
    first = tmp_path / "a.tt"
    second = tmp_path / "b.tt"
    store.write(TrackedFile(path=first, entries=[_entry("00:10:00")]))
    store.write(TrackedFile(path=second, entries=[_entry("00:20:00")]))

    cli.main(["-s", str(first), str(second)])

    assert capsys.readouterr().out.splitlines() == ["total: 00:10:00", "total: 00:20:00"]


def test_tracking_requires_single_path(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main([str(tmp_path / "a.tt"), str(tmp_path / "b.tt")])

    assert excinfo.value.code == 2


def test_creation_failure_exits_non_zero(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("file", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.main([str(blocker / "log.tt"), "-e", "lunch"])

    assert excinfo.value.code == 1
    assert "Cannot create tracked file" in capsys.readouterr().err


def test_live_tracking_saves_on_cancel(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    def cancel_immediately(event):
        event.set()
        return lambda: None

    monkeypatch.setattr(cli, "install_signal_handlers", cancel_immediately)
    path = tmp_path / "log.tt"

    cli.main([str(path)])

    entries = FileStore(TrackerSettings()).read(path).entries
    assert len(entries) == 1
    assert re.fullmatch(r"  \d{2}:\d{2}:\d{2} \| .+ \| .+ - .+", entries[0])
    assert entries[0] in capsys.readouterr().out


def test_manual_entry_rejects_carriage_return(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main([str(tmp_path / "log.tt"), "-e", "a\rb"])

    assert excinfo.value.code == 2
    assert not (tmp_path / "log.tt").exists()
