"""Tests for configuration validation and console log tags."""

import pytest

from walkmap import logging_utils
from walkmap.config import Config
from walkmap.errors import DataSourceUnavailable


def test_default_config_is_valid():
    Config.validate()
    text = Config.display()
    assert "Walkmap Configuration" in text
    assert "Region: 64x64" in text


@pytest.mark.parametrize(
    "attr, value",
    [
        ("REGION_WIDTH", 0),
        ("MAX_X", 0),
        ("MAX_Y", 64 * 300),
        ("DEFAULT_TILE_LIMIT", 5),
        ("PATH_MAX_ITERATIONS", 0),
        ("PATH_MARGIN", -1),
    ],
)
def test_invalid_config(monkeypatch, attr, value):
    monkeypatch.setattr(Config, attr, value)
    with pytest.raises(ValueError):
        Config.validate()


def test_log_tags_without_color(monkeypatch, capsys):
    monkeypatch.setenv("WALKMAP_NO_COLOR", "1")
    logging_utils.log_io("reading tiles")
    logging_utils.log_error("broken")
    logging_utils.log_success("done")
    out = capsys.readouterr().out.splitlines()
    assert out == ["[io] reading tiles", "[!] broken", "[✓] done"]


def test_colored_output(monkeypatch):
    monkeypatch.delenv("WALKMAP_NO_COLOR", raising=False)
    text = logging_utils.colored("hi", logging_utils.Color.GREEN)
    assert text.startswith("\033[92m") and text.endswith("\033[0m")


def test_debug_only_when_verbose(monkeypatch, capsys):
    monkeypatch.setenv("WALKMAP_NO_COLOR", "1")
    monkeypatch.delenv("WALKMAP_VERBOSE", raising=False)
    logging_utils.log_debug("hidden")
    assert capsys.readouterr().out == ""

    monkeypatch.setenv("WALKMAP_VERBOSE", "true")
    logging_utils.log_debug("shown")
    assert capsys.readouterr().out.strip() == "[•] shown"


def test_data_source_error_message():
    exc = DataSourceUnavailable("offline", source="sqlite:tiles.db", plane=2)
    assert str(exc) == "sqlite:tiles.db (plane 2): offline"
    replayed = exc.replay()
    assert replayed.plane == 2
    assert str(replayed) == "sqlite:tiles.db (plane 2): offline [cached failure]"
    assert str(DataSourceUnavailable("gone", source="sheets")) == "sheets: gone"
