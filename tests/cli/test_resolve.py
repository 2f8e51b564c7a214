"""Tests for dscope resolve command."""

from __future__ import annotations

import json
import logging
from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner, Result

from declscope import __version__
from declscope.cli.main import cli
from declscope.config import loader
from tests.resolve.conftest import ORDER_SERVICE, SDK_PROJECT, write_file, write_sln

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Run from an empty directory with no global config; reset logging afterwards."""
    work = tmp_path / "cwd"
    work.mkdir()
    monkeypatch.chdir(work)
    monkeypatch.setattr(loader, "GLOBAL_CONFIG_PATH", tmp_path / "global.yaml")
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        handler.close()
    root.handlers.clear()


@pytest.fixture
def solution(tmp_path: Path) -> Path:
    write_file(tmp_path / "shop" / "Orders" / "Orders.csproj", SDK_PROJECT)
    write_file(tmp_path / "shop" / "Orders" / "OrderService.cs", ORDER_SERVICE)
    return write_sln(tmp_path / "shop" / "Shop.sln", [("Orders", r"Orders\Orders.csproj")])


def _source(solution: Path) -> Path:
    return solution.parent / "Orders" / "OrderService.cs"


class TestResolveCommand:
    """dscope resolve."""

    def test_offset_prints_analyzer_args(self, solution: Path) -> None:
        result = runner.invoke(
            cli,
            [
                "resolve",
                "--solution",
                str(solution),
                "--file",
                str(_source(solution)),
                "--offset",
                str(ORDER_SERVICE.index("Save")),
                "--selection",
                "PlaceOrder",
            ],
        )

        assert result.exit_code == 0, result.output
        assert result.output.strip() == f"{solution.resolve()} Shop.Orders OrderService PlaceOrder"

    def test_line_and_column(self, solution: Path) -> None:
        # "        Save(id);" is line 7
        result = runner.invoke(
            cli,
            [
                "resolve",
                "--solution",
                str(solution),
                "--file",
                str(_source(solution)),
                "--line",
                "7",
                "--column",
                "8",
                "--selection",
                "PlaceOrder",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "Shop.Orders OrderService PlaceOrder" in result.output

    def test_json_output(self, solution: Path) -> None:
        result = runner.invoke(
            cli,
            [
                "resolve",
                "--solution",
                str(solution),
                "--file",
                str(_source(solution)),
                "--offset",
                str(ORDER_SERVICE.index("Save")),
                "--selection",
                "PlaceOrder",
                "--json",
            ],
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["ok"] is True
        assert data["args"][1:] == ["Shop.Orders", "OrderService", "PlaceOrder"]
        assert data["diagnostics"] == []

    def test_failure_exits_nonzero_with_reason(self, solution: Path) -> None:
        result = runner.invoke(
            cli,
            [
                "resolve",
                "--solution",
                str(solution),
                "--file",
                str(_source(solution)),
                "--offset",
                "0",
                "--selection",
                "PlaceOrder",
            ],
        )

        assert result.exit_code == 1
        assert "Error: The caret is not inside a method declaration." in result.output

    def test_offset_and_line_are_exclusive(self, solution: Path) -> None:
        result = runner.invoke(
            cli,
            [
                "resolve",
                "--solution",
                str(solution),
                "--file",
                str(_source(solution)),
                "--offset",
                "1",
                "--line",
                "1",
                "--selection",
                "M",
            ],
        )

        assert result.exit_code == 2
        assert "exactly one of --offset or --line/--column" in result.output

    def test_line_out_of_range(self, solution: Path) -> None:
        result = runner.invoke(
            cli,
            [
                "resolve",
                "--solution",
                str(solution),
                "--file",
                str(_source(solution)),
                "--line",
                "500",
                "--selection",
                "M",
            ],
        )

        assert result.exit_code == 1
        assert "Line 500, column 0 is outside the document" in result.output

    def test_invalid_config_is_reported(self, solution: Path) -> None:
        config_dir = Path.cwd() / ".declscope"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text("cache:\n  max_trees: 0\n")

        result = runner.invoke(
            cli,
            [
                "resolve",
                "--solution",
                str(solution),
                "--file",
                str(_source(solution)),
                "--offset",
                "0",
                "--selection",
                "M",
            ],
        )

        assert result.exit_code == 1
        assert "max_trees" in result.output


class TestCliGroup:
    """Top-level group options."""

    def test_version(self) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_resolve(self) -> None:
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "resolve" in result.output


class TestLoggingSection:
    """The config's logging section drives the command's log outputs."""

    @staticmethod
    def _write_logging_config(log_file: Path, level: str = "INFO") -> None:
        config_dir = Path.cwd() / ".declscope"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text(
            "logging:\n"
            f"  level: {level}\n"
            "  outputs:\n"
            "    - format: json\n"
            f"      destination: {log_file}\n"
        )

    def _invoke(self, solution: Path, *, offset: int, verbose: bool = False) -> Result:
        args = ["-v"] if verbose else []
        args += [
            "resolve",
            "--solution",
            str(solution),
            "--file",
            str(_source(solution)),
            "--offset",
            str(offset),
            "--selection",
            "PlaceOrder",
        ]
        return runner.invoke(cli, args)

    def test_file_output_receives_records(self, solution: Path, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "dscope.log"
        self._write_logging_config(log_file)

        result = self._invoke(solution, offset=ORDER_SERVICE.index("Save"))

        assert result.exit_code == 0, result.output
        assert result.output.strip() == f"{solution.resolve()} Shop.Orders OrderService PlaceOrder"
        records = [json.loads(line) for line in log_file.read_text().splitlines()]
        events = [r["event"] for r in records]
        assert "workspace_load_finished" in events
        succeeded = next(r for r in records if r["event"] == "resolution_succeeded")
        assert succeeded["method"] == "PlaceOrder"
        assert succeeded["request_id"]
        assert "tree_cache_miss" not in events

    def test_verbose_flag_overrides_configured_level(self, solution: Path, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "dscope.log"
        self._write_logging_config(log_file, level="ERROR")

        result = self._invoke(solution, offset=ORDER_SERVICE.index("Save"), verbose=True)

        assert result.exit_code == 0, result.output
        events = [json.loads(line)["event"] for line in log_file.read_text().splitlines()]
        assert "tree_cache_miss" in events

    def test_failure_points_at_log_file(self, solution: Path, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "dscope.log"
        self._write_logging_config(log_file)

        result = self._invoke(solution, offset=0)

        assert result.exit_code == 1
        assert f"Details in {log_file}" in result.output
        assert "resolution_failed" in log_file.read_text()
