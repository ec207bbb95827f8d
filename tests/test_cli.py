"""Tests for the lcovcheck CLI commands."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any
from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from lcovcheck.cli import _config_to_dict, _mask_sensitive_values, cli
from lcovcheck.config import load_config

if TYPE_CHECKING:
    from pathlib import Path

_LCOV = """TN:
SF:src/a.ts
FNF:1
FNH:1
DA:1,1
DA:2,0
DA:3,1
end_of_record
SF:src/b.ts
FNF:1
FNH:0
DA:1,1
DA:2,1
end_of_record
"""


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in (
        "GITHUB_TOKEN",
        "GITHUB_REPOSITORY",
        "GITHUB_EVENT_NAME",
        "GITHUB_REF",
        "GITHUB_EVENT_PATH",
        "LCOVCHECK_LCOV_PATH",
        "LCOVCHECK_MIN_COVERAGE",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Project root with the report at the default location."""
    coverage_dir = tmp_path / "coverage"
    coverage_dir.mkdir()
    (coverage_dir / "lcov.info").write_text(_LCOV, encoding="utf-8")
    return tmp_path


def _write_config(root: Path, data: dict[str, Any]) -> None:
    (root / ".lcovcheck.yml").write_text(yaml.dump(data), encoding="utf-8")


def _report(root: Path, *args: str) -> Any:
    runner = CliRunner()
    return runner.invoke(cli, ["report", "--path", str(root), "--no-comment", *args])


def test_version() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "lcovcheck" in result.output
    assert "0.1.0" in result.output


def test_help_lists_commands() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "report" in result.output
    assert "config" in result.output


# ── report ────────────────────────────────────────────────────────


class TestReportCommand:
    def test_passes_without_thresholds(self, project: Path) -> None:
        result = _report(project)

        assert result.exit_code == 0, result.output
        assert "No thresholds defined - all checks passed" in result.output
        assert "Coverage Summary" in result.output

    def test_fails_below_threshold(self, project: Path) -> None:
        result = _report(project, "--min-coverage", "90")

        assert result.exit_code == 1
        assert "1 of 1 thresholds failed" in result.output
        assert "Lines coverage 80% is below threshold 90%" in result.output

    def test_threshold_option(self, project: Path) -> None:
        result = _report(project, "--threshold", "lines=80", "--threshold", "functions=50")

        assert result.exit_code == 0, result.output
        assert "All 2 thresholds passed" in result.output

    def test_invalid_threshold_option(self, project: Path) -> None:
        result = _report(project, "--threshold", "mutations=50")

        assert result.exit_code == 2
        assert "unknown metric" in result.output

    def test_config_thresholds_apply(self, project: Path) -> None:
        _write_config(project, {"coverage": {"thresholds": {"functions": 75}}})

        result = _report(project)

        assert result.exit_code == 1
        assert "Functions coverage 50% is below threshold 75%" in result.output

    def test_cli_threshold_overrides_config(self, project: Path) -> None:
        _write_config(project, {"coverage": {"thresholds": {"functions": 75}}})

        result = _report(project, "--threshold", "functions=50")

        assert result.exit_code == 0, result.output

    def test_lcov_path_option(self, tmp_path: Path) -> None:
        report_file = tmp_path / "custom.info"
        report_file.write_text("SF:x\nDA:1,0\nend_of_record\n", encoding="utf-8")

        result = _report(tmp_path, "--lcov-path", str(report_file), "--min-coverage", "1")

        assert result.exit_code == 1
        assert "Lines coverage 0% is below threshold 1%" in result.output

    def test_missing_report_exits_one(self, tmp_path: Path) -> None:
        result = _report(tmp_path)

        assert result.exit_code == 1
        assert "Cannot read coverage report" in result.output

    def test_non_integer_max_files_uses_default(self, project: Path) -> None:
        _write_config(project, {"report": {"max_files": "many"}})

        result = _report(project)

        assert result.exit_code == 0, result.output
        assert result.exception is None

    def test_invalid_yaml_exits_one(self, project: Path) -> None:
        (project / ".lcovcheck.yml").write_text("coverage: [unclosed\n", encoding="utf-8")

        result = _report(project)

        assert result.exit_code == 1
        assert "Failed to load configuration" in result.output
        assert not isinstance(result.exception, yaml.YAMLError)

    def test_json_output(self, project: Path) -> None:
        result = _report(project, "--json-output", "--threshold", "lines=90")

        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert list(data["summary"]) == ["total", "src/a.ts", "src/b.ts"]
        assert data["summary"]["total"]["lines"] == {
            "total": 5,
            "covered": 4,
            "skipped": 1,
            "pct": 80.0,
        }
        assert data["summary"]["src/a.ts"]["uncoveredLines"] == [2]
        assert data["verdict"] == {
            "passed": False,
            "failures": ["Lines coverage 80% is below threshold 90%"],
            "summary": "1 of 1 thresholds failed",
        }
        assert data["comment_url"] is None

    def test_json_output_read_error(self, tmp_path: Path) -> None:
        missing = tmp_path / "nope.info"

        result = _report(tmp_path, "--json-output", "--lcov-path", str(missing))

        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["path"] == str(missing)
        assert "file not found" in data["error"]

    def test_comment_file(self, project: Path, tmp_path: Path) -> None:
        out = tmp_path / "comment.md"

        result = _report(project, "--comment-file", str(out))

        assert result.exit_code == 0, result.output
        body = out.read_text(encoding="utf-8")
        assert body.startswith("## Coverage Report")
        assert "src/a.ts" in body

    def test_comment_without_token_warns(self, project: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["report", "--path", str(project), "--comment"])

        assert result.exit_code == 0, result.output
        assert "No GitHub token provided" in result.output

    def test_comment_posted_with_token(self, project: Path) -> None:
        runner = CliRunner()
        with patch(
            "lcovcheck.cli.post_comment_from_env",
            return_value="https://github.com/o/r/pull/1#issuecomment-9",
        ) as mock_post:
            result = runner.invoke(
                cli,
                ["report", "--path", str(project), "--comment", "--github-token", "tok"],
            )

        assert result.exit_code == 0, result.output
        mock_post.assert_called_once()
        body, token, marker = mock_post.call_args[0]
        assert body.endswith(marker)
        assert token == "tok"  # noqa: S105
        assert "Posted coverage comment" in result.output

    def test_post_comment_disabled_in_config(self, project: Path) -> None:
        _write_config(project, {"github": {"post_comment": False, "token": "tok"}})
        runner = CliRunner()
        with patch("lcovcheck.cli.post_comment_from_env") as mock_post:
            result = runner.invoke(cli, ["report", "--path", str(project)])

        assert result.exit_code == 0, result.output
        mock_post.assert_not_called()


# ── config ────────────────────────────────────────────────────────


class TestConfigCommands:
    def test_show_json_masks_token(self, tmp_path: Path) -> None:
        _write_config(tmp_path, {"github": {"token": "ghp_abcdefghijklmnop"}})
        runner = CliRunner()

        result = runner.invoke(cli, ["config", "show", "--path", str(tmp_path), "--json-output"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["github"]["token"] == "ghp_...mnop"  # noqa: S105
        assert data["coverage"]["lcov_path"] == "coverage/lcov.info"
        assert "raw" not in data

    def test_show_no_mask(self, tmp_path: Path) -> None:
        _write_config(tmp_path, {"github": {"token": "ghp_abcdefghijklmnop"}})
        runner = CliRunner()

        result = runner.invoke(
            cli, ["config", "show", "--path", str(tmp_path), "--json-output", "--no-mask"]
        )

        assert json.loads(result.stdout)["github"]["token"] == "ghp_abcdefghijklmnop"  # noqa: S105

    def test_show_yaml(self, tmp_path: Path) -> None:
        runner = CliRunner()

        result = runner.invoke(cli, ["config", "show", "--path", str(tmp_path)])

        assert result.exit_code == 0, result.output
        assert "Configuration:" in result.output
        assert "lcov_path: coverage/lcov.info" in result.output

    def test_validate_ok(self, tmp_path: Path) -> None:
        runner = CliRunner()

        result = runner.invoke(cli, ["config", "validate", "--path", str(tmp_path)])

        assert result.exit_code == 0, result.output
        assert "Configuration is valid!" in result.output

    def test_validate_errors(self, tmp_path: Path) -> None:
        _write_config(tmp_path, {"coverage": {"thresholds": {"lines": 150}}})
        runner = CliRunner()

        result = runner.invoke(cli, ["config", "validate", "--path", str(tmp_path)])

        assert result.exit_code == 1
        assert "Found 1 configuration error(s)" in result.output


class TestConfigHelpers:
    def test_mask_short_value(self) -> None:
        assert _mask_sensitive_values({"github": {"token": "abc"}}) == {
            "github": {"token": "***"}
        }

    def test_mask_leaves_empty_and_other_keys(self) -> None:
        data = {"github": {"token": "", "post_comment": True}, "report": {"max_files": 20}}
        assert _mask_sensitive_values(data) == data

    def test_config_to_dict_drops_raw(self, tmp_path: Path) -> None:
        data = _config_to_dict(load_config(tmp_path))
        assert set(data) == {"root", "coverage", "report", "github"}
