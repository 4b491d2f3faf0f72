# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json
from pathlib import Path

import pytest

from dynlint.cli import main as dynlint_main

SOURCE = """use std::any::Any;
fn main() {
	let x: Box<dyn Any> = Box::new(());
	f(&x);
}
fn f(_: &dyn Any) {}
"""


def _write_file(path: Path, text: str) -> Path:
	path.parent.mkdir(parents=True, exist_ok=True)
	path.write_text(text, encoding="utf-8")
	return path


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
	# Keep a stray ./dynlint.json out of these runs.
	monkeypatch.chdir(tmp_path)


def test_cli_json_reports_lint_with_suggestion(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	src = _write_file(tmp_path / "main.rs", SOURCE)
	exit_code = dynlint_main(["-W", "coerce_any_ref_to_any", "--json", str(src)])
	payload = json.loads(capsys.readouterr().out)

	assert exit_code == 0
	assert payload["exit_code"] == 0
	(diag,) = payload["diagnostics"]
	assert diag["phase"] == "lint"
	assert diag["severity"] == "warning"
	assert diag["code"] == "coerce_any_ref_to_any"
	assert diag["file"] == str(src)
	assert diag["line"] == 4
	assert diag["suggestions"][0]["replacement"] == "&*x"
	assert diag["suggestions"][0]["applicability"] == "maybe-incorrect"
	assert any("-W clippy::coerce_any_ref_to_any" in n for n in diag["notes"])


def test_cli_deny_sets_exit_code(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	src = _write_file(tmp_path / "main.rs", SOURCE)
	assert dynlint_main(["-D", "clippy::coerce_any_ref_to_any", str(src)]) == 1
	err = capsys.readouterr().err
	assert f"{src}:4:4: error: coercing `&Box<dyn Any>`" in err
	assert "[coerce_any_ref_to_any]" in err
	assert "help: consider dereferencing: `&*x`" in err


def test_cli_is_quiet_by_default(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	src = _write_file(tmp_path / "main.rs", SOURCE)
	assert dynlint_main([str(src)]) == 0
	captured = capsys.readouterr()
	assert captured.err == ""
	assert captured.out == ""


def test_cli_reads_default_config(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	src = _write_file(tmp_path / "main.rs", SOURCE)
	_write_file(
		tmp_path / "dynlint.json",
		json.dumps({"format": "dynlint-config", "version": 0, "lints": {"coerce_any_ref_to_any": "deny"}}),
	)
	assert dynlint_main(["--json", str(src)]) == 1
	payload = json.loads(capsys.readouterr().out)
	assert payload["exit_code"] == 1
	assert payload["diagnostics"][0]["severity"] == "error"


def test_cli_command_line_overrides_config(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	src = _write_file(tmp_path / "main.rs", SOURCE)
	cfg = _write_file(
		tmp_path / "cfg" / "lints.json",
		json.dumps({"format": "dynlint-config", "version": 0, "lints": {"coerce_any_ref_to_any": "deny"}}),
	)
	assert dynlint_main(["--config", str(cfg), "-A", "coerce_any_ref_to_any", "--json", str(src)]) == 0
	assert json.loads(capsys.readouterr().out)["diagnostics"] == []


def test_cli_bad_config_is_a_config_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	src = _write_file(tmp_path / "main.rs", SOURCE)
	cfg = _write_file(tmp_path / "bad.json", json.dumps({"format": "nope", "version": 0}))
	assert dynlint_main(["--config", str(cfg), "--json", str(src)]) == 1
	payload = json.loads(capsys.readouterr().out)
	assert payload["diagnostics"][0]["phase"] == "config"


def test_cli_parse_error_json(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	src = _write_file(tmp_path / "broken.rs", "fn main( {\n")
	assert dynlint_main(["--json", str(src)]) == 1
	payload = json.loads(capsys.readouterr().out)
	(diag,) = payload["diagnostics"]
	assert diag["phase"] == "parser"
	assert diag["line"] == 1


def test_cli_missing_source_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	assert dynlint_main(["--json", str(tmp_path / "nope.rs")]) == 1
	payload = json.loads(capsys.readouterr().out)
	assert payload["diagnostics"][0]["phase"] == "io"


def test_cli_list_lints(capsys: pytest.CaptureFixture[str]) -> None:
	assert dynlint_main(["--list-lints"]) == 0
	out = capsys.readouterr().out
	assert out.startswith("coerce_any_ref_to_any\tnursery\tallow\t1.88.0\t")


def test_cli_usage_errors_exit_2(capsys: pytest.CaptureFixture[str]) -> None:
	with pytest.raises(SystemExit) as excinfo:
		dynlint_main([])
	assert excinfo.value.code == 2
	with pytest.raises(SystemExit) as excinfo:
		dynlint_main(["--bogus"])
	assert excinfo.value.code == 2
