# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
dynlint command line.

Prints human-readable diagnostics to stderr, or with --json a single JSON
object `{"exit_code": N, "diagnostics": [...]}` on stdout.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from dynlint.config import LintConfig, discover_config, load_config_json
from dynlint.core.diagnostics import Diagnostic
from dynlint.driver import lint_source
from dynlint.lints import LintLevel, default_store


def _diag_to_json(diag: Diagnostic, phase: str, source: Path) -> dict:
	"""Render a Diagnostic to a structured JSON-friendly dict."""
	file = diag.span.file if diag.span.file is not None else str(source)
	return {
		"phase": diag.phase or phase,
		"message": diag.message,
		"severity": diag.severity,
		"file": file,
		"line": diag.span.line,
		"column": diag.span.column,
		"notes": list(diag.notes),
		"code": diag.code,
		"suggestions": [
			{
				"message": s.message,
				"replacement": s.replacement,
				"applicability": s.applicability.value,
				"line": s.span.line,
				"column": s.span.column,
				"end_line": s.span.end_line,
				"end_column": s.span.end_column,
			}
			for s in diag.suggestions
		],
	}


def _print_text(diag: Diagnostic, source: Path) -> None:
	file = diag.span.file or str(source)
	line = diag.span.line if diag.span.line is not None else "?"
	col = diag.span.column if diag.span.column is not None else "?"
	code = f" [{diag.code}]" if diag.code else ""
	print(f"{file}:{line}:{col}: {diag.severity}: {diag.message}{code}", file=sys.stderr)
	for sugg in diag.suggestions:
		print(f"  help: {sugg.message}: `{sugg.replacement}`", file=sys.stderr)
	for note in diag.notes:
		print(f"  note: {note}", file=sys.stderr)


class _LevelAction(argparse.Action):
	"""Collects `-W/-A/-D/-F NAME` into one list, keeping command-line order."""

	def __call__(self, parser, namespace, values, option_string=None):
		pairs = list(getattr(namespace, "levels", None) or [])
		pairs.append((values, LintLevel(self.const)))
		setattr(namespace, "levels", pairs)


def main(argv: list[str] | None = None) -> int:
	"""
	Lint the given source files.

	Exit status is 0 when no error-severity diagnostic was produced, 1
	otherwise; argparse exits with 2 on usage errors.
	"""
	parser = argparse.ArgumentParser(prog="dynlint", description="Lint Rust-like sources for `&dyn Any` coercion mistakes")
	parser.add_argument("source", type=Path, nargs="*", help="Path(s) to source file(s)")
	for flag, level, verb in (("-W", "warn", "Warn on"), ("-A", "allow", "Allow"), ("-D", "deny", "Deny"), ("-F", "forbid", "Forbid")):
		parser.add_argument(
			flag,
			dest="levels",
			metavar="LINT",
			action=_LevelAction,
			const=level,
			help=f"{verb} LINT (repeatable)",
		)
	parser.add_argument("--config", type=Path, help="Path to lint config JSON (default: ./dynlint.json when present)")
	parser.add_argument(
		"--json",
		action="store_true",
		help="Emit diagnostics as JSON (phase/message/severity/file/line/column)",
	)
	parser.add_argument("--list-lints", action="store_true", help="List known lints and exit")
	args = parser.parse_args(argv)

	store = default_store()
	if args.list_lints:
		for lint in store.lints():
			print(f"{lint.flag_name}\t{lint.group}\t{lint.default_level.value}\t{lint.version}\t{lint.description}")
		return 0
	if not args.source:
		parser.error("the following arguments are required: source")

	config = LintConfig()
	config_path = discover_config(args.config)
	if config_path is not None:
		try:
			config = load_config_json(config_path)
		except (OSError, ValueError) as err:
			diag_json = {
				"phase": "config",
				"message": f"failed to load lint config: {err}",
				"severity": "error",
				"file": str(config_path),
				"line": None,
				"column": None,
			}
			if args.json:
				print(json.dumps({"exit_code": 1, "diagnostics": [diag_json]}))
			else:
				print(f"{config_path}:?:?: error: {diag_json['message']}", file=sys.stderr)
			return 1
	config = config.with_cli_levels(args.levels or [])

	exit_code = 0
	payload: list[dict] = []
	for source_path in args.source:
		try:
			text = source_path.read_text(encoding="utf-8")
		except OSError as err:
			msg = f"cannot read source: {err.strerror or err}"
			if args.json:
				payload.append({"phase": "io", "message": msg, "severity": "error", "file": str(source_path), "line": None, "column": None})
			else:
				print(f"{source_path}:?:?: error: {msg}", file=sys.stderr)
			exit_code = 1
			continue
		result = lint_source(text, path=str(source_path), config=config, store=store)
		exit_code = max(exit_code, result.exit_code)
		for diag in result.diagnostics:
			if args.json:
				payload.append(_diag_to_json(diag, "lint", source_path))
			else:
				_print_text(diag, source_path)

	if args.json:
		print(json.dumps({"exit_code": exit_code, "diagnostics": payload}))
	return exit_code


if __name__ == "__main__":
	sys.exit(main())
