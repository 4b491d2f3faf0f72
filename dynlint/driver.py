# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Single-file lint driver: parse -> lower -> check -> late lint passes.

Level precedence, lowest to highest:
  lint default < config file < command line < `#![...]` < `#[...]` on a fn

A `forbid` from any source cannot be lowered afterwards; an attribute that
tries is reported (E0453) and ignored. Diagnostics come back sorted by
source position.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from dynlint.checker import CheckedProgram, TypeChecker
from dynlint.config import LintConfig
from dynlint.core.diagnostics import Diagnostic
from dynlint.core.span import Span
from dynlint.lints import LateContext, Lint, LintLevel, LintStore, default_store
from dynlint.parser import ParseError, ast, parse_program
from dynlint.stage1 import iter_exprs


@dataclass(frozen=True)
class LevelSource:
	"""The level in force for one lint and where it was set."""

	level: LintLevel
	origin: str  # "default", "config", "cli", "crate", "fn"
	note: str


@dataclass
class LintResult:
	"""Everything a front end needs to report one source file."""

	diagnostics: List[Diagnostic] = field(default_factory=list)
	checked: Optional[CheckedProgram] = None

	@property
	def exit_code(self) -> int:
		return 1 if any(d.severity == "error" for d in self.diagnostics) else 0

	def by_phase(self, phase: str) -> List[Diagnostic]:
		return [d for d in self.diagnostics if d.phase == phase]


def _attr_text(level: LintLevel, name: str, *, inner: bool) -> str:
	bang = "!" if inner else ""
	return f"#{bang}[{level.value}(clippy::{name})]"


def _span_text(span: Span) -> str:
	return f"{span.file or '<input>'}:{span.line if span.line is not None else '?'}:{span.column if span.column is not None else '?'}"


class LevelResolver:
	"""
	Tracks the level of every registered lint as sources are layered on.

	`push_attrs` returns a new resolver so function attributes do not leak
	into sibling functions.
	"""

	def __init__(self, levels: Dict[str, LevelSource]):
		self._levels = levels

	@classmethod
	def from_config(cls, store: LintStore, config: Optional[LintConfig], diagnostics: List[Diagnostic]) -> "LevelResolver":
		levels: Dict[str, LevelSource] = {}
		for lint in store.lints():
			level = lint.default_level
			levels[lint.flag_name] = LevelSource(level, "default", f"`{_attr_text(level, lint.flag_name, inner=False)}` on by default")
		resolver = cls(levels)
		if config is None:
			return resolver
		cfg_file = str(config.path) if config.path is not None else "<config>"
		for name, level in config.file_levels.items():
			lint = store.find(name)
			if lint is None:
				diagnostics.append(
					Diagnostic(
						message=f"unknown lint `{name}` in config",
						code="unknown_lints",
						phase="config",
						severity="warning",
						span=Span(file=cfg_file),
					)
				)
				continue
			resolver._set(lint, level, "config", f"`{_attr_text(level, lint.flag_name, inner=False)}` implied by config file `{cfg_file}`")
		for name, level in config.cli_levels.items():
			lint = store.find(name)
			if lint is None:
				diagnostics.append(
					Diagnostic(
						message=f"unknown lint `{name}` requested on the command line",
						code="unknown_lints",
						phase="config",
						severity="warning",
					)
				)
				continue
			flag = {"allow": "-A", "warn": "-W", "deny": "-D", "forbid": "-F"}[level.value]
			resolver._set(lint, level, "cli", f"requested on the command line with `{flag} clippy::{lint.flag_name}`")
		return resolver

	def _set(self, lint: Lint, level: LintLevel, origin: str, note: str) -> bool:
		current = self._levels[lint.flag_name]
		if current.level is LintLevel.FORBID and level is not LintLevel.FORBID:
			return False
		self._levels[lint.flag_name] = LevelSource(level, origin, note)
		return True

	def get(self, lint: Lint) -> LevelSource:
		return self._levels[lint.flag_name]

	def push_attrs(
		self,
		store: LintStore,
		attrs: Iterable[ast.Attribute],
		*,
		origin: str,
		file: Optional[str],
		diagnostics: List[Diagnostic],
	) -> "LevelResolver":
		child = LevelResolver(dict(self._levels))
		for attr in attrs:
			level = LintLevel.parse(attr.level)
			span = Span.from_loc(attr.loc, file=file)
			for raw_name in attr.lints:
				lint = store.find(raw_name)
				if lint is None:
					diagnostics.append(
						Diagnostic(
							message=f"unknown lint: `{raw_name}`",
							code="unknown_lints",
							phase="lint",
							severity="warning",
							span=span,
						)
					)
					continue
				note = f"the lint level is defined here: `{_attr_text(level, lint.flag_name, inner=attr.inner)}` at {_span_text(span)}"
				if not child._set(lint, level, origin, note):
					diagnostics.append(
						Diagnostic(
							message=f"{level.value}(clippy::{lint.flag_name}) incompatible with previous forbid",
							code="E0453",
							phase="lint",
							severity="error",
							span=span,
							notes=[child.get(lint).note],
						)
					)
		return child


def lint_program(
	program: ast.Program,
	*,
	source: Optional[str] = None,
	path: Optional[str] = None,
	config: Optional[LintConfig] = None,
	store: Optional[LintStore] = None,
) -> LintResult:
	"""Check and lint an already-parsed program."""
	store = store or default_store()
	diagnostics: List[Diagnostic] = []
	levels = LevelResolver.from_config(store, config, diagnostics)
	levels = levels.push_attrs(store, program.attrs, origin="crate", file=path, diagnostics=diagnostics)

	checked = TypeChecker().check_program(program, file=path, source=source)
	diagnostics.extend(checked.diagnostics)
	result = LintResult(diagnostics=diagnostics, checked=checked)
	# Late lints only run on well-typed programs.
	if checked.has_errors():
		result.diagnostics = _sorted(diagnostics)
		return result

	passes = store.build_passes(checked.traits)
	for fn in program.functions:
		typed_fn = checked.functions.get(fn.name)
		if typed_fn is None:
			continue
		fn_levels = levels.push_attrs(store, fn.attrs, origin="fn", file=path, diagnostics=diagnostics)
		cx = LateContext(checked.type_table, checked.traits, typed_fn, source=source)
		for expr in iter_exprs(typed_fn.body):
			for lint_pass in passes:
				diag = lint_pass.check_expr(cx, expr)
				if diag is None:
					continue
				lint = store.find(diag.code or "")
				if lint is None:
					diagnostics.append(diag)
					continue
				level = fn_levels.get(lint)
				severity = level.level.severity()
				if severity is None:
					continue
				diag.severity = severity
				diag.notes.append(level.note)
				diagnostics.append(diag)

	result.diagnostics = _sorted(diagnostics)
	return result


def lint_source(
	source: str,
	*,
	path: Optional[str] = None,
	config: Optional[LintConfig] = None,
	store: Optional[LintStore] = None,
) -> LintResult:
	"""
	Parse, check and lint one source file.

	Parse errors end the run with a single `phase="parser"` diagnostic;
	the result never raises for problems in the user's source.
	"""
	try:
		program = parse_program(source)
	except ParseError as err:
		diag = Diagnostic(
			message=str(err),
			phase="parser",
			severity="error",
			span=Span.from_loc(err.loc, file=path),
		)
		return LintResult(diagnostics=[diag])
	return lint_program(program, source=source, path=path, config=config, store=store)


def _sorted(diagnostics: List[Diagnostic]) -> List[Diagnostic]:
	# sorted() is stable, so diagnostics at the same position keep emission order.
	return sorted(diagnostics, key=lambda d: d.span.sort_key())


__all__ = ["LevelSource", "LintResult", "LevelResolver", "lint_program", "lint_source"]
