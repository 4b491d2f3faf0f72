# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Lint framework: declarations, levels, late (typed) passes and the registry.

A late pass runs after type checking. It sees one expression at a time
through `check_expr(cx, expr)` and reads types from the LateContext; it
returns a Diagnostic (or None) and never decides severity itself. The
driver turns the configured level into a severity, or drops the diagnostic
when the lint is allowed.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional

from dynlint.checker import TypedFn
from dynlint.core.diagnostics import Diagnostic
from dynlint.core.span import Span
from dynlint.core.traits import TraitTable
from dynlint.core.types_core import TypeId, TypeTable
from dynlint.stage1 import hir_nodes as H


class LintLevel(Enum):
	ALLOW = "allow"
	WARN = "warn"
	DENY = "deny"
	FORBID = "forbid"

	@classmethod
	def parse(cls, text: str) -> "LintLevel":
		try:
			return cls(text.strip().lower())
		except ValueError:
			raise ValueError(f"unknown lint level '{text}' (expected allow, warn, deny or forbid)") from None

	def severity(self) -> Optional[str]:
		"""Diagnostic severity at this level; None means the lint is silenced."""
		if self is LintLevel.ALLOW:
			return None
		if self is LintLevel.WARN:
			return "warning"
		return "error"


@dataclass(frozen=True)
class Lint:
	"""Static declaration of a lint."""

	name: str
	group: str
	default_level: LintLevel
	description: str
	version: str

	@property
	def flag_name(self) -> str:
		"""Name as written on the command line and in attributes (`clippy::` less)."""
		return self.name.lower()


class LateContext:
	"""
	What a late pass may look at while visiting one function.

	Type lookups return None for expressions the checker did not type; a
	pass treats that as "does not match" rather than an error.
	"""

	def __init__(self, type_table: TypeTable, traits: TraitTable, typed_fn: TypedFn, source: Optional[str] = None):
		self.type_table = type_table
		self.traits = traits
		self.typed_fn = typed_fn
		self.source = source

	def expr_ty(self, expr: H.HExpr) -> Optional[TypeId]:
		return self.typed_fn.expr_ty(expr)

	def expr_ty_adjusted(self, expr: H.HExpr) -> Optional[TypeId]:
		return self.typed_fn.expr_ty_adjusted(expr)

	def snippet(self, span: Span, default: str) -> str:
		"""Verbatim source covered by `span`, or `default` when it cannot be recovered."""
		if self.source is None or not span.is_known():
			return default
		if span.end > len(self.source):  # type: ignore[operator]
			return default
		text = self.source[span.start:span.end]
		return text if text else default


class LateLintPass:
	"""Base class for passes that run over typed HIR."""

	# Lints this pass can emit.
	lints: tuple = ()

	def check_expr(self, cx: LateContext, expr: H.HExpr) -> Optional[Diagnostic]:
		return None


PassFactory = Callable[[TraitTable], LateLintPass]


class LintStore:
	"""
	Registry of lint declarations and the factories that build their passes.

	Factories receive the program's TraitTable so a pass can resolve the
	trait ids it needs (diagnostic items) once per run.
	"""

	def __init__(self) -> None:
		self._lints: Dict[str, Lint] = {}
		self._factories: List[PassFactory] = []

	def register_lint(self, lint: Lint) -> None:
		if lint.flag_name in self._lints:
			raise ValueError(f"duplicate lint '{lint.flag_name}'")
		self._lints[lint.flag_name] = lint

	def register_late_pass(self, factory: PassFactory, lints: Iterable[Lint] = ()) -> None:
		for lint in lints:
			self.register_lint(lint)
		self._factories.append(factory)

	def find(self, name: str) -> Optional[Lint]:
		"""Look a lint up by name; accepts an optional `clippy::` tool prefix."""
		key = name.strip().lower().replace("-", "_")
		if key.startswith("clippy::"):
			key = key[len("clippy::"):]
		return self._lints.get(key)

	def lints(self) -> List[Lint]:
		return sorted(self._lints.values(), key=lambda lint: lint.flag_name)

	def build_passes(self, traits: TraitTable) -> List[LateLintPass]:
		return [factory(traits) for factory in self._factories]


def default_store() -> LintStore:
	"""Store with every lint shipped by dynlint."""
	from dynlint.lints.coerce_any_ref_to_any import COERCE_ANY_REF_TO_ANY, CoerceAnyRefToAny

	store = LintStore()
	store.register_late_pass(
		lambda traits: CoerceAnyRefToAny(traits.diagnostic_items.resolve("Any")),
		lints=[COERCE_ANY_REF_TO_ANY],
	)
	return store


__all__ = [
	"LintLevel",
	"Lint",
	"LateContext",
	"LateLintPass",
	"LintStore",
	"default_store",
]
