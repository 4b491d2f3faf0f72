"""
Common diagnostic structure for parser/checker/lint passes.

A diagnostic is a message plus span/metadata. Lints may also attach
suggestions: a replacement for a source span tagged with how confident the
lint is that applying it verbatim produces correct code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .span import Span


class Applicability(Enum):
	"""How safe it is to apply a suggestion without review."""

	MACHINE_APPLICABLE = "machine-applicable"
	MAYBE_INCORRECT = "maybe-incorrect"
	HAS_PLACEHOLDERS = "has-placeholders"
	UNSPECIFIED = "unspecified"


@dataclass(frozen=True)
class Suggestion:
	"""Replace the text covered by `span` with `replacement`."""

	message: str
	span: Span
	replacement: str
	applicability: Applicability = Applicability.UNSPECIFIED


@dataclass
class Diagnostic:
	"""Represents a diagnostic (error/warning/note)."""

	message: str
	code: str | None = None
	# Phase label: "parser", "typecheck", "lint", "config".
	#
	# Diagnostics from every stage end up in one list; the phase keeps JSON
	# output and test expectations unambiguous.
	phase: str | None = None
	severity: str = "error"
	span: Span = field(default_factory=Span)  # Source location (Span() denotes unknown).
	notes: list[str] = field(default_factory=list)
	suggestions: list[Suggestion] = field(default_factory=list)

	def __post_init__(self) -> None:
		# Normalize missing spans to the sentinel Span() so downstream tooling
		# can rely on a structured object instead of None.
		if self.span is None:  # type: ignore[unreachable]
			self.span = Span()


__all__ = ["Applicability", "Suggestion", "Diagnostic"]
