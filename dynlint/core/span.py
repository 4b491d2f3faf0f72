# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Lightweight source span representation used by diagnostics.

A Span carries best-effort file/line/column info plus character offsets into
the source text. Offsets are what suggestions use to recover verbatim source
snippets; line/column are what humans read.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Span:
	"""Represents a source span (best-effort file/line/column plus offsets)."""

	file: Optional[str] = None
	line: Optional[int] = None
	column: Optional[int] = None
	end_line: Optional[int] = None
	end_column: Optional[int] = None
	start: Optional[int] = None  # character offset, inclusive
	end: Optional[int] = None  # character offset, exclusive
	raw: Any = None

	@classmethod
	def from_loc(cls, loc: Any, *, file: Optional[str] = None) -> "Span":
		"""
		Construct a Span from an existing parser/location object.

		If `loc` is already a Span, it is returned unchanged (with `file`
		filled in when it was missing); otherwise common location fields are
		extracted and the parser-specific object is kept in `raw`.
		"""
		if loc is None:
			return cls(file=file)
		if isinstance(loc, cls):
			if loc.file is None and file is not None:
				return cls(
					file=file,
					line=loc.line,
					column=loc.column,
					end_line=loc.end_line,
					end_column=loc.end_column,
					start=loc.start,
					end=loc.end,
					raw=loc.raw,
				)
			return loc
		return cls(
			file=file or getattr(loc, "file", None) or getattr(loc, "filename", None) or None,
			line=getattr(loc, "line", None),
			column=getattr(loc, "column", None),
			end_line=getattr(loc, "end_line", None),
			end_column=getattr(loc, "end_column", None),
			start=getattr(loc, "start", None) if getattr(loc, "start", None) is not None else getattr(loc, "start_pos", None),
			end=getattr(loc, "end", None) if getattr(loc, "end", None) is not None else getattr(loc, "end_pos", None),
			raw=loc,
		)

	def is_known(self) -> bool:
		"""True when the span points at real source text."""
		return self.start is not None and self.end is not None and self.start <= self.end

	def sort_key(self) -> tuple:
		"""Ordering key for presenting diagnostics in source order (unknown spans last)."""
		return (
			self.file or "",
			self.line if self.line is not None else 1 << 30,
			self.column if self.column is not None else 1 << 30,
		)


__all__ = ["Span"]
