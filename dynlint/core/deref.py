# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Deref chains: the types reached by repeatedly dereferencing a type.

`deref_chain(table, ty)` yields `deref(ty)`, `deref(deref(ty))`, ... and stops
at the first type that does not deref any further. The input itself is not
part of the chain, so the 0-based index of an element is one less than the
number of derefs needed to reach it.
"""

from __future__ import annotations

from typing import Iterator, Optional

from dynlint.core.types_core import TypeId, TypeTable

# Mirrors the compiler recursion limit for autoderef.
DEREF_STEP_LIMIT = 64


def deref_step(table: TypeTable, ty: TypeId) -> Optional[TypeId]:
	"""One deref of `ty`, or None at a fixed point."""
	return table.deref_target(ty)


def deref_chain(table: TypeTable, ty: TypeId, *, limit: int = DEREF_STEP_LIMIT) -> Iterator[TypeId]:
	"""
	Lazily yield every type reached by successive derefs of `ty`.

	The sequence ends at a fixed point, after `limit` steps, or as soon as a
	step comes back to a type already seen in this chain (a `Deref` cycle
	between user types). Ending early is not an error.
	"""
	seen = {ty}
	current = ty
	for _ in range(limit):
		nxt = deref_step(table, current)
		if nxt is None or nxt in seen:
			return
		yield nxt
		seen.add(nxt)
		current = nxt


def last_deref(table: TypeTable, ty: TypeId) -> Optional[tuple[int, TypeId]]:
	"""
	Return `(steps, target)` for the end of `ty`'s deref chain.

	`steps` counts derefs (1 for the first element). None when `ty` does not
	deref at all.
	"""
	last: Optional[tuple[int, TypeId]] = None
	for idx, target in enumerate(deref_chain(table, ty)):
		last = (idx + 1, target)
	return last


__all__ = ["DEREF_STEP_LIMIT", "deref_step", "deref_chain", "last_deref"]
