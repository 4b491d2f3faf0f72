# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Implicit coercions applied at coercion sites.

A coercion site is a place where the checker knows the expected type before
it types the expression: an annotated `let` initializer, a call argument, a
`return` value and a function's tail expression. When the expression's own
(declared) type differs from the expected one, `try_coerce` decides whether
an implicit conversion bridges the two and which one.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from dynlint.core.deref import deref_chain
from dynlint.core.traits import TraitTable
from dynlint.core.types_core import TypeDef, TypeId, TypeKind, TypeTable


class CoercionKind(Enum):
	IDENTITY = "identity"
	REBORROW = "reborrow"  # &mut T -> &T
	UNSIZE = "unsize"  # &T -> &dyn S, Box<T> -> Box<dyn S>
	UPCAST = "upcast"  # &dyn A + B -> &dyn A
	DEREF = "deref"  # &Box<T> -> &T


@dataclass(frozen=True)
class Adjustment:
	"""The coercion the checker inserted for one expression."""

	kind: CoercionKind
	source: TypeId
	target: TypeId
	deref_steps: int = 0


def try_coerce(type_table: TypeTable, traits: TraitTable, actual: TypeId, expected: TypeId) -> Optional[Adjustment]:
	"""
	Return the adjustment turning `actual` into `expected`, or None.

	IDENTITY covers equal types and anything involving Unknown (so one type
	error does not cascade into more).
	"""
	if actual == expected:
		return Adjustment(kind=CoercionKind.IDENTITY, source=actual, target=expected)
	a = type_table.lookup(actual)
	e = type_table.lookup(expected)
	if a is None or e is None:
		return None
	if a.kind is TypeKind.UNKNOWN or e.kind is TypeKind.UNKNOWN:
		return Adjustment(kind=CoercionKind.IDENTITY, source=actual, target=expected)
	if a.kind is TypeKind.REF and e.kind is TypeKind.REF:
		return _coerce_ref(type_table, traits, a, e, actual, expected)
	if a.kind is TypeKind.ADT and e.kind is TypeKind.ADT and a.name == e.name:
		src = type_table.smart_pointee(actual)
		dst = type_table.smart_pointee(expected)
		if src is not None and dst is not None:
			kind = _unsize_kind(type_table, traits, src, dst)
			if kind is not None:
				return Adjustment(kind=kind, source=actual, target=expected)
	return None


def _coerce_ref(
	type_table: TypeTable,
	traits: TraitTable,
	a: TypeDef,
	e: TypeDef,
	actual: TypeId,
	expected: TypeId,
) -> Optional[Adjustment]:
	# A shared reference never becomes a mutable one.
	if e.ref_mut and not a.ref_mut:
		return None
	src = a.param_types[0]
	dst = e.param_types[0]
	if src == dst:
		return Adjustment(kind=CoercionKind.REBORROW, source=actual, target=expected)
	kind = _unsize_kind(type_table, traits, src, dst)
	if kind is not None:
		return Adjustment(kind=kind, source=actual, target=expected)
	for steps, target in enumerate(deref_chain(type_table, src), start=1):
		if target == dst:
			return Adjustment(kind=CoercionKind.DEREF, source=actual, target=expected, deref_steps=steps)
	return None


def _unsize_kind(type_table: TypeTable, traits: TraitTable, src: TypeId, dst: TypeId) -> Optional[CoercionKind]:
	"""UNSIZE/UPCAST when a `src` pointee can be viewed as the trait object `dst`."""
	dst_def = type_table.lookup(dst)
	src_def = type_table.lookup(src)
	if dst_def is None or src_def is None or dst_def.kind is not TypeKind.DYNAMIC:
		return None
	if src_def.kind is TypeKind.DYNAMIC:
		# Dropping bounds is allowed; adding them is not.
		if set(dst_def.predicates) <= set(src_def.predicates):
			return CoercionKind.UPCAST
		return None
	if not type_table.is_sized(src):
		return None
	if all(traits.implements(type_table, src, pred.trait_id) for pred in dst_def.predicates):
		return CoercionKind.UNSIZE
	return None


__all__ = ["CoercionKind", "Adjustment", "try_coerce"]
