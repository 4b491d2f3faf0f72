# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
coerce_any_ref_to_any: a reference to a type that itself derefs to `dyn Any`
is coerced to `&dyn Any`.

	let x: Box<dyn Any> = Box::new(());
	let _: &dyn Any = &x;   // `&x` becomes a `&dyn Any` to the Box itself

The resulting trait object describes `Box<dyn Any>`, not the value inside,
so `downcast_ref` on it silently fails. The fix is to deref down to the
inner `dyn Any` first: `&*x`.
"""

from __future__ import annotations

from typing import Optional

from dynlint.core.deref import last_deref
from dynlint.core.diagnostics import Applicability, Diagnostic, Suggestion
from dynlint.core.types_core import TraitId, TypeId, TypeKind, TypeTable
from dynlint.lints import LateContext, LateLintPass, Lint, LintLevel
from dynlint.stage1 import hir_nodes as H

COERCE_ANY_REF_TO_ANY = Lint(
	name="COERCE_ANY_REF_TO_ANY",
	group="nursery",
	default_level=LintLevel.ALLOW,
	description="coercing to `&dyn Any` when dereferencing could produce a `dyn Any` without coercion is usually not intended",
	version="1.88.0",
)


def is_dyn_any(type_table: TypeTable, ty: Optional[TypeId], any_trait: Optional[TraitId]) -> bool:
	"""
	True when `ty` is a trait object with an `Any` bound.

	Only unquantified bounds count, and the bound must be the real `Any`
	(a user trait that happens to be named `Any` has a different id).
	"""
	if ty is None or any_trait is None:
		return False
	td = type_table.lookup(ty)
	if td is None or td.kind is not TypeKind.DYNAMIC:
		return False
	return any(pred.no_bound_vars() and pred.trait_id == any_trait for pred in td.predicates)


class CoerceAnyRefToAny(LateLintPass):
	lints = (COERCE_ANY_REF_TO_ANY,)

	def __init__(self, any_trait: Optional[TraitId]):
		self.any_trait = any_trait

	def check_expr(self, cx: LateContext, expr: H.HExpr) -> Optional[Diagnostic]:
		table = cx.type_table
		adjusted = cx.expr_ty_adjusted(expr)
		if adjusted is None:
			return None
		target = table.ref_inner(adjusted)
		if target is None or not is_dyn_any(table, target, self.any_trait):
			return None

		declared = cx.expr_ty(expr)
		if declared is None:
			return None
		referent = table.ref_inner(declared)
		# Already a `&dyn Any`; nothing was hidden behind a pointer.
		if referent is None or is_dyn_any(table, referent, self.any_trait):
			return None

		last = last_deref(table, referent)
		if last is None:
			return None
		depth, innermost = last
		if not is_dyn_any(table, innermost, self.any_trait):
			return None

		# `&x` already supplies the outer borrow; anything else needs one more deref.
		if isinstance(expr, H.HBorrow):
			span = expr.subject.loc
			derefs = depth
		else:
			span = expr.loc
			derefs = depth + 1
		replacement = "&" + "*" * derefs + cx.snippet(span, "x")

		return Diagnostic(
			message=f"coercing `{table.display(declared)}` to `&dyn Any` rather than dereferencing to the `dyn Any` inside",
			code=COERCE_ANY_REF_TO_ANY.flag_name,
			phase="lint",
			severity="warning",
			span=expr.loc,
			suggestions=[
				Suggestion(
					message="consider dereferencing",
					span=expr.loc,
					replacement=replacement,
					applicability=Applicability.MAYBE_INCORRECT,
				)
			],
		)


__all__ = ["COERCE_ANY_REF_TO_ANY", "is_dyn_any", "CoerceAnyRefToAny"]
