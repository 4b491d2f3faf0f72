# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Decision rule on hand-built typed HIR.

Each test writes the declared/adjusted side tables directly, so the lint is
exercised without the checker in the loop.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from dynlint import stage1 as H
from dynlint.checker import TypedFn
from dynlint.core.diagnostics import Applicability
from dynlint.core.span import Span
from dynlint.core.traits import TraitTable
from dynlint.core.types_core import TraitPredicate, TypeId, TypeTable
from dynlint.lints import LateContext
from dynlint.lints.coerce_any_ref_to_any import CoerceAnyRefToAny


class _Env:
	def __init__(self) -> None:
		self.table = TypeTable()
		self.traits = TraitTable.with_builtins()
		self.any_id = self.traits.diagnostic_items.resolve("Any")
		self.dyn_any = self.table.new_dynamic([TraitPredicate(self.any_id, "Any")])
		self.ref_dyn_any = self.table.ensure_ref(self.dyn_any)

	def box(self, inner: TypeId) -> TypeId:
		return self.table.new_adt("Box", [inner])

	def ref(self, inner: TypeId) -> TypeId:
		return self.table.ensure_ref(inner)

	def check(
		self,
		expr: H.HExpr,
		declared: List[Tuple[H.HExpr, TypeId]],
		adjusted: Optional[TypeId] = None,
		source: Optional[str] = None,
	):
		block = H.HBlock(statements=[H.HExprStmt(expr=expr)])
		H.assign_node_ids(block)
		adjusted_types = {expr.node_id: adjusted} if adjusted is not None else {}
		typed_fn = TypedFn(
			name="f",
			body=block,
			signature=None,
			expr_types={e.node_id: ty for e, ty in declared},
			adjusted_types=adjusted_types,
			adjustments={},
			binding_types={},
			binding_names={},
		)
		cx = LateContext(self.table, self.traits, typed_fn, source=source)
		return CoerceAnyRefToAny(self.any_id).check_expr(cx, expr)


def _span(source: str, text: str) -> Span:
	start = source.index(text)
	return Span(line=1, column=start + 1, start=start, end=start + len(text))


def test_scenario_borrow_of_box_dyn_any_fires():
	env = _Env()
	source = "f(&x)"
	x = H.HVar(name="x", loc=_span(source, "x"))
	borrow = H.HBorrow(subject=x, loc=_span(source, "&x"))
	box_any = env.box(env.dyn_any)

	diag = env.check(borrow, [(borrow, env.ref(box_any)), (x, box_any)], adjusted=env.ref_dyn_any, source=source)

	assert diag is not None
	assert diag.message == "coercing `&Box<dyn Any>` to `&dyn Any` rather than dereferencing to the `dyn Any` inside"
	assert diag.phase == "lint"
	assert diag.code == "coerce_any_ref_to_any"
	assert diag.span == borrow.loc
	(sugg,) = diag.suggestions
	assert sugg.message == "consider dereferencing"
	assert sugg.replacement == "&*x"
	assert sugg.span == borrow.loc
	assert sugg.applicability is Applicability.MAYBE_INCORRECT


def test_scenario_already_dereferenced_is_silent():
	env = _Env()
	x = H.HVar(name="x")
	deref = H.HUnary(op=H.UnaryOp.DEREF, expr=x)
	borrow = H.HBorrow(subject=deref)
	# No coercion happened: `&*x` is already `&dyn Any`.
	assert env.check(borrow, [(borrow, env.ref_dyn_any), (deref, env.dyn_any), (x, env.box(env.dyn_any))]) is None


def test_scenario_plain_value_has_empty_chain():
	env = _Env()
	v = H.HLiteralInt(value=42)
	borrow = H.HBorrow(subject=v)
	i32 = env.table.ensure_int()
	assert env.check(borrow, [(borrow, env.ref(i32)), (v, i32)], adjusted=env.ref_dyn_any) is None


def test_scenario_declared_already_ref_dyn_any():
	env = _Env()
	r = H.HVar(name="r")
	# Both tables agree on `&dyn Any`; steps 1-2 match but the exclusion holds.
	assert env.check(r, [(r, env.ref_dyn_any)], adjusted=env.ref_dyn_any) is None


def test_declared_equal_to_adjusted_never_fires():
	env = _Env()
	box_any = env.box(env.dyn_any)
	for declared in (env.ref(box_any), env.ref_dyn_any, env.ref(env.ref(box_any)), box_any):
		e = H.HVar(name="e")
		assert env.check(e, [(e, declared)], adjusted=declared) is None


def test_depth_rule_for_borrow_and_non_borrow():
	env = _Env()
	box_any = env.box(env.dyn_any)
	box_box_any = env.box(box_any)

	# `&x` with x: Box<Box<dyn Any>> unwraps in 2 steps.
	source = "g(&x)"
	x = H.HVar(name="x", loc=_span(source, "x"))
	borrow = H.HBorrow(subject=x, loc=_span(source, "&x"))
	diag = env.check(borrow, [(borrow, env.ref(box_box_any)), (x, box_box_any)], adjusted=env.ref_dyn_any, source=source)
	assert diag.suggestions[0].replacement == "&**x"

	# `r` with r: &Box<Box<dyn Any>> needs one more.
	source = "g(r)"
	r = H.HVar(name="r", loc=_span(source, "r"))
	diag = env.check(r, [(r, env.ref(box_box_any))], adjusted=env.ref_dyn_any, source=source)
	assert diag.suggestions[0].replacement == "&***r"


def test_placeholder_when_source_is_unavailable():
	env = _Env()
	box_any = env.box(env.dyn_any)
	r = H.HVar(name="r")
	diag = env.check(r, [(r, env.ref(box_any))], adjusted=env.ref_dyn_any)
	assert diag.suggestions[0].replacement == "&**x"


def test_chain_ending_elsewhere_is_silent():
	env = _Env()
	i32 = env.table.ensure_int()
	box_i32 = env.box(i32)
	r = H.HVar(name="r")
	# Reaching `&dyn Any` from `&Box<i32>` is an unsize, not a missed deref.
	assert env.check(r, [(r, env.ref(box_i32))], adjusted=env.ref_dyn_any) is None


def test_non_reference_adjusted_type_is_silent():
	env = _Env()
	box_any = env.box(env.dyn_any)
	call = H.HCall(fn=H.HPath(segments=["Box", "new"]), args=[H.HUnit()])
	assert env.check(call, [(call, env.box(env.table.ensure_unit()))], adjusted=box_any) is None


def test_missing_types_are_silent():
	env = _Env()
	e = H.HVar(name="e")
	assert env.check(e, []) is None
	assert env.check(H.HVar(name="e2"), [], adjusted=env.ref_dyn_any) is None


def test_mutable_reference_to_dyn_any_also_fires():
	env = _Env()
	box_any = env.box(env.dyn_any)
	r = H.HVar(name="r")
	diag = env.check(r, [(r, env.table.ensure_ref_mut(box_any))], adjusted=env.table.ensure_ref_mut(env.dyn_any))
	assert diag is not None
	assert "`&mut Box<dyn Any>`" in diag.message


def test_unknown_any_trait_never_fires():
	env = _Env()
	box_any = env.box(env.dyn_any)
	r = H.HVar(name="r")
	block = H.HBlock(statements=[H.HExprStmt(expr=r)])
	H.assign_node_ids(block)
	typed_fn = TypedFn(
		name="f",
		body=block,
		signature=None,
		expr_types={r.node_id: env.ref(box_any)},
		adjusted_types={r.node_id: env.ref_dyn_any},
		adjustments={},
		binding_types={},
		binding_names={},
	)
	cx = LateContext(env.table, env.traits, typed_fn)
	assert CoerceAnyRefToAny(None).check_expr(cx, r) is None
