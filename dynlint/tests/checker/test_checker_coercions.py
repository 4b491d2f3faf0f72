# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Declared vs adjusted types at coercion sites."""

from __future__ import annotations

from dynlint import stage1 as H
from dynlint.checker import TypeChecker
from dynlint.checker.coercion import CoercionKind
from dynlint.core.traits import AUTO_TRAITS
from dynlint.core.types_core import TypeKind
from dynlint.parser import parse_program


def _check(source: str):
	prog = parse_program(source)
	return TypeChecker().check_program(prog, file="t.rs", source=source)


def _find_borrow_of(body, name: str) -> H.HBorrow:
	for e in H.iter_exprs(body):
		if isinstance(e, H.HBorrow) and isinstance(e.subject, H.HVar) and e.subject.name == name:
			return e
	raise AssertionError(f"no &{name} in body")


def test_unsize_box_ref_to_dyn_any_records_both_types():
	checked = _check(
		"""
use std::any::Any;
fn main() {
	let x: Box<dyn Any> = Box::new(());
	f(&x);
}
fn f(_: &dyn Any) {}
"""
	)
	assert checked.diagnostics == []
	fn = checked.functions["main"]
	borrow = _find_borrow_of(fn.body, "x")
	table = checked.type_table
	assert table.display(fn.expr_ty(borrow)) == "&Box<dyn Any>"
	assert table.display(fn.expr_ty_adjusted(borrow)) == "&dyn Any"
	assert fn.adjustments[borrow.node_id].kind is CoercionKind.UNSIZE


def test_identity_site_has_no_adjustment():
	checked = _check(
		"""
fn main() {
	let x: Box<dyn Any> = Box::new(());
	let _: &dyn Any = &*x;
}
"""
	)
	assert checked.diagnostics == []
	fn = checked.functions["main"]
	let_stmt = fn.body.statements[1]
	assert let_stmt.value.node_id not in fn.adjusted_types
	assert fn.expr_ty(let_stmt.value) == fn.expr_ty_adjusted(let_stmt.value)


def test_box_new_unsizes_at_annotated_let():
	checked = _check("fn main() { let x: Box<dyn Any> = Box::new(1); }")
	assert checked.diagnostics == []
	fn = checked.functions["main"]
	call = fn.body.statements[0].value
	assert checked.type_table.display(fn.expr_ty(call)) == "Box<i32>"
	assert checked.type_table.display(fn.expr_ty_adjusted(call)) == "Box<dyn Any>"


def test_deref_coercion_through_box():
	checked = _check(
		"""
fn main() {
	let b: Box<i32> = Box::new(3);
	takes(&b);
}
fn takes(_: &i32) {}
"""
	)
	assert checked.diagnostics == []
	fn = checked.functions["main"]
	adj = fn.adjustments[_find_borrow_of(fn.body, "b").node_id]
	assert adj.kind is CoercionKind.DEREF
	assert adj.deref_steps == 1


def test_user_deref_impl_is_registered():
	checked = _check(
		"""
struct Wrapper;
impl Deref for Wrapper { type Target = Box<dyn Any>; }
fn main(w: Wrapper) {
	let r: &Box<dyn Any> = &w;
}
"""
	)
	assert checked.diagnostics == []
	table = checked.type_table
	wrapper = table.new_adt("Wrapper")
	assert table.display(table.deref_target(wrapper)) == "Box<dyn Any>"


def test_upcast_drops_bounds_but_never_adds_them():
	checked = _check(
		"""
fn main(a: &(dyn Any + Send), b: &dyn Any) {
	let _: &dyn Any = a;
	let _: &(dyn Any + Send) = b;
}
"""
	)
	codes = [d.code for d in checked.diagnostics]
	assert codes == ["E0308"]
	fn = checked.functions["main"]
	first = fn.body.statements[0].value
	assert fn.adjustments[first.node_id].kind is CoercionKind.UPCAST


def test_user_trait_object_requires_impl():
	checked = _check(
		"""
trait Shape {}
struct Circle;
struct Square;
impl Shape for Circle {}
fn main(c: Circle, s: Square) {
	let _: &dyn Shape = &c;
	let _: &dyn Shape = &s;
}
"""
	)
	assert [d.code for d in checked.diagnostics] == ["E0308"]
	assert "expected `&dyn Shape`, found `&Square`" in checked.diagnostics[0].message


def test_shared_ref_does_not_become_mut():
	checked = _check("fn main(x: &i32) { let _: &mut i32 = x; }")
	assert [d.code for d in checked.diagnostics] == ["E0308"]


def test_mut_ref_reborrows_as_shared():
	checked = _check("fn main(x: &mut i32) { let _: &i32 = x; }")
	assert checked.diagnostics == []
	fn = checked.functions["main"]
	value = fn.body.statements[0].value
	assert fn.adjustments[value.node_id].kind is CoercionKind.REBORROW


def test_integer_literal_takes_expected_type():
	checked = _check("fn main() { let a: u8 = 1; let b = 2; }")
	assert checked.diagnostics == []
	fn = checked.functions["main"]
	table = checked.type_table
	assert table.display(fn.expr_ty(fn.body.statements[0].value)) == "u8"
	assert table.display(fn.expr_ty(fn.body.statements[1].value)) == "i32"


def test_return_and_tail_are_coercion_sites():
	checked = _check(
		"""
fn early(x: &Box<dyn Any>) -> &dyn Any { return x; }
fn tail(x: &Box<dyn Any>) -> &dyn Any { x }
"""
	)
	assert checked.diagnostics == []
	for name in ("early", "tail"):
		fn = checked.functions[name]
		assert len(fn.adjusted_types) == 1


def test_errors_are_typecheck_diagnostics():
	checked = _check(
		"""
fn main() {
	missing(1);
	let y: Nope = 1;
	let z = *5;
	let w;
	f(1, 2);
	let n = 3;
	n(1);
}
fn f(a: i32) {}
"""
	)
	codes = [d.code for d in checked.diagnostics]
	assert codes == ["E0425", "E0412", "E0614", "E0282", "E0061", "E0618"]
	assert all(d.phase == "typecheck" for d in checked.diagnostics)
	assert all(d.span.file == "t.rs" for d in checked.diagnostics)


def test_unknown_trait_in_dyn_is_reported():
	checked = _check("fn main(x: &dyn Missing) {}")
	assert [d.code for d in checked.diagnostics] == ["E0405"]


def test_every_auto_trait_names_a_dyn_bound():
	bounds = " + ".join(AUTO_TRAITS)
	checked = _check(f"fn main(x: &(dyn {bounds})) {{ let _: &dyn Any = x; }}")
	assert checked.diagnostics == []


def test_missing_tail_for_non_unit_return():
	checked = _check("fn main() -> i32 { }")
	assert [d.code for d in checked.diagnostics] == ["E0308"]


def test_check_function_on_hand_built_hir():
	tc = TypeChecker()
	table = tc.type_table
	i32 = table.ensure_int()
	x = H.HVar(name="x")
	borrow = H.HBorrow(subject=x)
	block = H.HBlock(
		statements=[
			H.HLet(name="x", value=H.HLiteralInt(value=1)),
			H.HLet(name="r", value=borrow, declared_type_expr=table.ensure_ref(i32)),
		]
	)
	res = tc.check_function("f", block)
	assert res.diagnostics == []
	assert res.typed_fn.expr_ty(borrow) == table.ensure_ref(i32)
	assert x.binding_id is not None
	assert table.get(res.typed_fn.expr_ty(x)).kind is TypeKind.SCALAR
