# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from dynlint.parser import ParseError, ast, parse_program


def test_parse_program_collects_items():
	source = """
#![warn(clippy::coerce_any_ref_to_any)]
use std::any::Any;

struct Wrapper;
struct Pair { a: i32, b: Box<dyn Any>, }
trait Shape {}
impl Shape for Wrapper {}
impl Deref for Wrapper { type Target = Box<dyn Any>; }

#[allow(clippy::coerce_any_ref_to_any)]
fn f(_: &dyn Any) {}
fn main() {}
"""
	prog = parse_program(source)

	assert [a.level for a in prog.attrs] == ["warn"]
	assert prog.attrs[0].lints == ["clippy::coerce_any_ref_to_any"]
	assert prog.attrs[0].inner
	assert [u.path for u in prog.uses] == [["std", "any", "Any"]]
	assert [s.name for s in prog.structs] == ["Wrapper", "Pair"]
	assert [f.name for f in prog.structs[1].fields] == ["a", "b"]
	assert [t.name for t in prog.traits] == ["Shape"]
	assert [i.trait_name for i in prog.impls] == ["Shape", "Deref"]
	assert set(prog.impls[1].assoc_types) == {"Target"}
	assert [fn.name for fn in prog.functions] == ["f", "main"]
	assert prog.functions[0].attrs[0].level == "allow"
	assert not prog.functions[0].attrs[0].inner


def test_parse_reference_and_trait_object_types():
	prog = parse_program("fn f(a: &'a mut dyn Any + Send, b: &dyn for<'x> Any, c: Box<Box<dyn Any>>) {}")
	a, b, c = (p.type_expr for p in prog.functions[0].params)

	assert a.kind == "ref" and a.mutable
	assert a.args[0].kind == "dyn"
	assert [bd.name for bd in a.args[0].bounds] == ["Any", "Send"]

	assert b.args[0].bounds[0].bound_vars == ["'x"]

	assert c.kind == "path" and c.name == "Box"
	assert c.args[0].name == "Box"
	assert c.args[0].args[0].kind == "dyn"

	prog = parse_program("fn g(r: &&Box<dyn Any>, m: &&mut i32) {}")
	r, m = (p.type_expr for p in prog.functions[0].params)
	assert r.kind == "ref" and not r.mutable
	assert r.args[0].kind == "ref" and not r.args[0].mutable
	assert r.args[0].args[0].name == "Box"
	assert r.args[0].loc.column == r.loc.column + 1
	assert not m.mutable and m.args[0].mutable
	assert m.args[0].args[0].name == "i32"


def test_parse_statements_and_tail():
	prog = parse_program(
		"""
fn g() -> i32 {
	let x: Box<dyn Any> = Box::new(());
	let mut y = 5u8;
	f(&x);
	return 1;
	7
}
"""
	)
	body = prog.functions[0].body
	let_x, let_y, call, ret = body.statements

	assert isinstance(let_x, ast.LetStmt) and let_x.type_expr.name == "Box"
	assert isinstance(let_x.value, ast.Call)
	assert isinstance(let_x.value.func, ast.Path)
	assert let_x.value.func.segments == ["Box", "new"]
	assert isinstance(let_x.value.args[0], ast.UnitLit)

	assert let_y.mutable and let_y.type_expr is None
	assert let_y.value.value == 5 and let_y.value.suffix == "u8"

	assert isinstance(call, ast.ExprStmt)
	assert isinstance(call.value.args[0], ast.Borrow)
	assert isinstance(ret, ast.ReturnStmt) and ret.value.value == 1
	assert isinstance(body.tail, ast.Literal) and body.tail.value == 7


def test_double_borrow_is_two_borrows():
	prog = parse_program("fn h() { f(&&x); f(&**y); }")
	outer = prog.functions[0].body.statements[0].value.args[0]
	assert isinstance(outer, ast.Borrow)
	assert isinstance(outer.operand, ast.Borrow)
	assert isinstance(outer.operand.operand, ast.Name)
	assert outer.operand.loc.start == outer.loc.start + 1

	deref = prog.functions[0].body.statements[1].value.args[0]
	assert isinstance(deref.operand, ast.Deref)
	assert isinstance(deref.operand.operand, ast.Deref)


def test_spans_cover_source_text():
	source = "fn main() { f(&x); }"
	prog = parse_program(source)
	borrow = prog.functions[0].body.statements[0].value.args[0]
	assert source[borrow.loc.start:borrow.loc.end] == "&x"
	assert borrow.loc.line == 1
	assert borrow.loc.column == source.index("&x") + 1


def test_comments_are_ignored():
	prog = parse_program("// leading\nfn main() { /* inner */ }\n")
	assert [fn.name for fn in prog.functions] == ["main"]


def test_parse_error_carries_location():
	with pytest.raises(ParseError) as excinfo:
		parse_program("fn main() {\n\tlet = 3;\n}")
	assert excinfo.value.loc.line == 2


def test_unknown_attribute_level_is_a_parse_error():
	with pytest.raises(ParseError, match="unknown lint level"):
		parse_program("#![silence(clippy::coerce_any_ref_to_any)]\nfn main() {}")
