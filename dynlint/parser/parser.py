from __future__ import annotations

import ast
from pathlib import Path
from typing import List, Optional

from lark import Lark, Token, Tree, UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken

from .ast import (
	Attribute,
	Block,
	Borrow,
	Call,
	Deref,
	Expr,
	ExprStmt,
	FunctionDef,
	ImplDef,
	LetStmt,
	Literal,
	Located,
	Name,
	Param,
	Paren,
	Path as PathExpr,
	Program,
	ReturnStmt,
	Stmt,
	StructDef,
	StructField,
	TraitBound,
	TraitDef,
	TypeExpr,
	UnitLit,
	UseDecl,
)

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

LINT_LEVELS = ("allow", "warn", "deny", "forbid")


class ParseError(ValueError):
	"""
	User-facing parse failure.

	This is a `ValueError` subclass so callers can treat it as a parse-time
	failure, but it carries a best-effort location (`loc`) so the driver can
	convert it into a structured diagnostic instead of crashing.
	"""

	def __init__(self, message: str, *, loc: Located) -> None:
		super().__init__(message)
		self.loc = loc


_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	lexer="basic",
	start="start",
	propagate_positions=True,
	maybe_placeholders=False,
)


def parse_program(source: str) -> Program:
	"""Parse a whole source file; raises ParseError on malformed input."""
	try:
		tree = _PARSER.parse(source)
	except UnexpectedInput as exc:
		raise _parse_error_from_lark(exc) from exc
	return _build_program(tree)


def _parse_error_from_lark(exc: UnexpectedInput) -> ParseError:
	line = getattr(exc, "line", None) or 0
	column = getattr(exc, "column", None) or 0
	loc = Located(line=line if line > 0 else 0, column=column if column > 0 else 0, start=getattr(exc, "pos_in_stream", None))
	if isinstance(exc, UnexpectedToken):
		tok = exc.token
		if tok.type == "$END":
			return ParseError("unexpected end of input", loc=loc)
		expected = ", ".join(sorted(exc.expected)[:6])
		return ParseError(f"unexpected token '{tok.value}' (expected one of: {expected})", loc=loc)
	if isinstance(exc, UnexpectedCharacters):
		return ParseError(f"unexpected character '{exc.char}'", loc=loc)
	if isinstance(exc, UnexpectedEOF):
		return ParseError("unexpected end of input", loc=loc)
	return ParseError(str(exc), loc=loc)


def _build_program(tree: Tree) -> Program:
	program = Program()
	for child in tree.children:
		if not isinstance(child, Tree):
			continue
		kind = _name(child)
		if kind == "inner_attr":
			program.attrs.append(_build_attr(child, inner=True))
		elif kind == "fn_def":
			program.functions.append(_build_function(child))
		elif kind in {"unit_struct", "field_struct"}:
			program.structs.append(_build_struct_def(child))
		elif kind == "trait_def":
			program.traits.append(_build_trait_def(child))
		elif kind == "impl_def":
			program.impls.append(_build_impl_def(child))
		elif kind == "use_decl":
			program.uses.append(_build_use_decl(child))
		else:
			raise ParseError(f"unsupported item '{kind}'", loc=_loc(child))
	return program


def _build_attr(tree: Tree, *, inner: bool) -> Attribute:
	body = next(child for child in tree.children if isinstance(child, Tree) and _name(child) == "attr_body")
	level_tok = body.children[0]
	level = level_tok.value
	if level not in LINT_LEVELS:
		raise ParseError(f"unknown lint level attribute '{level}'", loc=_loc_from_token(level_tok))
	lints: List[str] = []
	for child in body.children[1:]:
		if isinstance(child, Tree) and _name(child) == "lint_path":
			lints.append("::".join(tok.value for tok in child.children if isinstance(tok, Token)))
	return Attribute(level=level, lints=lints, inner=inner, loc=_loc(tree))


def _build_use_decl(tree: Tree) -> UseDecl:
	parts = [tok.value for tok in tree.children if isinstance(tok, Token) and tok.type == "NAME"]
	return UseDecl(path=parts, loc=_loc(tree))


def _build_function(tree: Tree) -> FunctionDef:
	attrs: List[Attribute] = []
	name_token: Optional[Token] = None
	params: List[Param] = []
	return_type: Optional[TypeExpr] = None
	body: Optional[Block] = None
	for child in tree.children:
		if isinstance(child, Token) and child.type == "NAME":
			name_token = child
			continue
		if not isinstance(child, Tree):
			continue
		kind = _name(child)
		if kind == "outer_attr":
			attrs.append(_build_attr(child, inner=False))
		elif kind == "params":
			params = [_build_param(p) for p in child.children if isinstance(p, Tree)]
		elif kind == "ret_type":
			return_type = _build_type_expr(child.children[0])
		elif kind == "block":
			body = _build_block(child)
	if name_token is None or body is None:
		raise ParseError("malformed function definition", loc=_loc(tree))
	return FunctionDef(
		name=name_token.value,
		params=params,
		return_type=return_type,
		body=body,
		loc=_loc_from_token(name_token),
		attrs=attrs,
	)


def _build_param(tree: Tree) -> Param:
	name_token, type_node = tree.children
	return Param(name=name_token.value, type_expr=_build_type_expr(type_node), loc=_loc(tree))


def _build_struct_def(tree: Tree) -> StructDef:
	name_token = tree.children[0]
	fields: List[StructField] = []
	for child in tree.children[1:]:
		if isinstance(child, Tree) and _name(child) == "struct_fields":
			for field_node in child.children:
				if isinstance(field_node, Tree):
					fname = field_node.children[0]
					fields.append(StructField(name=fname.value, type_expr=_build_type_expr(field_node.children[1])))
	return StructDef(name=name_token.value, fields=fields, loc=_loc(tree))


def _build_trait_def(tree: Tree) -> TraitDef:
	return TraitDef(name=tree.children[0].value, loc=_loc(tree))


def _build_impl_def(tree: Tree) -> ImplDef:
	trait_node = tree.children[0]
	trait_type = _build_type_path(trait_node)
	if trait_type.args:
		raise ParseError("generic trait arguments are not supported in impls", loc=_loc(trait_node))
	target = _build_type_expr(tree.children[1])
	assoc: dict[str, TypeExpr] = {}
	for member in tree.children[2:]:
		if isinstance(member, Tree) and _name(member) == "impl_member":
			assoc_name = member.children[0].value
			if assoc_name in assoc:
				raise ParseError(f"duplicate associated type '{assoc_name}'", loc=_loc(member))
			assoc[assoc_name] = _build_type_expr(member.children[1])
	return ImplDef(trait_path=trait_type.name.split("::"), target=target, assoc_types=assoc, loc=_loc(tree))


# Types --------------------------------------------------------------------

def _build_type_expr(node) -> TypeExpr:
	if not isinstance(node, Tree):
		raise ParseError(f"expected a type, found '{node}'", loc=_loc_from_token(node))
	kind = _name(node)
	if kind == "ref_type":
		mutable = any(isinstance(c, Token) and c.type == "MUT" for c in node.children)
		inner = next(c for c in node.children if isinstance(c, Tree))
		return TypeExpr(kind="ref", args=[_build_type_expr(inner)], mutable=mutable, loc=_loc(node))
	if kind == "double_ref_type":
		# `&&T` lexes as one token; it is `&(&T)` with the outer reference shared.
		mutable = any(isinstance(c, Token) and c.type == "MUT" for c in node.children)
		inner = next(c for c in node.children if isinstance(c, Tree))
		loc = _loc(node)
		inner_ref = TypeExpr(kind="ref", args=[_build_type_expr(inner)], mutable=mutable, loc=_after_first_amp(loc))
		return TypeExpr(kind="ref", args=[inner_ref], loc=loc)
	if kind == "dyn_type":
		bounds = [_build_bound(c) for c in node.children if isinstance(c, Tree)]
		return TypeExpr(kind="dyn", bounds=bounds, loc=_loc(node))
	if kind == "unit_type":
		return TypeExpr(kind="unit", name="()", loc=_loc(node))
	if kind == "type_path":
		return _build_type_path(node)
	raise ParseError(f"unsupported type syntax '{kind}'", loc=_loc(node))


def _build_type_path(node: Tree) -> TypeExpr:
	segments = [tok.value for tok in node.children if isinstance(tok, Token) and tok.type == "NAME"]
	args: List[TypeExpr] = []
	for child in node.children:
		if isinstance(child, Tree) and _name(child) == "type_args":
			args = [_build_type_expr(arg) for arg in child.children if isinstance(arg, Tree)]
	return TypeExpr(kind="path", name="::".join(segments), args=args, loc=_loc(node))


def _build_bound(node: Tree) -> TraitBound:
	bound_vars: List[str] = []
	path: List[str] = []
	for child in node.children:
		if not isinstance(child, Tree):
			continue
		if _name(child) == "for_binder":
			bound_vars = [tok.value for tok in child.children if isinstance(tok, Token) and tok.type == "LIFETIME"]
		elif _name(child) == "type_path":
			ty = _build_type_path(child)
			if ty.args:
				raise ParseError("generic trait bounds are not supported", loc=_loc(child))
			path = ty.name.split("::")
	return TraitBound(path=path, bound_vars=bound_vars, loc=_loc(node))


# Statements ---------------------------------------------------------------

def _build_block(tree: Tree) -> Block:
	statements: List[Stmt] = []
	tail: Optional[Expr] = None
	children = [child for child in tree.children if isinstance(child, Tree)]
	for idx, child in enumerate(children):
		kind = _name(child)
		if kind == "let_stmt":
			statements.append(_build_let_stmt(child))
		elif kind == "expr_stmt":
			statements.append(ExprStmt(loc=_loc(child), value=_build_expr(child.children[0])))
		elif kind == "return_stmt":
			statements.append(_build_return_stmt(child))
		elif idx == len(children) - 1:
			tail = _build_expr(child)
		else:
			raise ParseError(f"unexpected statement '{kind}'", loc=_loc(child))
	return Block(statements=statements, tail=tail, loc=_loc(tree))


def _build_let_stmt(tree: Tree) -> LetStmt:
	mutable = False
	name_token: Optional[Token] = None
	type_expr: Optional[TypeExpr] = None
	value: Optional[Expr] = None
	for child in tree.children:
		if isinstance(child, Token):
			if child.type == "MUT":
				mutable = True
			elif child.type == "NAME" and name_token is None:
				name_token = child
			continue
		# The optional type always precedes the optional initializer; the
		# grammar keeps them apart by node kind.
		if type_expr is None and value is None and _is_type_node(child):
			type_expr = _build_type_expr(child)
		else:
			value = _build_expr(child)
	if name_token is None:
		raise ParseError("let binding missing name", loc=_loc(tree))
	return LetStmt(loc=_loc(tree), name=name_token.value, type_expr=type_expr, value=value, mutable=mutable)


_TYPE_NODES = {"ref_type", "double_ref_type", "dyn_type", "unit_type", "type_path"}


def _is_type_node(node: Tree) -> bool:
	return _name(node) in _TYPE_NODES


def _build_return_stmt(tree: Tree) -> ReturnStmt:
	values = [child for child in tree.children if isinstance(child, Tree)]
	value = _build_expr(values[0]) if values else None
	return ReturnStmt(loc=_loc(tree), value=value)


# Expressions --------------------------------------------------------------

def _build_expr(node) -> Expr:
	if not isinstance(node, Tree):
		raise ParseError(f"unexpected token '{node}'", loc=_loc_from_token(node))
	name = _name(node)
	if name == "borrow":
		mutable = any(isinstance(c, Token) and c.type == "MUT" for c in node.children)
		operand = _build_expr(node.children[-1])
		return Borrow(loc=_loc(node), operand=operand, mutable=mutable)
	if name == "double_borrow":
		# `&&x` lexes as one token; it is `&(&x)` with the outer borrow shared.
		mutable = any(isinstance(c, Token) and c.type == "MUT" for c in node.children)
		operand = _build_expr(node.children[-1])
		loc = _loc(node)
		return Borrow(loc=loc, operand=Borrow(loc=_after_first_amp(loc), operand=operand, mutable=mutable))
	if name == "deref":
		return Deref(loc=_loc(node), operand=_build_expr(node.children[0]))
	if name == "call":
		func = _build_expr(node.children[0])
		args: List[Expr] = []
		for child in node.children[1:]:
			if isinstance(child, Tree) and _name(child) == "args":
				args = [_build_expr(a) for a in child.children if isinstance(a, Tree)]
		return Call(loc=_loc(node), func=func, args=args)
	if name == "int_lit":
		return _build_int_lit(node)
	if name == "true_lit":
		return Literal(loc=_loc(node), value=True)
	if name == "false_lit":
		return Literal(loc=_loc(node), value=False)
	if name == "str_lit":
		raw = node.children[0].value
		return Literal(loc=_loc(node), value=ast.literal_eval(raw))
	if name == "unit_lit":
		return UnitLit(loc=_loc(node))
	if name == "paren":
		return Paren(loc=_loc(node), inner=_build_expr(node.children[0]))
	if name == "path_expr":
		segments = [tok.value for tok in node.children if isinstance(tok, Token)]
		if len(segments) == 1:
			return Name(loc=_loc(node), ident=segments[0])
		return PathExpr(loc=_loc(node), segments=segments)
	raise ParseError(f"unsupported expression node: {name}", loc=_loc(node))


def _build_int_lit(node: Tree) -> Literal:
	text = node.children[0].value.replace("_", "")
	suffix = None
	for marker in ("i", "u"):
		pos = text.find(marker)
		if pos > 0:
			suffix = text[pos:]
			text = text[:pos]
			break
	return Literal(loc=_loc(node), value=int(text), suffix=suffix)


# Locations ----------------------------------------------------------------

def _loc(tree: Tree) -> Located:
	meta = tree.meta
	if getattr(meta, "empty", True):
		return Located(line=0, column=0)
	return Located(
		line=meta.line,
		column=meta.column,
		end_line=meta.end_line,
		end_column=meta.end_column,
		start=meta.start_pos,
		end=meta.end_pos,
	)


def _after_first_amp(loc: Located) -> Located:
	"""Location of the inner half of a `&&` token."""
	return Located(
		line=loc.line,
		column=loc.column + 1,
		end_line=loc.end_line,
		end_column=loc.end_column,
		start=loc.start + 1 if loc.start is not None else None,
		end=loc.end,
	)


def _loc_from_token(token: Token) -> Located:
	return Located(
		line=token.line,
		column=token.column,
		end_line=token.end_line,
		end_column=token.end_column,
		start=token.start_pos,
		end=token.end_pos,
	)


def _name(node: Tree | Token) -> str:
	if isinstance(node, Tree):
		data = node.data
		if isinstance(data, Token):
			return data.value
		return data
	if isinstance(node, Token):
		return node.type
	return str(node)
