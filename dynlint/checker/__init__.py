# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Typed checker for the dynlint surface language.

The checker:
- registers structs, traits, trait impls and `Deref` targets,
- resolves function signatures,
- types every HIR expression, recording its declared TypeId, and
- applies implicit coercions at coercion sites, recording the adjusted
  TypeId (and the Adjustment) for every expression that was coerced.

Lints read the result through TypedFn; they never re-run inference.
Type errors become `phase="typecheck"` diagnostics and the offending node is
typed as Unknown so checking can continue.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from dynlint.core.diagnostics import Diagnostic
from dynlint.core.span import Span
from dynlint.core.traits import AUTO_TRAITS, TraitTable
from dynlint.core.types_core import SMART_POINTERS, TraitId, TypeId, TypeKind, TypeTable
from dynlint.checker.coercion import Adjustment, CoercionKind, try_coerce
from dynlint.checker.type_resolver import TypeResolutionError, TypeResolver
from dynlint.parser import ast
from dynlint.stage1 import hir_nodes as H
from dynlint.stage1.ast_to_hir import AstToHIR
from dynlint.stage1.node_ids import assign_node_ids


# Checker diagnostics should always carry phase.
def _chk_diag(*args, **kwargs):
	if "phase" not in kwargs or kwargs.get("phase") is None:
		kwargs["phase"] = "typecheck"
	return Diagnostic(*args, **kwargs)


# Constructors callable as `Box::new(v)`; each wraps its argument.
_POINTER_CTORS = {f"{name}::new": name for name in SMART_POINTERS}


@dataclass(frozen=True)
class FnSignature:
	"""Resolved function signature."""

	name: str
	param_names: Tuple[str, ...]
	param_types: Tuple[TypeId, ...]
	return_type: TypeId


@dataclass
class TypedFn:
	"""Typed view of a single function's HIR."""

	name: str
	body: H.HBlock
	signature: Optional[FnSignature]
	expr_types: Dict[int, TypeId]  # NodeId -> declared TypeId
	adjusted_types: Dict[int, TypeId]  # NodeId -> TypeId after coercion (coerced nodes only)
	adjustments: Dict[int, Adjustment]  # NodeId -> coercion applied
	binding_types: Dict[int, TypeId]  # binding_id -> TypeId
	binding_names: Dict[int, str]  # binding_id -> name
	source: Optional[str] = None

	def expr_ty(self, expr: H.HExpr) -> Optional[TypeId]:
		"""Type of `expr` with no implicit conversions applied."""
		return self.expr_types.get(expr.node_id)

	def expr_ty_adjusted(self, expr: H.HExpr) -> Optional[TypeId]:
		"""Type of `expr` after the coercions the checker inserted."""
		adjusted = self.adjusted_types.get(expr.node_id)
		if adjusted is not None:
			return adjusted
		return self.expr_types.get(expr.node_id)


@dataclass
class TypeCheckResult:
	"""Result of type checking a function."""

	typed_fn: TypedFn
	diagnostics: List[Diagnostic] = field(default_factory=list)


@dataclass
class CheckedProgram:
	program: ast.Program
	functions: Dict[str, TypedFn]
	signatures: Dict[str, FnSignature]
	type_table: TypeTable
	traits: TraitTable
	diagnostics: List[Diagnostic] = field(default_factory=list)

	def has_errors(self) -> bool:
		return any(d.severity == "error" for d in self.diagnostics)


class TypeChecker:
	"""
	HIR type checker that assigns binding IDs, declared and adjusted types.

	Tests can drive `check_function` directly with hand-built HIR;
	`check_program` runs the whole front half for a parsed program.
	"""

	def __init__(self, type_table: Optional[TypeTable] = None, traits: Optional[TraitTable] = None):
		self.type_table = type_table or TypeTable()
		self.traits = traits or TraitTable.with_builtins()
		self._int = self.type_table.ensure_int()
		self._bool = self.type_table.ensure_bool()
		self._unit = self.type_table.ensure_unit()
		self._unknown = self.type_table.ensure_unknown()
		self._str_ref = self.type_table.ensure_ref(self.type_table.ensure_str())
		self._next_binding_id = 1
		self.signatures: Dict[str, FnSignature] = {}

	def _alloc_binding_id(self) -> int:
		bid = self._next_binding_id
		self._next_binding_id += 1
		return bid

	# Program-level --------------------------------------------------------

	def check_program(self, program: ast.Program, *, file: Optional[str] = None, source: Optional[str] = None) -> CheckedProgram:
		diagnostics: List[Diagnostic] = []

		structs: Dict[str, TypeId] = {}
		for st in program.structs:
			if st.name in structs:
				diagnostics.append(_chk_diag(message=f"the name `{st.name}` is defined multiple times", code="E0428", severity="error", span=Span.from_loc(st.loc, file=file)))
				continue
			structs[st.name] = self.type_table.new_adt(st.name)

		trait_scope: Dict[str, TraitId] = {}
		for name in AUTO_TRAITS:
			tid = self.traits.builtin(name)
			if tid is not None:
				trait_scope[name] = tid
		for tr in program.traits:
			if tr.name in trait_scope and not self.traits.traits[trait_scope[tr.name]].builtin:
				diagnostics.append(_chk_diag(message=f"the name `{tr.name}` is defined multiple times", code="E0428", severity="error", span=Span.from_loc(tr.loc, file=file)))
				continue
			trait_scope[tr.name] = self.traits.new_trait(tr.name)

		resolver = TypeResolver(self.type_table, structs=structs, trait_scope=trait_scope, file=file)

		for st in program.structs:
			for fld in st.fields:
				try:
					resolver.resolve(fld.type_expr)
				except TypeResolutionError as err:
					diagnostics.append(err.diagnostic)

		for impl in program.impls:
			self._register_impl(impl, resolver, structs, diagnostics, file)

		for fn in program.functions:
			sig = self._resolve_signature(fn, resolver, diagnostics, file)
			if fn.name in self.signatures:
				diagnostics.append(_chk_diag(message=f"the name `{fn.name}` is defined multiple times", code="E0428", severity="error", span=Span.from_loc(fn.loc, file=file)))
				continue
			self.signatures[fn.name] = sig

		lowerer = AstToHIR(file=file)
		functions: Dict[str, TypedFn] = {}
		for fn in program.functions:
			if fn.name in functions:
				continue
			body = lowerer.lower_function(fn)
			sig = self.signatures[fn.name]
			res = self.check_function(
				fn.name,
				body,
				param_types=dict(zip(sig.param_names, sig.param_types)),
				return_type=sig.return_type,
				resolver=resolver,
				signature=sig,
			)
			res.typed_fn.source = source
			functions[fn.name] = res.typed_fn
			diagnostics.extend(res.diagnostics)

		return CheckedProgram(
			program=program,
			functions=functions,
			signatures=dict(self.signatures),
			type_table=self.type_table,
			traits=self.traits,
			diagnostics=diagnostics,
		)

	def _register_impl(
		self,
		impl: ast.ImplDef,
		resolver: TypeResolver,
		structs: Mapping[str, TypeId],
		diagnostics: List[Diagnostic],
		file: Optional[str],
	) -> None:
		span = Span.from_loc(impl.loc, file=file)
		if impl.trait_name == "Deref" and "Deref" not in resolver.trait_scope:
			target_name = impl.target.name.split("::")[-1] if impl.target.kind == "path" else ""
			if target_name not in structs or impl.target.args:
				diagnostics.append(_chk_diag(message="`Deref` can only be implemented for structs declared in this file", code="E0117", severity="error", span=span))
				return
			target_te = impl.assoc_types.get("Target")
			if target_te is None:
				diagnostics.append(_chk_diag(message="not all trait items implemented, missing: `Target`", code="E0046", severity="error", span=span))
				return
			try:
				target = resolver.resolve(target_te)
			except TypeResolutionError as err:
				diagnostics.append(err.diagnostic)
				return
			if target is None:
				diagnostics.append(_chk_diag(message="the placeholder `_` is not allowed here", code="E0121", severity="error", span=span))
				return
			self.type_table.set_deref_target(target_name, target)
			return
		try:
			trait_id = resolver.resolve_trait(impl.trait_path, impl.loc)
			target = resolver.resolve(impl.target)
		except TypeResolutionError as err:
			diagnostics.append(err.diagnostic)
			return
		if impl.assoc_types:
			name = next(iter(impl.assoc_types))
			diagnostics.append(_chk_diag(message=f"type `{name}` is not a member of trait `{impl.trait_name}`", code="E0437", severity="error", span=span))
		if target is not None:
			self.traits.add_impl(trait_id, target)

	def _resolve_signature(self, fn: ast.FunctionDef, resolver: TypeResolver, diagnostics: List[Diagnostic], file: Optional[str]) -> FnSignature:
		param_types: List[TypeId] = []
		for param in fn.params:
			try:
				ty = resolver.resolve(param.type_expr)
			except TypeResolutionError as err:
				diagnostics.append(err.diagnostic)
				ty = self._unknown
			if ty is None:
				diagnostics.append(_chk_diag(message="the placeholder `_` is not allowed within types on item signatures", code="E0121", severity="error", span=Span.from_loc(param.loc, file=file)))
				ty = self._unknown
			param_types.append(ty)
		ret = self._unit
		if fn.return_type is not None:
			try:
				ret = resolver.resolve(fn.return_type) or self._unknown
			except TypeResolutionError as err:
				diagnostics.append(err.diagnostic)
				ret = self._unknown
		return FnSignature(
			name=fn.name,
			param_names=tuple(p.name for p in fn.params),
			param_types=tuple(param_types),
			return_type=ret,
		)

	# Function-level -------------------------------------------------------

	def check_function(
		self,
		name: str,
		body: H.HBlock,
		param_types: Mapping[str, TypeId] | None = None,
		return_type: TypeId | None = None,
		*,
		resolver: TypeResolver | None = None,
		signature: FnSignature | None = None,
	) -> TypeCheckResult:
		"""
		Type `body` with the given parameters in scope.

		`resolver` resolves `let` annotations; without one (hand-built HIR in
		tests) annotations must already be TypeIds. Bodies that were never
		numbered get NodeIds here.
		"""
		if body.node_id == 0:
			assign_node_ids(body)
		table = self.type_table
		ret_ty = return_type if return_type is not None else self._unit
		scope_env: List[Dict[str, Tuple[int, TypeId]]] = [dict()]
		expr_types: Dict[int, TypeId] = {}
		adjusted_types: Dict[int, TypeId] = {}
		adjustments: Dict[int, Adjustment] = {}
		binding_types: Dict[int, TypeId] = {}
		binding_names: Dict[int, str] = {}
		diagnostics: List[Diagnostic] = []

		def bind(bname: str, ty: TypeId) -> int:
			bid = self._alloc_binding_id()
			if bname != "_":
				scope_env[-1][bname] = (bid, ty)
			binding_types[bid] = ty
			binding_names[bid] = bname
			return bid

		for pname, pty in (param_types or {}).items():
			bind(pname, pty)

		def err(message: str, code: str, span: Span) -> None:
			diagnostics.append(_chk_diag(message=message, code=code, severity="error", span=span))

		def record_expr(expr: H.HExpr, ty: TypeId) -> TypeId:
			expr_types[expr.node_id] = ty
			return ty

		def show(ty: TypeId) -> str:
			return table.display(ty)

		def coerce_site(expr: H.HExpr, expected: TypeId) -> TypeId:
			actual = type_expr(expr, expected)
			adj = try_coerce(table, self.traits, actual, expected)
			if adj is None:
				err(f"mismatched types: expected `{show(expected)}`, found `{show(actual)}`", "E0308", expr.loc)
				return actual
			if adj.kind is not CoercionKind.IDENTITY:
				adjusted_types[expr.node_id] = adj.target
				adjustments[expr.node_id] = adj
			return adj.target

		def lookup_var(vname: str) -> Optional[Tuple[int, TypeId]]:
			for scope in reversed(scope_env):
				if vname in scope:
					return scope[vname]
			return None

		def type_expr(expr: H.HExpr, expected: Optional[TypeId] = None) -> TypeId:
			if isinstance(expr, H.HLiteralInt):
				if expr.suffix is not None:
					return record_expr(expr, table.new_scalar(expr.suffix))
				if expected is not None and table.is_integer(expected):
					return record_expr(expr, expected)
				return record_expr(expr, self._int)
			if isinstance(expr, H.HLiteralBool):
				return record_expr(expr, self._bool)
			if isinstance(expr, H.HLiteralString):
				return record_expr(expr, self._str_ref)
			if isinstance(expr, H.HUnit):
				return record_expr(expr, self._unit)
			if isinstance(expr, H.HVar):
				found = lookup_var(expr.name)
				if found is not None:
					expr.binding_id = found[0]
					return record_expr(expr, found[1])
				sig = self.signatures.get(expr.name)
				if sig is not None:
					return record_expr(expr, table.new_function(sig.name, sig.param_types, sig.return_type))
				err(f"cannot find value `{expr.name}` in this scope", "E0425", expr.loc)
				return record_expr(expr, self._unknown)
			if isinstance(expr, H.HPath):
				err(f"`{expr.text}` is only supported as a call target", "E0423", expr.loc)
				return record_expr(expr, self._unknown)
			if isinstance(expr, H.HBorrow):
				hint = None
				if expected is not None:
					hint = table.ref_inner(expected)
				inner_ty = type_expr(expr.subject, hint)
				return record_expr(expr, table.new_ref(inner_ty, is_mut=expr.is_mut))
			if isinstance(expr, H.HUnary) and expr.op is H.UnaryOp.DEREF:
				inner_ty = type_expr(expr.expr)
				if table.get(inner_ty).kind is TypeKind.UNKNOWN:
					return record_expr(expr, self._unknown)
				target = table.deref_target(inner_ty)
				if target is None:
					err(f"type `{show(inner_ty)}` cannot be dereferenced", "E0614", expr.loc)
					return record_expr(expr, self._unknown)
				return record_expr(expr, target)
			if isinstance(expr, H.HCall):
				return record_expr(expr, type_call(expr, expected))
			err(f"unsupported expression `{type(expr).__name__}`", "E0000", getattr(expr, "loc", Span()))
			return record_expr(expr, self._unknown)

		def type_call(expr: H.HCall, expected: Optional[TypeId]) -> TypeId:
			fn = expr.fn
			ctor = "::".join(fn.segments[-2:]) if isinstance(fn, H.HPath) else None
			if ctor in _POINTER_CTORS:
				ptr_name = _POINTER_CTORS[ctor]
				record_expr(fn, self._unknown)
				if len(expr.args) != 1:
					err(f"this function takes 1 argument but {len(expr.args)} arguments were supplied", "E0061", expr.loc)
					for a in expr.args:
						type_expr(a)
					return self._unknown
				hint = table.smart_pointee(expected) if expected is not None else None
				arg_ty = type_expr(expr.args[0], hint)
				if not table.is_sized(arg_ty):
					err(f"the size for values of type `{show(arg_ty)}` cannot be known at compilation time", "E0277", expr.args[0].loc)
					return self._unknown
				return table.new_adt(ptr_name, [arg_ty])
			if ctor == "String::new":
				record_expr(fn, self._unknown)
				for a in expr.args:
					type_expr(a)
				if expr.args:
					err(f"this function takes 0 arguments but {len(expr.args)} arguments were supplied", "E0061", expr.loc)
				return table.new_adt("String")
			fn_ty = type_expr(fn)
			fn_def = table.get(fn_ty)
			if fn_def.kind is TypeKind.UNKNOWN:
				for a in expr.args:
					type_expr(a)
				return self._unknown
			if fn_def.kind is not TypeKind.FUNCTION:
				err(f"expected function, found `{show(fn_ty)}`", "E0618", fn.loc)
				for a in expr.args:
					type_expr(a)
				return self._unknown
			params = fn_def.param_types[:-1]
			if len(params) != len(expr.args):
				err(f"this function takes {len(params)} argument{'s' if len(params) != 1 else ''} but {len(expr.args)} argument{'s were' if len(expr.args) != 1 else ' was'} supplied", "E0061", expr.loc)
				for a in expr.args:
					type_expr(a)
				return fn_def.param_types[-1]
			for arg, pty in zip(expr.args, params):
				coerce_site(arg, pty)
			return fn_def.param_types[-1]

		def resolve_annotation(te: object, span: Span) -> Optional[TypeId]:
			if te is None:
				return None
			if isinstance(te, int):
				return te
			if resolver is None:
				err("type annotations require a resolver", "E0000", span)
				return self._unknown
			try:
				return resolver.resolve(te)  # type: ignore[arg-type]
			except TypeResolutionError as rerr:
				diagnostics.append(rerr.diagnostic)
				return self._unknown

		def type_stmt(stmt: H.HStmt) -> bool:
			"""Type one statement; True when it diverges (`return`)."""
			if isinstance(stmt, H.HLet):
				declared = resolve_annotation(stmt.declared_type_expr, stmt.loc)
				if stmt.value is None:
					if declared is None:
						err("type annotations needed", "E0282", stmt.loc)
						declared = self._unknown
					stmt.binding_id = bind(stmt.name, declared)
					return False
				if declared is not None:
					val_ty = coerce_site(stmt.value, declared)
				else:
					val_ty = type_expr(stmt.value)
				stmt.binding_id = bind(stmt.name, declared if declared is not None else val_ty)
				return False
			if isinstance(stmt, H.HExprStmt):
				type_expr(stmt.expr)
				return False
			if isinstance(stmt, H.HReturn):
				if stmt.value is not None:
					coerce_site(stmt.value, ret_ty)
				elif table.get(ret_ty).kind not in (TypeKind.UNIT, TypeKind.UNKNOWN):
					err(f"mismatched types: expected `{show(ret_ty)}`, found `()`", "E0069", stmt.loc)
				return True
			if isinstance(stmt, H.HBlock):
				type_block(stmt)
				return False
			err(f"unsupported statement `{type(stmt).__name__}`", "E0000", getattr(stmt, "loc", Span()))
			return False

		def type_block(block: H.HBlock) -> None:
			scope_env.append(dict())
			diverges = False
			for stmt in block.statements:
				diverges = type_stmt(stmt) or diverges
			if block.tail is not None and block is body:
				coerce_site(block.tail, ret_ty)
			elif block.tail is not None:
				type_expr(block.tail)
			elif block is body and not diverges and table.get(ret_ty).kind not in (TypeKind.UNIT, TypeKind.UNKNOWN):
				err(f"mismatched types: expected `{show(ret_ty)}`, found `()`", "E0308", block.loc)
			scope_env.pop()

		type_block(body)

		typed_fn = TypedFn(
			name=name,
			body=body,
			signature=signature,
			expr_types=expr_types,
			adjusted_types=adjusted_types,
			adjustments=adjustments,
			binding_types=binding_types,
			binding_names=binding_names,
		)
		return TypeCheckResult(typed_fn=typed_fn, diagnostics=diagnostics)


__all__ = [
	"FnSignature",
	"TypedFn",
	"TypeCheckResult",
	"CheckedProgram",
	"TypeChecker",
]
