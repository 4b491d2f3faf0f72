# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Resolve surface type expressions (parser TypeExpr) to TypeIds.

Resolution is name-based and deliberately shallow: library paths like
`std::boxed::Box` resolve by their last segment, user structs by name, trait
bounds through the checker's trait scope (user traits shadow builtins).
"""

from __future__ import annotations

from typing import List, Mapping, Optional

from dynlint.core.diagnostics import Diagnostic
from dynlint.core.span import Span
from dynlint.core.types_core import INT_SCALARS, OTHER_SCALARS, SMART_POINTERS, TraitId, TraitPredicate, TypeId, TypeTable
from dynlint.parser import ast


class TypeResolutionError(Exception):
	"""Raised for a type expression that names nothing; carries a diagnostic."""

	def __init__(self, diagnostic: Diagnostic) -> None:
		super().__init__(diagnostic.message)
		self.diagnostic = diagnostic


def _err(message: str, code: str, loc: Optional[ast.Located], file: Optional[str]) -> TypeResolutionError:
	return TypeResolutionError(
		Diagnostic(message=message, code=code, phase="typecheck", severity="error", span=Span.from_loc(loc, file=file))
	)


class TypeResolver:
	"""
	Turns TypeExprs into TypeIds against one program's declarations.

	`structs` maps user struct names to their ADT TypeIds; `trait_scope` maps
	trait names visible in the program to TraitIds.
	"""

	def __init__(
		self,
		type_table: TypeTable,
		*,
		structs: Mapping[str, TypeId],
		trait_scope: Mapping[str, TraitId],
		file: Optional[str] = None,
	) -> None:
		self.type_table = type_table
		self.structs = structs
		self.trait_scope = trait_scope
		self.file = file

	def resolve(self, te: ast.TypeExpr) -> Optional[TypeId]:
		"""
		Resolve `te`; returns None for the inference placeholder `_`.

		Raises TypeResolutionError for unknown names or bad arity.
		"""
		if te.kind == "unit":
			return self.type_table.ensure_unit()
		if te.kind == "ref":
			inner = self._resolve_required(te.args[0])
			return self.type_table.new_ref(inner, is_mut=te.mutable)
		if te.kind == "dyn":
			return self.type_table.new_dynamic(self.resolve_bounds(te.bounds))
		if te.kind == "path":
			return self._resolve_path(te)
		raise _err(f"unsupported type syntax '{te.kind}'", "E0412", te.loc, self.file)

	def resolve_trait(self, path: List[str], loc: Optional[ast.Located]) -> TraitId:
		name = path[-1]
		tid = self.trait_scope.get(name)
		if tid is None:
			raise _err(f"cannot find trait `{name}` in this scope", "E0405", loc, self.file)
		return tid

	def resolve_bounds(self, bounds: List[ast.TraitBound]) -> List[TraitPredicate]:
		preds: List[TraitPredicate] = []
		for bound in bounds:
			tid = self.resolve_trait(bound.path, bound.loc)
			preds.append(TraitPredicate(trait_id=tid, trait_name=bound.name, bound_vars=tuple(bound.bound_vars)))
		return preds

	def _resolve_required(self, te: ast.TypeExpr) -> TypeId:
		ty = self.resolve(te)
		if ty is None:
			raise _err("the placeholder `_` is not allowed here", "E0121", te.loc, self.file)
		return ty

	def _resolve_path(self, te: ast.TypeExpr) -> Optional[TypeId]:
		name = te.name.split("::")[-1]
		if name == "_" and not te.args:
			return None
		if name in SMART_POINTERS:
			if len(te.args) != 1:
				raise _err(f"`{name}` takes 1 type argument but {len(te.args)} were supplied", "E0107", te.loc, self.file)
			return self.type_table.new_adt(name, [self._resolve_required(te.args[0])])
		if te.args:
			raise _err(f"type `{name}` does not take type arguments", "E0107", te.loc, self.file)
		if name in self.structs:
			return self.structs[name]
		if name in INT_SCALARS or name in OTHER_SCALARS:
			return self.type_table.new_scalar(name)
		if name == "String":
			return self.type_table.new_adt("String")
		raise _err(f"cannot find type `{name}` in this scope", "E0412", te.loc, self.file)


__all__ = ["TypeResolver", "TypeResolutionError"]
