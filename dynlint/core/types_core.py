# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Minimal type core shared by the checker and the lint passes.

TypeIds are opaque ints indexing into a TypeTable. TypeKind keeps the universe
small; TypeDef carries kind/name/params for inspection. The table interns
every type it creates, so two structurally equal types always share one id
and lints can compare types by id.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, Iterable, Optional, Tuple


TypeId = int  # opaque handle into the TypeTable
TraitId = int  # opaque handle into the TraitTable


class TypeKind(Enum):
	"""Kinds of types understood by the minimal type core."""

	SCALAR = auto()
	UNIT = auto()
	REF = auto()
	DYNAMIC = auto()  # trait object: `dyn A + B`
	ADT = auto()  # named struct or library container (`Box<T>`, `String`)
	FUNCTION = auto()
	UNKNOWN = auto()


@dataclass(frozen=True)
class TraitPredicate:
	"""
	One bound of a trait object.

	`bound_vars` lists the names introduced by a `for<'a, ...>` quantifier on
	this bound. A predicate is only usable as a plain trait reference when it
	binds nothing.
	"""

	trait_id: TraitId
	trait_name: str
	bound_vars: Tuple[str, ...] = ()

	def no_bound_vars(self) -> bool:
		return not self.bound_vars


@dataclass(frozen=True)
class TypeDef:
	"""Definition of a type stored in the TypeTable."""

	kind: TypeKind
	name: str
	param_types: Tuple[TypeId, ...] = ()
	ref_mut: bool | None = None  # only meaningful for TypeKind.REF
	predicates: Tuple[TraitPredicate, ...] = ()  # only meaningful for TypeKind.DYNAMIC


INT_SCALARS = frozenset({"i8", "i16", "i32", "i64", "i128", "isize", "u8", "u16", "u32", "u64", "u128", "usize"})
OTHER_SCALARS = frozenset({"f32", "f64", "bool", "char", "str"})
# Library containers that own their pointee and deref to it.
SMART_POINTERS = frozenset({"Box", "Rc", "Arc"})


class TypeTable:
	"""
	Type table that owns TypeIds.

	Enough to represent scalars, references, trait objects, named structs,
	the standard smart pointers and function types.
	"""

	def __init__(self) -> None:
		self._defs: Dict[TypeId, TypeDef] = {}
		self._intern: Dict[tuple, TypeId] = {}
		self._next_id: TypeId = 1  # reserve 0 for "invalid"
		# User `impl Deref for X { type Target = T; }` registrations, keyed by ADT name.
		self._deref_targets: Dict[str, TypeId] = {}
		# Seed types that read-only queries hand out, so queries never allocate.
		self.ensure_unit()
		self.ensure_unknown()
		self.ensure_str()

	def new_scalar(self, name: str) -> TypeId:
		"""Register a scalar type (e.g., i32, bool) and return its TypeId."""
		return self._add(TypeDef(kind=TypeKind.SCALAR, name=name))

	def ensure_int(self) -> TypeId:
		"""Return the default integer type (`i32`)."""
		return self.new_scalar("i32")

	def ensure_bool(self) -> TypeId:
		return self.new_scalar("bool")

	def ensure_str(self) -> TypeId:
		"""Return the unsized `str` type."""
		return self.new_scalar("str")

	def ensure_unit(self) -> TypeId:
		"""Return the unit type `()`."""
		return self._add(TypeDef(kind=TypeKind.UNIT, name="()"))

	def ensure_unknown(self) -> TypeId:
		"""Return the Unknown type used after a type error."""
		return self._add(TypeDef(kind=TypeKind.UNKNOWN, name="{unknown}"))

	def ensure_ref(self, inner: TypeId) -> TypeId:
		"""Return the shared reference TypeId to `inner`."""
		return self.new_ref(inner, is_mut=False)

	def ensure_ref_mut(self, inner: TypeId) -> TypeId:
		"""Return the mutable reference TypeId to `inner`."""
		return self.new_ref(inner, is_mut=True)

	def new_ref(self, inner: TypeId, is_mut: bool) -> TypeId:
		"""Register a reference type to `inner` (mutable vs shared encoded in ref_mut/name)."""
		name = "RefMut" if is_mut else "Ref"
		return self._add(TypeDef(kind=TypeKind.REF, name=name, param_types=(inner,), ref_mut=is_mut))

	def new_dynamic(self, predicates: Iterable[TraitPredicate]) -> TypeId:
		"""
		Register a trait object over `predicates`.

		The bound set is unordered: `dyn A + B` and `dyn B + A` share an id.
		The first registration fixes the display order.
		"""
		preds = tuple(dict.fromkeys(predicates))
		key = ("dyn", frozenset(preds))
		if key in self._intern:
			return self._intern[key]
		ty_id = self._add(TypeDef(kind=TypeKind.DYNAMIC, name="dyn", predicates=preds))
		self._intern[key] = ty_id
		return ty_id

	def new_adt(self, name: str, params: Iterable[TypeId] = ()) -> TypeId:
		"""Register a named struct/container type, e.g. `Box<T>` or `Wrapper`."""
		return self._add(TypeDef(kind=TypeKind.ADT, name=name, param_types=tuple(params)))

	def new_function(self, name: str, param_types: Iterable[TypeId], return_type: TypeId) -> TypeId:
		"""Register a function type (name + params + return)."""
		return self._add(TypeDef(kind=TypeKind.FUNCTION, name=name, param_types=(*param_types, return_type)))

	def _add(self, ty_def: TypeDef) -> TypeId:
		key = ("def", ty_def)
		existing = self._intern.get(key)
		if existing is not None:
			return existing
		ty_id = self._next_id
		self._next_id += 1
		self._defs[ty_id] = ty_def
		self._intern[key] = ty_id
		return ty_id

	def get(self, ty: TypeId) -> TypeDef:
		"""Fetch the TypeDef for a given TypeId."""
		return self._defs[ty]

	def lookup(self, ty: TypeId) -> Optional[TypeDef]:
		"""Like `get`, but returns None for ids this table does not own."""
		return self._defs.get(ty)

	# Shape queries ---------------------------------------------------------

	def is_ref(self, ty: TypeId) -> bool:
		return self.ref_inner(ty) is not None

	def ref_inner(self, ty: TypeId) -> Optional[TypeId]:
		"""Return `T` for `&T`/`&mut T`, else None."""
		td = self.lookup(ty)
		if td is None or td.kind is not TypeKind.REF:
			return None
		return td.param_types[0]

	def is_integer(self, ty: TypeId) -> bool:
		td = self.lookup(ty)
		return td is not None and td.kind is TypeKind.SCALAR and td.name in INT_SCALARS

	def is_sized(self, ty: TypeId) -> bool:
		"""Trait objects and `str` are unsized; everything else is sized."""
		td = self.lookup(ty)
		if td is None:
			return False
		if td.kind is TypeKind.DYNAMIC:
			return False
		return not (td.kind is TypeKind.SCALAR and td.name == "str")

	def smart_pointee(self, ty: TypeId) -> Optional[TypeId]:
		"""Return `T` for `Box<T>`/`Rc<T>`/`Arc<T>`, else None."""
		td = self.lookup(ty)
		if td is None or td.kind is not TypeKind.ADT:
			return None
		if td.name in SMART_POINTERS and len(td.param_types) == 1:
			return td.param_types[0]
		return None

	# Deref targets ---------------------------------------------------------

	def set_deref_target(self, adt_name: str, target: TypeId) -> None:
		"""Record `impl Deref for adt_name { type Target = target; }`."""
		self._deref_targets[adt_name] = target

	def deref_target(self, ty: TypeId) -> Optional[TypeId]:
		"""
		Return the type reached by one deref of `ty`, or None.

		Covers references, the standard smart pointers, `String -> str` and
		user ADTs with a registered Deref target.
		"""
		td = self.lookup(ty)
		if td is None:
			return None
		if td.kind is TypeKind.REF:
			return td.param_types[0]
		if td.kind is not TypeKind.ADT:
			return None
		pointee = self.smart_pointee(ty)
		if pointee is not None:
			return pointee
		if td.name == "String" and not td.param_types:
			return self.ensure_str()
		if not td.param_types:
			return self._deref_targets.get(td.name)
		return None

	# Rendering -------------------------------------------------------------

	def display(self, ty: TypeId) -> str:
		"""Render a type the way it is written in source (`&Box<dyn Any>`)."""
		td = self.lookup(ty)
		if td is None:
			return "{unknown}"
		if td.kind is TypeKind.REF:
			prefix = "&mut " if td.ref_mut else "&"
			inner = td.param_types[0]
			inner_def = self.lookup(inner)
			if inner_def is not None and inner_def.kind is TypeKind.DYNAMIC and len(inner_def.predicates) > 1:
				return f"{prefix}({self.display(inner)})"
			return prefix + self.display(inner)
		if td.kind is TypeKind.DYNAMIC:
			bounds = []
			for pred in td.predicates:
				if pred.bound_vars:
					names = ", ".join(pred.bound_vars)
					bounds.append(f"for<{names}> {pred.trait_name}")
				else:
					bounds.append(pred.trait_name)
			return "dyn " + " + ".join(bounds)
		if td.kind is TypeKind.FUNCTION:
			params = ", ".join(self.display(p) for p in td.param_types[:-1])
			ret = td.param_types[-1]
			if self.get(ret).kind is TypeKind.UNIT:
				return f"fn({params})"
			return f"fn({params}) -> {self.display(ret)}"
		if td.param_types:
			args = ", ".join(self.display(p) for p in td.param_types)
			return f"{td.name}<{args}>"
		return td.name


__all__ = [
	"TypeId",
	"TraitId",
	"TypeKind",
	"TraitPredicate",
	"TypeDef",
	"TypeTable",
	"INT_SCALARS",
	"OTHER_SCALARS",
	"SMART_POINTERS",
]
