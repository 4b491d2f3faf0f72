from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class Located:
	line: int
	column: int
	end_line: Optional[int] = None
	end_column: Optional[int] = None
	start: Optional[int] = None
	end: Optional[int] = None


@dataclass
class TraitBound:
	path: List[str]
	bound_vars: List[str] = field(default_factory=list)
	loc: Optional[Located] = None

	@property
	def name(self) -> str:
		return self.path[-1]


@dataclass
class TypeExpr:
	"""
	Surface type.

	kind is one of: "path" (`Box<T>`, `i32`, `_`), "ref" (`&T`, `&mut T`),
	"dyn" (`dyn A + B`), "unit" (`()`).
	"""

	kind: str
	name: str = ""
	args: List["TypeExpr"] = field(default_factory=list)
	mutable: bool = False
	bounds: List[TraitBound] = field(default_factory=list)
	loc: Optional[Located] = None


@dataclass
class Attribute:
	"""`#![level(lint, ...)]` (inner) or `#[level(lint, ...)]` (outer)."""

	level: str
	lints: List[str]
	inner: bool
	loc: Located


@dataclass
class Param:
	name: str
	type_expr: TypeExpr
	loc: Located


@dataclass
class Block:
	statements: List["Stmt"]
	tail: Optional["Expr"] = None
	loc: Optional[Located] = None


class Stmt:
	loc: Located


@dataclass
class LetStmt(Stmt):
	loc: Located
	name: str
	type_expr: Optional[TypeExpr]
	value: Optional["Expr"]
	mutable: bool = False


@dataclass
class ExprStmt(Stmt):
	loc: Located
	value: "Expr"


@dataclass
class ReturnStmt(Stmt):
	loc: Located
	value: Optional["Expr"]


class Expr:
	loc: Located


@dataclass
class Literal(Expr):
	loc: Located
	value: object
	suffix: Optional[str] = None  # integer suffix, e.g. "u8"


@dataclass
class UnitLit(Expr):
	loc: Located


@dataclass
class Name(Expr):
	loc: Located
	ident: str


@dataclass
class Path(Expr):
	"""Multi-segment path expression, e.g. `Box::new`."""

	loc: Located
	segments: List[str]


@dataclass
class Call(Expr):
	loc: Located
	func: Expr
	args: List[Expr]


@dataclass
class Borrow(Expr):
	"""Address-of: `&operand` / `&mut operand`."""

	loc: Located
	operand: Expr
	mutable: bool = False


@dataclass
class Deref(Expr):
	loc: Located
	operand: Expr


@dataclass
class Paren(Expr):
	loc: Located
	inner: Expr


@dataclass
class FunctionDef:
	name: str
	params: List[Param]
	return_type: Optional[TypeExpr]
	body: Block
	loc: Located
	attrs: List[Attribute] = field(default_factory=list)


@dataclass
class StructField:
	name: str
	type_expr: TypeExpr


@dataclass
class StructDef:
	name: str
	fields: List[StructField]
	loc: Located


@dataclass
class TraitDef:
	name: str
	loc: Located


@dataclass
class ImplDef:
	"""`impl Trait for Target { type Name = T; ... }`."""

	trait_path: List[str]
	target: TypeExpr
	assoc_types: Dict[str, TypeExpr]
	loc: Located

	@property
	def trait_name(self) -> str:
		return self.trait_path[-1]


@dataclass
class UseDecl:
	path: List[str]
	loc: Located


@dataclass
class Program:
	functions: List[FunctionDef] = field(default_factory=list)
	structs: List[StructDef] = field(default_factory=list)
	traits: List[TraitDef] = field(default_factory=list)
	impls: List[ImplDef] = field(default_factory=list)
	uses: List[UseDecl] = field(default_factory=list)
	attrs: List[Attribute] = field(default_factory=list)  # crate-level inner attributes
