"""
Defines the abstract syntax tree (AST) for the Kaleidoscope language.

Classes:
    ASTNode:
        Shared base providing structural equality, `repr`, and `to_dict`.
    ExprAST:
        Base for expression nodes: Number, Variable, Binary, Call.
    Prototype:
        A function signature: name plus ordered parameter names.
    Function:
        A prototype paired with a single body expression.
    ASTDict:
        TypedDict shape produced by `to_dict()`, suitable for JSON output or debugging.

Nodes own their children exclusively (a tree, never a graph) and are not mutated
after the parser builds them. Equality is structural.

Example:
    Binary("+", Number(1), Call("f", [Variable("x")]))
"""

from typing import Any, TypedDict, Union


class ASTDict(TypedDict, total=False):
    """
    TypedDict representation of an AST node used for serialization.

    Fields:
        kind (str): Node kind ("number", "variable", "binary", "call", "prototype", "function").
        value (float): Literal value of a number.
        name (str): Variable or prototype name.
        op (str): Binary operator character.
        lhs, rhs (ASTDict): Binary operands.
        callee (str): Called function name.
        args (list): Call arguments (ASTDicts) or prototype parameter names (str).
        proto (ASTDict): Function prototype.
        body (ASTDict): Function body.
    """

    kind: str
    value: float
    name: str
    op: str
    lhs: "ASTDict"
    rhs: "ASTDict"
    callee: str
    args: list[Any]
    proto: "ASTDict"
    body: "ASTDict"


class ASTNode:
    """Base for every node; subclasses list their data attributes in `_fields`."""

    kind: str = "node"
    _fields: tuple[str, ...] = ()

    def __repr__(self) -> str:
        parts = ", ".join(repr(getattr(self, name)) for name in self._fields)
        return f"{type(self).__name__}({parts})"

    def __eq__(self, other: Any) -> bool:
        if type(self) is not type(other):
            return False
        return all(
            getattr(self, name) == getattr(other, name) for name in self._fields
        )

    __hash__ = None  # type: ignore[assignment]

    def to_dict(self) -> ASTDict:
        out: dict[str, Any] = {"kind": self.kind}
        for name in self._fields:
            val = getattr(self, name)
            if isinstance(val, ASTNode):
                val = val.to_dict()
            elif isinstance(val, list):
                val = [v.to_dict() if isinstance(v, ASTNode) else v for v in val]
            out[name] = val
        return out  # type: ignore[return-value]


class ExprAST(ASTNode):
    """Base class for expression nodes."""

    kind = "expr"


class Number(ExprAST):
    kind = "number"
    _fields = ("value",)

    def __init__(self, value: float) -> None:
        self.value = float(value)


class Variable(ExprAST):
    kind = "variable"
    _fields = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name


class Binary(ExprAST):
    """A binary operator applied to two operands."""

    kind = "binary"
    _fields = ("op", "lhs", "rhs")

    def __init__(self, op: str, lhs: ExprAST, rhs: ExprAST) -> None:
        self.op = op
        self.lhs = lhs
        self.rhs = rhs


class Call(ExprAST):
    """A call of `callee` with positional arguments, in source order."""

    kind = "call"
    _fields = ("callee", "args")

    def __init__(self, callee: str, args: list[ExprAST] | None = None) -> None:
        self.callee = callee
        self.args: list[ExprAST] = list(args) if args else []


class Prototype(ASTNode):
    """
    A function signature.

    Parameter names are kept in declaration order; duplicates are not rejected.
    An empty name marks the anonymous wrapper built around a top-level expression.
    """

    kind = "prototype"
    _fields = ("name", "args")

    def __init__(self, name: str, args: list[str] | None = None) -> None:
        self.name = name
        self.args: list[str] = list(args) if args else []

    @property
    def is_anonymous(self) -> bool:
        return self.name == ""


class Function(ASTNode):
    kind = "function"
    _fields = ("proto", "body")

    def __init__(self, proto: Prototype, body: ExprAST) -> None:
        self.proto = proto
        self.body = body


TopLevel = Union[Function, Prototype]
"""What a successful top-level parse produces."""


__all__ = [
    "ASTDict",
    "ASTNode",
    "Binary",
    "Call",
    "ExprAST",
    "Function",
    "Number",
    "Prototype",
    "TopLevel",
    "Variable",
]
