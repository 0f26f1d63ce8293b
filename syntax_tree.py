"""
IMP Abstract Syntax Tree
Expression variants with canonical prefix (sexp) and infix renderings
"""

from typing import List
from dataclasses import dataclass, field
from enum import Enum


INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


class Op(Enum):
    """Binary operators"""
    ADD = "+"
    GREATER_EQUAL = ">="

    def __str__(self) -> str:
        return self.value


class Expr:
    """Base class for every IMP expression"""

    def sexp(self) -> str:
        """Canonical fully parenthesized prefix rendering"""
        raise NotImplementedError

    def is_self_delimiting(self) -> bool:
        """Whether the infix rendering can be nested without parentheses"""
        return False

    def infix(self) -> str:
        """Human-readable rendering; assignment is shown as '='"""
        raise NotImplementedError

    def operand(self) -> str:
        """Infix rendering as a sub-expression of another node"""
        if self.is_self_delimiting():
            return self.infix()
        return f"({self.infix()})"

    def __str__(self) -> str:
        return self.infix()


@dataclass
class Skip(Expr):
    def sexp(self) -> str:
        return "skip"

    def is_self_delimiting(self) -> bool:
        return True

    def infix(self) -> str:
        return "skip"


@dataclass
class Boolean(Expr):
    value: bool

    def sexp(self) -> str:
        return "true" if self.value else "false"

    def is_self_delimiting(self) -> bool:
        return True

    def infix(self) -> str:
        return self.sexp()


@dataclass
class Integer(Expr):
    value: int

    def sexp(self) -> str:
        return str(self.value)

    def is_self_delimiting(self) -> bool:
        return True

    def infix(self) -> str:
        return str(self.value)


@dataclass
class Dereference(Expr):
    """Reads a store location"""
    location: str

    def sexp(self) -> str:
        return f"!{self.location}"

    def is_self_delimiting(self) -> bool:
        return True

    def infix(self) -> str:
        return f"!{self.location}"


@dataclass
class Assignment(Expr):
    location: str
    value: Expr

    def sexp(self) -> str:
        return f"(:= {self.location} {self.value.sexp()})"

    def infix(self) -> str:
        return f"{self.location} = {self.value.operand()}"


@dataclass
class Operation(Expr):
    op: Op
    lhs: Expr
    rhs: Expr

    def sexp(self) -> str:
        return f"({self.op} {self.lhs.sexp()} {self.rhs.sexp()})"

    # Precedence in the concrete syntax already fixes the parse
    def is_self_delimiting(self) -> bool:
        return True

    def infix(self) -> str:
        return f"{self.lhs.operand()} {self.op} {self.rhs.operand()}"


@dataclass
class IfThenElse(Expr):
    predicate: Expr
    consequent: Expr
    alternative: Expr

    def sexp(self) -> str:
        return (f"(if {self.predicate.sexp()} {self.consequent.sexp()} "
                f"{self.alternative.sexp()})")

    def infix(self) -> str:
        return (f"if {self.predicate.operand()} then {self.consequent.operand()} "
                f"else {self.alternative.operand()}")


@dataclass
class WhileLoop(Expr):
    predicate: Expr
    body: Expr

    def sexp(self) -> str:
        return f"(while {self.predicate.sexp()} {self.body.sexp()})"

    def infix(self) -> str:
        return f"while {self.predicate.operand()} do {self.body.operand()}"


@dataclass
class Sequence(Expr):
    """Statements run left to right; holds at least two after parsing"""
    expressions: List[Expr] = field(default_factory=list)

    def sexp(self) -> str:
        return "(; " + " ".join(e.sexp() for e in self.expressions) + ")"

    def infix(self) -> str:
        return "; ".join(e.infix() for e in self.expressions)


# Forms that can no longer be rewritten
VALUE_TYPES = (Skip, Boolean, Integer)


def is_value(expr: Expr) -> bool:
    """Check if an expression is an irreducible literal"""
    return isinstance(expr, VALUE_TYPES)


def children(expr: Expr) -> List[Expr]:
    """Direct sub-expressions in evaluation order"""
    if isinstance(expr, Assignment):
        return [expr.value]
    if isinstance(expr, Operation):
        return [expr.lhs, expr.rhs]
    if isinstance(expr, IfThenElse):
        return [expr.predicate, expr.consequent, expr.alternative]
    if isinstance(expr, WhileLoop):
        return [expr.predicate, expr.body]
    if isinstance(expr, Sequence):
        return list(expr.expressions)
    return []


def pretty_print_ast(expr: Expr, indent: int = 0) -> str:
    """Pretty print an expression tree for debugging"""
    result = "  " * indent + type(expr).__name__
    if isinstance(expr, (Boolean, Integer)):
        result += f"({expr.sexp()})"
    elif isinstance(expr, (Dereference, Assignment)):
        result += f"({expr.location!r})"
    elif isinstance(expr, Operation):
        result += f"({expr.op})"
    result += "\n"

    for child in children(expr):
        result += pretty_print_ast(child, indent + 1)

    return result
