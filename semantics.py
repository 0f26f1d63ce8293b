"""
IMP Small-Step Operational Semantics
One structural rewrite per transition over an expression and a mutable store
"""

from typing import Dict
import copy

from syntax_tree import (
  Expr, Op, Skip, Boolean, Integer, Dereference, Assignment, Operation,
  IfThenElse, WhileLoop, Sequence, INT64_MIN, INT64_MAX, is_value
)
from error_handling import IMPRuntimeError


Store = Dict[str, Expr]


# ============================================================================
# TRANSITION RELATION
# ============================================================================

def can_transition(expr: Expr) -> bool:
  """True for every expression except the literal values"""
  return not is_value(expr)


def transition(expr: Expr, store: Store, debug: bool = False) -> Expr:
  """
  Perform exactly one rewrite step and return the successor expression.

  Congruence steps rewrite a child in place and return the same node;
  whole-node steps return the replacement. Values are returned unchanged.
  """
  if is_value(expr):
    return expr

  if debug:
    print(f"Transition: {type(expr).__name__}")

  handler = TRANSITIONS.get(type(expr))
  if handler is None:
    raise TypeError(f"Not an IMP expression: {expr!r}")
  return handler(expr, store, debug)


def transition_dereference(expr: Dereference, store: Store, debug: bool = False) -> Expr:
  """Replace a location read with a copy of the stored value"""
  if expr.location not in store:
    raise IMPRuntimeError(f"Unbound location: {expr.location}", str(expr))
  return copy.deepcopy(store[expr.location])


def transition_assignment(expr: Assignment, store: Store, debug: bool = False) -> Expr:
  """Reduce the right-hand side, then commit it to the store"""
  if can_transition(expr.value):
    expr.value = transition(expr.value, store, debug)
    return expr

  store[expr.location] = expr.value
  return Skip()


def transition_operation(expr: Operation, store: Store, debug: bool = False) -> Expr:
  """Reduce the left operand, then the right, then apply the operator"""
  if can_transition(expr.lhs):
    expr.lhs = transition(expr.lhs, store, debug)
    return expr
  if can_transition(expr.rhs):
    expr.rhs = transition(expr.rhs, store, debug)
    return expr

  lhs, rhs = expr.lhs, expr.rhs
  if expr.op is Op.ADD:
    if not (isinstance(lhs, Integer) and isinstance(rhs, Integer)):
      raise IMPRuntimeError("invalid operands for addition", str(expr))
    total = lhs.value + rhs.value
    if not INT64_MIN <= total <= INT64_MAX:
      raise IMPRuntimeError("integer overflow in addition", str(expr))
    return Integer(total)

  if not (isinstance(lhs, Integer) and isinstance(rhs, Integer)):
    raise IMPRuntimeError("invalid operands for comparison", str(expr))
  return Boolean(lhs.value >= rhs.value)


def transition_if_then_else(expr: IfThenElse, store: Store, debug: bool = False) -> Expr:
  """Reduce the predicate, then select a branch"""
  if can_transition(expr.predicate):
    expr.predicate = transition(expr.predicate, store, debug)
    return expr

  if not isinstance(expr.predicate, Boolean):
    raise IMPRuntimeError("expected boolean predicate", str(expr))
  return expr.consequent if expr.predicate.value else expr.alternative


def transition_while_loop(expr: WhileLoop, store: Store, debug: bool = False) -> Expr:
  """Unroll one iteration; the loop re-embeds itself after a fresh copy of its body"""
  return IfThenElse(
    copy.deepcopy(expr.predicate),
    Sequence([copy.deepcopy(expr.body), expr]),
    Skip()
  )


def transition_sequence(expr: Sequence, store: Store, debug: bool = False) -> Expr:
  """Drop a finished first statement or reduce it; collapse a single survivor"""
  expressions = expr.expressions
  if is_value(expressions[0]):
    expressions.pop(0)
  else:
    expressions[0] = transition(expressions[0], store, debug)

  if len(expressions) == 1:
    return expressions[0]
  return expr


TRANSITIONS = {
  Dereference: transition_dereference,
  Assignment: transition_assignment,
  Operation: transition_operation,
  IfThenElse: transition_if_then_else,
  WhileLoop: transition_while_loop,
  Sequence: transition_sequence,
}
