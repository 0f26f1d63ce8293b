"""
IMP Interpreter
Drives the small-step evaluator over a store and renders each state
"""

from typing import Dict, Iterator, Optional

from syntax_tree import Expr, pretty_print_ast
from semantics import Store, can_transition, transition
from parsing import IMPParser, create_parser
from error_handling import IMPRuntimeError, IMPStepLimitError


# ============================================================================
# STORE AND STATE RENDERING
# ============================================================================

def make_store() -> Store:
  """Create an empty store"""
  return {}


def display_store(store: Store) -> str:
  """Render the store in key order: {a -> 1, b -> true}"""
  entries = [f"{location} -> {value}" for location, value in store_snapshot(store).items()]
  return "{" + ", ".join(entries) + "}"


def display_program(expr: Expr, store: Store) -> str:
  """Render one evaluation state"""
  return f"{expr}, {display_store(store)}"


def store_snapshot(store: Store) -> Dict[str, str]:
  """Store values in their infix rendering, for comparisons and reports"""
  return {location: value.infix() for location, value in sorted(store.items())}


# ============================================================================
# STEPPING
# ============================================================================

def step_through(expr: Expr, store: Store, debug: bool = False,
                 max_steps: Optional[int] = None) -> Iterator[Expr]:
  """
  Yield the initial expression and then every successor until irreducible.

  The store is updated in place as assignments commit. When max_steps is
  set and the expression is still reducible after that many transitions,
  IMPStepLimitError is raised. Trees too deep to rewrite raise IMPRuntimeError.
  """
  yield expr

  steps = 0
  while can_transition(expr):
    try:
      if max_steps is not None and steps >= max_steps:
        raise IMPStepLimitError(f"Evaluation did not finish within {max_steps} steps", expr.infix())
      expr = transition(expr, store, debug)
    except RecursionError as e:
      raise IMPRuntimeError("expression nested too deeply to evaluate") from e
    steps += 1
    yield expr


def evaluate(expr: Expr, store: Store, debug: bool = False,
             max_steps: Optional[int] = None) -> Expr:
  """Run to completion and return the final expression"""
  for state in step_through(expr, store, debug, max_steps):
    expr = state
  return expr


# ============================================================================
# INTERPRETER
# ============================================================================

class IMPInterpreter:
  """Parses source text and prints its evaluation trace against a shared store"""

  def __init__(self, parser: Optional[IMPParser] = None, store: Optional[Store] = None,
               debug: bool = False, max_steps: Optional[int] = None):
    self.parser = parser or create_parser(debug)
    self.store = store if store is not None else make_store()
    self.debug = debug
    self.max_steps = max_steps

  def run_expression(self, expr: Expr) -> Expr:
    """Print every state of the evaluation, starting with the initial one"""
    final = expr
    try:
      for state in step_through(expr, self.store, self.debug, self.max_steps):
        print(f"=> {display_program(state, self.store)}")
        final = state
    except RecursionError as e:
      raise IMPRuntimeError("expression nested too deeply to display") from e
    return final

  def run_source(self, text: str, filename: str = "<input>") -> Expr:
    """Parse and evaluate source text"""
    expr = self.parser.parse_string(text, filename)
    return self.run_expression(expr)

  def run_file(self, filepath: str) -> Expr:
    """Parse and evaluate a source file"""
    expr = self.parser.parse_file(filepath)
    return self.run_expression(expr)

  def show_parse(self, expr: Expr) -> Expr:
    """Print the infix and sexp renderings without evaluating"""
    try:
      print(expr)
      print(expr.sexp())
      if self.debug:
        print(pretty_print_ast(expr), end="")
    except RecursionError as e:
      raise IMPRuntimeError("expression nested too deeply to display") from e
    return expr

  def parse_source(self, text: str, filename: str = "<input>") -> Expr:
    return self.show_parse(self.parser.parse_string(text, filename))

  def parse_file(self, filepath: str) -> Expr:
    return self.show_parse(self.parser.parse_file(filepath))

  def reset(self) -> None:
    """Forget every assignment"""
    self.store = make_store()


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

def create_interpreter(debug: bool = False, max_steps: Optional[int] = None) -> IMPInterpreter:
  """Create an interpreter with an empty store"""
  return IMPInterpreter(debug=debug, max_steps=max_steps)


def create_debug_interpreter(max_steps: Optional[int] = None) -> IMPInterpreter:
  """Create an interpreter with debug output enabled"""
  return create_interpreter(debug=True, max_steps=max_steps)
