"""
IMP Programming Language Parser
Recursive-descent grammar with one level per binary operator precedence
"""

from typing import Optional

from pyparsing import (
    Word, alphas, alphanums, Keyword, Literal, Forward, Regex, Suppress,
    ZeroOrMore, Combine, ParserElement, ParseBaseException, ParseFatalException
)

from syntax_tree import (
    Expr, Op, Skip, Boolean, Integer, Dereference, Assignment, Operation,
    IfThenElse, WhileLoop, Sequence, INT64_MIN, INT64_MAX
)
from error_handling import IMPParseError, enhance_parse_exception

# Enable packrat parsing for performance
ParserElement.enable_packrat()

OPERATORS = {
    "+": Op.ADD,
    ">=": Op.GREATER_EQUAL,
}


def make_integer(s: str, loc: int, tokens) -> Integer:
    """Integer literal, restricted to the signed 64-bit range"""
    value = int(tokens[0])
    if not INT64_MIN <= value <= INT64_MAX:
        raise ParseFatalException(s, loc, f"integer literal {tokens[0]} out of range for a 64-bit integer")
    return Integer(value)


def make_operation(tokens) -> Operation:
    """Fold a run of same-precedence operands to the left"""
    items = list(tokens)
    result = items[0]
    for i in range(1, len(items), 2):
        result = Operation(OPERATORS[items[i]], result, items[i + 1])
    return result


def make_sequence(tokens) -> Expr:
    """A lone expression stands for itself"""
    expressions = list(tokens)
    if len(expressions) == 1:
        return expressions[0]
    return Sequence(expressions)


class IMPGrammar:
    """IMP grammar definition using pyparsing"""

    def __init__(self):
        self._setup_grammar()

    def _setup_grammar(self):
        """Setup the IMP grammar, loosest construct last"""

        # Forward declarations for recursive structures
        expression = Forward()
        sequence = Forward()

        # Keywords
        skip_kw = Keyword("skip")
        true_kw = Keyword("true")
        false_kw = Keyword("false")
        if_kw = Keyword("if")
        then_kw = Keyword("then")
        else_kw = Keyword("else")
        while_kw = Keyword("while")
        do_kw = Keyword("do")

        # Operators
        assign_op = Literal(":=")
        plus_op = Literal("+")
        greater_equal_op = Literal(">=")

        identifier = Word(alphas + "_", alphanums + "_").set_name("identifier")

        # Literals
        skip = skip_kw.copy().set_parse_action(lambda t: Skip())
        boolean = (
            true_kw.copy().set_parse_action(lambda t: Boolean(True)) |
            false_kw.copy().set_parse_action(lambda t: Boolean(False))
        ).set_name("boolean")
        integer = Regex(r"-?\d+").set_name("integer").set_parse_action(make_integer)

        # '!' must be immediately followed by the location name
        dereference = Combine(Suppress("!") + identifier).set_name("dereference").set_parse_action(
            lambda t: Dereference(t[0])
        )

        assignment = (
            identifier + Suppress(assign_op) - expression
        ).set_parse_action(lambda t: Assignment(t[0], t[1]))

        if_then_else = (
            Suppress(if_kw) - expression -
            Suppress(then_kw) - expression -
            Suppress(else_kw) - expression
        ).set_parse_action(lambda t: IfThenElse(t[0], t[1], t[2]))

        while_loop = (
            Suppress(while_kw) - expression - Suppress(do_kw) - expression
        ).set_parse_action(lambda t: WhileLoop(t[0], t[1]))

        parenthesized = Suppress("(") + sequence + Suppress(")")

        # Order matters: first match wins. Assignment is tried before the
        # keyword forms, so committing after "if" or "while" is safe
        atom = (
            skip |
            boolean |
            integer |
            dereference |
            assignment |
            if_then_else |
            while_loop |
            parenthesized
        ).set_name("expression")

        # Tightest binding first, both levels left-associative
        plus_expr = (
            atom + ZeroOrMore(plus_op - atom)
        ).set_parse_action(make_operation)

        expression <<= (
            plus_expr + ZeroOrMore(greater_equal_op - plus_expr)
        ).set_parse_action(make_operation)
        expression.set_name("expression")

        sequence <<= (
            expression + ZeroOrMore(Suppress(";") - expression)
        ).set_parse_action(make_sequence)

        # Store the main parsers
        self.program = sequence
        self.expression = expression

    def parse_program(self, text: str, filename: str = "<input>") -> Expr:
        """Parse a complete IMP program into one expression"""
        try:
            result = self.program.parse_string(text, parse_all=True)
        except ParseBaseException as e:
            raise enhance_parse_exception(e, text, filename) from e
        except RecursionError as e:
            raise IMPParseError(f"expression nested too deeply in {filename}") from e
        return result[0]


class IMPParser:
    """Main IMP parser"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self.grammar = IMPGrammar()

    def parse_file(self, filepath: str) -> Expr:
        """Parse an IMP source file"""
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise IMPParseError(f"File not found: {filepath}")
        except UnicodeDecodeError as e:
            raise IMPParseError(f"Cannot decode file {filepath}: {e}")
        except OSError as e:
            raise IMPParseError(f"Cannot read file {filepath}: {e.strerror}")
        return self.parse_string(content, filepath)

    def parse_string(self, text: str, filename: str = "<input>") -> Expr:
        """Parse IMP source code from string"""
        expr = self.grammar.parse_program(text, filename)
        if self.debug:
            print(f"Parsed: {expr.sexp()}")
        return expr


# Factory functions for creating parsers
def create_parser(debug: bool = False) -> IMPParser:
    """Create an IMP parser"""
    return IMPParser(debug=debug)


def create_debug_parser() -> IMPParser:
    """Create an IMP parser with debug enabled"""
    return IMPParser(debug=True)


_default_parser: Optional[IMPParser] = None


def parse(text: str, filename: str = "<input>") -> Expr:
    """Parse source text into an expression, raising IMPParseError on failure"""
    global _default_parser
    if _default_parser is None:
        _default_parser = create_parser()
    return _default_parser.parse_string(text, filename)


if __name__ == "__main__":
    parser = create_debug_parser()

    for test_source in ["a := 1 + 2", "while 10 >= !i do if !b then a := 1 else a := 2; a := 3"]:
        try:
            result = parser.parse_string(test_source)
            print(result)
        except IMPParseError as e:
            print(f"Parse error: {e}")
