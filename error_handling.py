"""
Error handling for IMP parsing and evaluation
Parse errors carry a source span and detailed context; evaluation errors are fatal
"""

from typing import List, Optional, Dict
from dataclasses import dataclass
from pyparsing import ParseBaseException
import re


@dataclass(frozen=True)
class SourceSpan:
    """Source location information for error reporting"""
    filename: str
    start_line: int
    start_col: int
    end_line: int
    end_col: int
    text: str = ""

    def __str__(self) -> str:
        if self.start_line == self.end_line:
            return f"{self.filename}:{self.start_line}:{self.start_col}-{self.end_col}"
        return f"{self.filename}:{self.start_line}:{self.start_col}-{self.end_line}:{self.end_col}"


# ============================================================================
# DATA STRUCTURES (Immutable Dictionaries)
# ============================================================================

def make_parse_error(
    message: str,
    location: int,
    line: int,
    column: int,
    expected: Optional[List[str]] = None,
    got: Optional[str] = None,
    context: Optional[str] = None,
    suggestions: Optional[List[str]] = None
) -> Dict:
    """Create an immutable parse error structure"""
    return {
        'message': message,
        'location': location,
        'line': line,
        'column': column,
        'expected': expected or [],
        'got': got,
        'context': context,
        'suggestions': suggestions or []
    }


def format_parse_error(error: Dict, filename: str = "<input>") -> str:
    """Format parse error as string"""
    if not error['line']:
        return f"Parse error: {error['message']}\n"

    error_msg = f"Parse error in {filename} at line {error['line']}, column {error['column']}:\n"
    error_msg += f"  {error['message']}\n"

    if error['expected']:
        error_msg += f"  Expected: {', '.join(error['expected'])}\n"

    if error['got']:
        error_msg += f"  Got: {error['got']}\n"

    if error['context']:
        error_msg += f"  Context:\n{error['context']}\n"

    if error['suggestions']:
        error_msg += "  Suggestions:\n"
        for suggestion in error['suggestions']:
            error_msg += f"    - {suggestion}\n"

    return error_msg


# ============================================================================
# PURE FUNCTIONS
# ============================================================================

def get_context_lines(source_text: str, line_num: int, col_num: int, context_lines: int = 2) -> str:
    """Get context lines around the error"""
    lines = source_text.split('\n')
    start_line = max(0, line_num - context_lines - 1)
    end_line = min(len(lines), line_num + context_lines)

    context_parts = []
    for i in range(start_line, end_line):
        line_prefix = f"{i+1:4d}: "
        context_parts.append(f"{line_prefix}{lines[i]}")
        if i == line_num - 1:
            context_parts.append(f"{'':6}{' ' * (col_num - 1)}^ Error here")

    return '\n'.join(context_parts)


def extract_expected(exc: ParseBaseException) -> List[str]:
    """Extract expected tokens from exception"""
    expected_match = re.match(r"Expected\s+(.+?)(?:,\s+found\b|$)", exc.msg or "")
    if expected_match:
        return [expected_match.group(1)]
    return []


def extract_got(source_text: str, line_num: int, col_num: int) -> str:
    """Extract what was actually found at the error location"""
    lines = source_text.split('\n')

    if line_num <= len(lines):
        error_line = lines[line_num - 1]
        if col_num <= len(error_line):
            start = max(0, col_num - 1)
            end = min(len(error_line), col_num + 10)
            got_text = error_line[start:end].strip()
            if got_text:
                return f"'{got_text}'"
    if line_num >= len(lines):
        return "end of input"
    return "end of line"


def generate_suggestions(source_text: str, got: str) -> List[str]:
    """Generate helpful suggestions based on the error"""
    suggestions = []

    if re.search(r"(?<![:>=])=(?!=)", source_text):
        suggestions.append("Assignment is written 'name := value'")

    if source_text.rstrip().endswith(";"):
        suggestions.append("A trailing ';' is not allowed; remove it or add another statement")

    if re.search(r"\bif\b", source_text) and not re.search(r"\belse\b", source_text):
        suggestions.append("Conditionals need an 'else' branch: if p then a else b")

    if re.search(r"\bwhile\b", source_text) and not re.search(r"\bdo\b", source_text):
        suggestions.append("Loops are written 'while p do body'")

    if re.search(r"!\s", source_text):
        suggestions.append("Write dereference without a space: !name")

    if source_text.count("(") != source_text.count(")"):
        suggestions.append("Check that parentheses are balanced")

    if got == "end of input" and not suggestions:
        suggestions.append("The program ends before the expression is complete")

    return suggestions


def enhance_parse_exception_dict(exc: ParseBaseException, source_text: str) -> Dict:
    """Convert pyparsing exception to an IMP error dict"""
    line_num = exc.lineno
    col_num = exc.col

    context = get_context_lines(source_text, line_num, col_num)
    expected = extract_expected(exc)
    got = extract_got(source_text, line_num, col_num)
    suggestions = generate_suggestions(source_text, got)

    return make_parse_error(
        message=exc.msg,
        location=exc.loc,
        line=line_num,
        column=col_num,
        expected=expected,
        got=got,
        context=context,
        suggestions=suggestions
    )


# ============================================================================
# EXCEPTIONS
# ============================================================================

class IMPParseError(Exception):
    """IMP parsing error with source span and detailed context"""
    def __init__(self, message: str, span: Optional[SourceSpan] = None, location: int = 0,
                 line: int = 0, column: int = 0, expected: Optional[List[str]] = None,
                 got: Optional[str] = None, context: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        self.message = message
        self.span = span
        self.location = location
        self.line = line
        self.column = column
        self.expected = expected or []
        self.got = got
        self.context = context
        self.suggestions = suggestions or []
        super().__init__(message)

    def __str__(self) -> str:
        error_dict = make_parse_error(
            self.message, self.location, self.line, self.column,
            self.expected, self.got, self.context, self.suggestions
        )
        return format_parse_error(error_dict, self.span.filename if self.span else "<input>")


class IMPRuntimeError(RuntimeError):
    """Fatal evaluation error: unbound location or ill-typed operand"""
    def __init__(self, message: str, redex: Optional[str] = None):
        self.message = message
        self.redex = redex
        super().__init__(self._format_error())

    def _format_error(self) -> str:
        if self.redex:
            return f"{self.message}\n  In: {self.redex}"
        return self.message


class IMPStepLimitError(IMPRuntimeError):
    """Evaluation exceeded the step budget imposed by the driver"""
    pass


def enhance_parse_exception(exc: ParseBaseException, source_text: str,
                            filename: str = "<input>") -> IMPParseError:
    """Convert pyparsing exception to an IMPParseError"""
    error_dict = enhance_parse_exception_dict(exc, source_text)
    text = source_text[exc.loc:exc.loc + 1]
    span = SourceSpan(
        filename, error_dict['line'], error_dict['column'],
        error_dict['line'], error_dict['column'] + max(len(text), 1), text
    )
    return IMPParseError(
        message=error_dict['message'],
        span=span,
        location=error_dict['location'],
        line=error_dict['line'],
        column=error_dict['column'],
        expected=error_dict['expected'],
        got=error_dict['got'],
        context=error_dict['context'],
        suggestions=error_dict['suggestions']
    )
