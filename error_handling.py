"""
Error handling for the Quark specification parser
Plain data + pure formatting functions, with one exception class for raising
"""

from typing import Dict, Optional
from pyparsing import col, lineno


# ============================================================================
# DATA STRUCTURES (Immutable Dictionaries)
# ============================================================================

def make_parse_error(
    message: str,
    location: int = 0,
    line: int = 0,
    column: int = 0,
    expected: Optional[str] = None,
    got: Optional[str] = None,
    context: Optional[str] = None,
    filename: str = "<input>"
) -> Dict:
    """Create an immutable parse error structure"""
    return {
        'message': message,
        'location': location,
        'line': line,
        'column': column,
        'expected': expected,
        'got': got,
        'context': context,
        'filename': filename,
    }


def format_parse_error(error: Dict) -> str:
    """Format parse error as string"""
    if not error['line']:
        return error['message']

    error_msg = f"Parse error in {error['filename']} at line {error['line']}, column {error['column']}:\n"
    error_msg += f"  {error['message']}\n"

    if error['expected']:
        error_msg += f"  Expected: {error['expected']}\n"

    if error['got'] is not None:
        error_msg += f"  Got: {quote_literal(error['got'])}\n"

    if error['context']:
        error_msg += f"  Context:\n{error['context']}\n"

    return error_msg


# ============================================================================
# PURE FUNCTIONS
# ============================================================================

_NAMED_ESCAPES = {'\\': '\\\\', '"': '\\"', '\n': '\\n', '\t': '\\t', '\r': '\\r'}


def escape_char(ch: str) -> str:
    """Escape one character so diagnostics never carry raw control codes"""
    if ch in _NAMED_ESCAPES:
        return _NAMED_ESCAPES[ch]
    if ch.isprintable():
        return ch
    code = ord(ch)
    if code < 0x100:
        return f"\\x{code:02x}"
    if code < 0x10000:
        return f"\\u{code:04x}"
    return f"\\U{code:08x}"


def quote_literal(literal: str) -> str:
    """Double-quote a token literal for diagnostics"""
    return '"' + ''.join(escape_char(ch) for ch in literal) + '"'


def unexpected_token(got: str, expected: str) -> str:
    """Build the canonical `found X, expected Y` message"""
    return f"found {quote_literal(got)}, expected {expected}"


def get_context_lines(source_text: str, line_num: int, col_num: int, context_lines: int = 2) -> str:
    """Get context lines around the error"""
    # Split on '\n' only so numbering agrees with pyparsing's lineno
    lines = [line.rstrip('\r') for line in source_text.split('\n')]
    start_line = max(0, line_num - context_lines - 1)
    end_line = min(len(lines), line_num + context_lines)

    context_parts = []
    for i in range(start_line, end_line):
        line_prefix = f"{i+1:4d}: "
        context_parts.append(f"{line_prefix}{lines[i]}")
        if i == line_num - 1:  # Error line
            context_parts.append(f"{'':6}{' ' * (col_num - 1)}^ Error here")

    return '\n'.join(context_parts)


def locate(source_text: str, location: int) -> Dict:
    """Resolve a character offset to 1-based line and column"""
    # Past-the-end offsets (EOF) point just after the last character
    location = min(location, len(source_text))
    return {
        'line': lineno(location, source_text),
        'column': col(location, source_text),
    }


# ============================================================================
# EXCEPTION CLASS
# ============================================================================

class SpecParseError(Exception):
    """Grammar violation found while parsing a specification"""
    def __init__(self, message: str, location: int = 0, line: int = 0, column: int = 0,
                 expected: Optional[str] = None, got: Optional[str] = None,
                 context: Optional[str] = None, filename: str = "<input>"):
        self.message = message
        self.location = location
        self.line = line
        self.column = column
        self.expected = expected
        self.got = got
        self.context = context
        self.filename = filename
        super().__init__(message)

    @classmethod
    def unexpected(cls, got: str, expected: str, location: int = 0) -> 'SpecParseError':
        """Error for a token that does not fit the grammar at this position"""
        return cls(unexpected_token(got, expected), location=location, expected=expected, got=got)

    def to_dict(self) -> Dict:
        return make_parse_error(
            self.message, self.location, self.line, self.column,
            self.expected, self.got, self.context, self.filename
        )

    def __str__(self) -> str:
        return format_parse_error(self.to_dict())


def enhance_parse_error(error: SpecParseError, source_text: str, filename: str = "<input>") -> SpecParseError:
    """Return a copy of the error carrying line, column and source context"""
    position = locate(source_text, error.location)
    context = get_context_lines(source_text, position['line'], position['column'])
    return SpecParseError(
        message=error.message,
        location=error.location,
        line=position['line'],
        column=position['column'],
        expected=error.expected,
        got=error.got,
        context=context,
        filename=filename
    )
