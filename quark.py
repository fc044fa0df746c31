"""
Quark entry points for callers outside the parser

`parse` returns a ParseResult instead of raising. `parse_compat` keeps the
older contract where the error slot is a string and the literal "nil" means
success; existing callers that compare against "nil" should keep using it.
"""

from typing import NamedTuple, Optional, Tuple

from parsing import Spec, QuarkParser
from error_handling import SpecParseError


__version__ = "0.3.0"

# Legacy success marker returned in the error slot by parse_compat
NIL = "nil"


class ParseResult(NamedTuple):
    """Outcome of a parse: exactly one of spec / error is set"""
    spec: Optional[Spec]
    error: Optional[str]

    @property
    def ok(self) -> bool:
        return self.error is None


def parse(com_spec: str) -> ParseResult:
    """Parse specification text and return its result"""
    try:
        return ParseResult(QuarkParser(com_spec).parse(), None)
    except SpecParseError as e:
        return ParseResult(None, e.message)


def parse_compat(com_spec: str) -> Tuple[Optional[Spec], str]:
    """Parse specification text using the legacy `(spec, "nil")` convention"""
    result = parse(com_spec)
    if result.ok:
        return result.spec, NIL
    return None, result.error
