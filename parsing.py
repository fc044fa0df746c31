"""
Quark Specification Language Parser
Recursive-descent parser with single-token pushback producing an immutable Spec tree
"""

from typing import List, Dict, Any, Optional, Tuple, BinaryIO, TextIO, Union
from dataclasses import dataclass

from lexing import Scanner, Token, TokenKind
from error_handling import SpecParseError, enhance_parse_error


# ============================================================================
# DATA MODEL
# ============================================================================

@dataclass(frozen=True)
class Arg:
    """Event argument; value is None when written without `=value`"""
    name: str
    value: Optional[str] = None

    def __str__(self) -> str:
        if self.value is None:
            return self.name
        return f"{self.name}={self.value}"


@dataclass(frozen=True)
class Event:
    """Lifecycle event (create, detach or discharge) with ordered arguments"""
    name: str
    args: Tuple[Arg, ...] = ()

    def __str__(self) -> str:
        return f"{self.name} [{', '.join(str(arg) for arg in self.args)}]"


@dataclass(frozen=True)
class Constraint:
    """Specification name and the two parties involved"""
    name: str
    debtor: str
    creditor: str


@dataclass(frozen=True)
class Spec:
    """A fully parsed specification"""
    constraint: Constraint
    create_event: Event
    detach_event: Event
    discharge_event: Event

    @property
    def events(self) -> Tuple[Event, Event, Event]:
        return (self.create_event, self.detach_event, self.discharge_event)


# Event keywords in the order they must appear
EVENT_KEYWORDS = (TokenKind.CREATE, TokenKind.DETACH, TokenKind.DISCHARGE)


# ============================================================================
# PARSER
# ============================================================================

class QuarkParser:
    """Parser for a single specification document

    A parser instance is good for one parse; construct a fresh one per input.
    """

    def __init__(self, source: Union[str, bytes, TextIO, BinaryIO], debug: bool = False):
        self.debug = debug
        self.scanner = Scanner(source)
        # Pushback buffer: either empty (None) or holding exactly one token
        self._buffer: Optional[Token] = None
        self._last: Optional[Token] = None

    # ------------------------------------------------------------------
    # Token plumbing
    # ------------------------------------------------------------------

    def _scan(self) -> Token:
        """Return the next token, preferring one that was pushed back"""
        if self._buffer is not None:
            token, self._buffer = self._buffer, None
            return token

        token = self.scanner.scan()
        self._last = token
        return token

    def _unscan(self) -> None:
        """Push the previously read token back onto the buffer"""
        if self._buffer is not None:
            raise RuntimeError("pushback buffer already holds a token")
        if self._last is None:
            raise RuntimeError("nothing has been scanned yet")
        if self.debug:
            print(f"  unscan {self._last}")
        self._buffer = self._last

    def _scan_ignore_whitespace(self) -> Token:
        """Scan the next non-whitespace token"""
        token = self._scan()
        if token.kind is TokenKind.WS:
            token = self._scan()
        if self.debug:
            print(f"  scan {token}")
        return token

    def _expect(self, kind: TokenKind, expected: str) -> Token:
        """Consume a token of the given kind or fail"""
        token = self._scan_ignore_whitespace()
        if token.kind is not kind:
            raise SpecParseError.unexpected(token.literal, expected, token.offset)
        return token

    # ------------------------------------------------------------------
    # Grammar
    # ------------------------------------------------------------------

    def parse(self) -> Spec:
        """Parse a complete specification"""
        # First token should be the "spec" keyword
        self._expect(TokenKind.SPEC, "'spec'")

        name = self._expect(TokenKind.IDENT, "specification name").literal
        debtor = self._expect(TokenKind.IDENT, "debtor name").literal
        self._expect(TokenKind.TO, "'to'")
        creditor = self._expect(TokenKind.IDENT, "creditor name").literal
        constraint = Constraint(name=name, debtor=debtor, creditor=creditor)
        if self.debug:
            print(f"Parsed constraint: {constraint}")

        create_event, detach_event, discharge_event = (
            self.parse_event(keyword) for keyword in EVENT_KEYWORDS
        )

        # Anything after the discharge event is left unread
        return Spec(
            constraint=constraint,
            create_event=create_event,
            detach_event=detach_event,
            discharge_event=discharge_event,
        )

    def parse_event(self, keyword: TokenKind) -> Event:
        """Parse `KEYWORD NAME [ args ]` for one lifecycle event"""
        self._expect(keyword, f"'{keyword.value}'")
        name = self._expect(TokenKind.IDENT, f"event name for '{keyword.value}'").literal
        event = Event(name=name, args=tuple(self.parse_args()))
        if self.debug:
            print(f"Parsed {keyword.value} event: {event}")
        return event

    def parse_args(self) -> List[Arg]:
        """Parse a bracketed, comma-delimited, non-empty argument list"""
        self._expect(TokenKind.LBRACKET, "'['")

        args = []
        while True:
            # Read a field; `[]` and a trailing comma both fail here
            name = self._expect(TokenKind.IDENT, "field").literal

            # Optional `=value`
            token = self._scan_ignore_whitespace()
            if token.kind is TokenKind.EQUALS:
                value = self._scan_ignore_whitespace()
                if value.kind is not TokenKind.IDENT:
                    raise SpecParseError.unexpected(
                        value.literal, f'value for "{name}" when using \'=\'', value.offset
                    )
                args.append(Arg(name, value.literal))
            else:
                self._unscan()
                args.append(Arg(name))

            # Close bracket ends the list, otherwise a comma must follow
            token = self._scan_ignore_whitespace()
            if token.kind is TokenKind.RBRACKET:
                return args
            self._unscan()

            token = self._scan_ignore_whitespace()
            if token.kind is not TokenKind.COMMA:
                raise SpecParseError.unexpected(token.literal, "',' or ']'", token.offset)


# ============================================================================
# FACTORIES AND ENTRY POINTS
# ============================================================================

def create_parser(source: Union[str, TextIO]) -> QuarkParser:
    """Create a Quark parser"""
    return QuarkParser(source)


def create_debug_parser(source: Union[str, TextIO]) -> QuarkParser:
    """Create a Quark parser with debug tracing enabled"""
    return QuarkParser(source, debug=True)


def parse_string(text: str, filename: str = "<input>", debug: bool = False) -> Spec:
    """Parse specification source code, reporting errors with line context"""
    try:
        return QuarkParser(text, debug=debug).parse()
    except SpecParseError as e:
        raise enhance_parse_error(e, text, filename) from e


def parse_file(filepath: str, debug: bool = False) -> Spec:
    """Parse a specification source file"""
    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            content = f.read()
    except FileNotFoundError:
        raise SpecParseError(f"File not found: {filepath}", filename=filepath)
    except UnicodeDecodeError as e:
        raise SpecParseError(f"Cannot decode file {filepath}: {e}", filename=filepath)
    return parse_string(content, filepath, debug=debug)


# ============================================================================
# TREE UTILITIES
# ============================================================================

def spec_to_dict(spec: Spec) -> Dict[str, Any]:
    """Convert a Spec to a JSON-ready dictionary"""
    def event_to_dict(event: Event) -> Dict[str, Any]:
        return {
            "name": event.name,
            "args": [{"name": arg.name, "value": arg.value} for arg in event.args],
        }

    return {
        "constraint": {
            "name": spec.constraint.name,
            "debtor": spec.constraint.debtor,
            "creditor": spec.constraint.creditor,
        },
        "create": event_to_dict(spec.create_event),
        "detach": event_to_dict(spec.detach_event),
        "discharge": event_to_dict(spec.discharge_event),
    }


def pretty_print_spec(spec: Spec, indent: int = 0) -> str:
    """Pretty print a Spec for debugging and the CLI"""
    pad = "  " * indent
    constraint = spec.constraint
    result = f"{pad}Spec({constraint.name!r})\n"
    result += f"{pad}  debtor: {constraint.debtor}\n"
    result += f"{pad}  creditor: {constraint.creditor}\n"

    for keyword, event in zip(EVENT_KEYWORDS, spec.events):
        result += f"{pad}  {keyword.value}: {event.name}\n"
        for arg in event.args:
            value = "<none>" if arg.value is None else repr(arg.value)
            result += f"{pad}    {arg.name} = {value}\n"

    return result
