"""
Quark Specification Language Scanner
Character-at-a-time tokenizer producing classified tokens for the parser
"""

from typing import BinaryIO, Dict, Iterator, List, Optional, TextIO, Union
from dataclasses import dataclass
from enum import Enum
import io


class TokenKind(Enum):
    """Lexical token kinds"""

    # Special tokens
    ILLEGAL = "ILLEGAL"
    EOF = "EOF"
    WS = "WS"

    # Literals
    IDENT = "IDENT"

    # Misc characters
    LBRACE = "{"
    RBRACE = "}"
    LBRACKET = "["
    RBRACKET = "]"
    EQUALS = "="
    COMMA = ","

    # Keywords
    SPEC = "spec"
    TO = "to"
    CREATE = "create"
    DETACH = "detach"
    DISCHARGE = "discharge"

    @property
    def is_keyword(self) -> bool:
        return self in _KEYWORD_KINDS


KEYWORDS: Dict[str, TokenKind] = {
    "spec": TokenKind.SPEC,
    "to": TokenKind.TO,
    "create": TokenKind.CREATE,
    "detach": TokenKind.DETACH,
    "discharge": TokenKind.DISCHARGE,
}

_KEYWORD_KINDS = frozenset(KEYWORDS.values())

PUNCTUATION: Dict[str, TokenKind] = {
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    "[": TokenKind.LBRACKET,
    "]": TokenKind.RBRACKET,
    "=": TokenKind.EQUALS,
    ",": TokenKind.COMMA,
}

WHITESPACE = frozenset(" \t\n\r")
IDENT_CHARS = frozenset(
    "abcdefghijklmnopqrstuvwxyz"
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    "0123456789_"
)

# End of input is signalled by an empty read
EOF_CHAR = ""


@dataclass(frozen=True)
class Token:
    """Scanned token with its literal text and start offset"""
    kind: TokenKind
    literal: str
    offset: int = 0

    def __str__(self) -> str:
        return f"{self.kind.name}({self.literal!r})"


class Scanner:
    """Lexical scanner over text, UTF-8 bytes, or a text or binary stream"""

    def __init__(self, source: Union[str, bytes, TextIO, BinaryIO], encoding: str = "utf-8"):
        if isinstance(source, (bytes, bytearray)):
            source = source.decode(encoding)
        if isinstance(source, str):
            source = io.StringIO(source)
        elif isinstance(source, (io.RawIOBase, io.BufferedIOBase)):
            # Decode byte streams; newline="" keeps "\r\n" intact for offsets
            source = io.TextIOWrapper(source, encoding=encoding, newline="")
        self._reader = source
        self._pending: Optional[str] = None
        self._last = EOF_CHAR
        self._offset = 0

    def _read(self) -> str:
        """Read the next character, or EOF_CHAR at end of input"""
        if self._pending is not None:
            ch, self._pending = self._pending, None
        else:
            ch = self._reader.read(1)
        self._last = ch
        if ch != EOF_CHAR:
            self._offset += 1
        return ch

    def _unread(self) -> None:
        """Place the previously read character back on the reader"""
        if self._last != EOF_CHAR:
            self._pending = self._last
            self._offset -= 1

    def scan(self) -> Token:
        """Return the next token from the source"""
        start = self._offset
        ch = self._read()

        # Runs of whitespace and identifier characters are consumed whole
        if ch in WHITESPACE:
            self._unread()
            return self._scan_whitespace()
        if ch in IDENT_CHARS:
            self._unread()
            return self._scan_ident()

        if ch == EOF_CHAR:
            return Token(TokenKind.EOF, "", start)
        if ch in PUNCTUATION:
            return Token(PUNCTUATION[ch], ch, start)

        return Token(TokenKind.ILLEGAL, ch, start)

    def _scan_whitespace(self) -> Token:
        start = self._offset
        chars = []
        while True:
            ch = self._read()
            if ch == EOF_CHAR:
                break
            if ch not in WHITESPACE:
                self._unread()
                break
            chars.append(ch)
        return Token(TokenKind.WS, "".join(chars), start)

    def _scan_ident(self) -> Token:
        start = self._offset
        chars = []
        while True:
            ch = self._read()
            if ch == EOF_CHAR:
                break
            if ch not in IDENT_CHARS:
                self._unread()
                break
            chars.append(ch)

        literal = "".join(chars)
        kind = KEYWORDS.get(literal, TokenKind.IDENT)
        return Token(kind, literal, start)

    def tokens(self) -> Iterator[Token]:
        """Yield tokens lazily, ending with (and including) the first EOF"""
        while True:
            token = self.scan()
            yield token
            if token.kind is TokenKind.EOF:
                return


def tokenize(text: str) -> List[Token]:
    """Tokenize source text into a list ending with EOF"""
    return list(Scanner(text).tokens())
