"""Tokenizer for query expressions."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from enum import StrEnum

from parsy import ParseError, Parser, alt, eof, index, regex, seq, string

from spath.diagnostics import Span
from spath.errors import QueryLexError


logger = logging.getLogger("spath")


class TokenKind(StrEnum):
    """Kinds of tokens; values double as descriptions in error messages."""

    DOLLAR = "'$'"
    AT = "'@'"
    DOUBLE_DOT = "'..'"
    DOT = "'.'"
    ASTERISK = "'*'"
    COLON = "':'"
    COMMA = "','"
    QUESTION = "'?'"
    LPAREN = "'('"
    RPAREN = "')'"
    LBRACKET = "'['"
    RBRACKET = "']'"
    EQ = "'=='"
    NE = "'!='"
    LE = "'<='"
    GE = "'>='"
    LT = "'<'"
    GT = "'>'"
    AND = "'&&'"
    OR = "'||'"
    NOT = "'!'"
    IDENT = "identifier"
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "number"
    EOI = "end of input"


@dataclass(frozen=True, slots=True)
class Token:
    """One lexical token with its location in the source text."""

    kind: TokenKind
    text: str
    span: Span
    value: str | int | float | None = None

    def describe(self) -> str:
        """Describe the token for error messages."""
        if self.kind is TokenKind.EOI:
            return "end of input"
        return repr(self.text)


# Longer symbols first so that e.g. `..` wins over `.`.
_PUNCTUATION: tuple[tuple[str, TokenKind], ...] = (
    ("..", TokenKind.DOUBLE_DOT),
    ("==", TokenKind.EQ),
    ("!=", TokenKind.NE),
    ("<=", TokenKind.LE),
    (">=", TokenKind.GE),
    ("&&", TokenKind.AND),
    ("||", TokenKind.OR),
    ("$", TokenKind.DOLLAR),
    ("@", TokenKind.AT),
    (".", TokenKind.DOT),
    ("*", TokenKind.ASTERISK),
    (":", TokenKind.COLON),
    (",", TokenKind.COMMA),
    ("?", TokenKind.QUESTION),
    ("(", TokenKind.LPAREN),
    (")", TokenKind.RPAREN),
    ("[", TokenKind.LBRACKET),
    ("]", TokenKind.RBRACKET),
    ("<", TokenKind.LT),
    (">", TokenKind.GT),
    ("!", TokenKind.NOT),
)

_STRING_ESCAPES = {
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "/": "/",
    "\\": "\\",
}


def _token(pattern: Parser, kind: TokenKind) -> Parser:
    """Build a parser producing a token of a fixed kind with its span."""
    return seq(index, pattern, index).combine(
        lambda start, text, end: Token(kind, text, Span(start, end))
    )


def _number_kind(text: str) -> TokenKind:
    """Tell integers from other numbers."""
    if any(char in text for char in ".eE"):
        return TokenKind.FLOAT
    return TokenKind.INTEGER


def _make_lexer() -> Parser:
    """Create the full token stream parser."""
    whitespace = regex(r"[ \t\n\r]*")
    string_token = _token(
        regex(r"'(?:[^'\\]|\\.)*'|\"(?:[^\"\\]|\\.)*\"", flags=re.DOTALL),
        TokenKind.STRING,
    )
    number_token = seq(
        index,
        regex(r"-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?"),
        index,
    ).combine(lambda start, text, end: Token(_number_kind(text), text, Span(start, end)))
    ident_token = _token(
        regex(r"[A-Za-z_\u0080-\U0010ffff][A-Za-z0-9_\u0080-\U0010ffff]*"),
        TokenKind.IDENT,
    )
    punctuation = alt(*(_token(string(text), kind) for text, kind in _PUNCTUATION))

    any_token = string_token | number_token | ident_token | punctuation
    return whitespace >> (any_token << whitespace).many() << eof


_LEXER = _make_lexer()


def _lex_error_cause(source: str, offset: int) -> str:
    """Explain why tokenizing stopped at offset."""
    char = source[offset] if offset < len(source) else ""
    if char in {"'", '"'}:
        return "unterminated string literal"
    return f"invalid character {char!r}"


def _decode_unicode_escape(body: str, position: int) -> tuple[str, int]:
    """Decode a `\\uXXXX` escape (and a following low surrogate) at position."""
    digits = body[position : position + 4]
    if len(digits) != 4 or not all(c in "0123456789abcdefABCDEF" for c in digits):
        raise ValueError("invalid escape sequence")
    code = int(digits, 16)
    position += 4

    if 0xDC00 <= code <= 0xDFFF:
        raise ValueError("invalid escape sequence")
    if 0xD800 <= code <= 0xDBFF:
        low_digits = body[position + 2 : position + 6]
        if body[position : position + 2] != "\\u" or len(low_digits) != 4:
            raise ValueError("invalid escape sequence")
        try:
            low = int(low_digits, 16)
        except ValueError as exc:
            raise ValueError("invalid escape sequence") from exc
        if not 0xDC00 <= low <= 0xDFFF:
            raise ValueError("invalid escape sequence")
        code = 0x10000 + ((code - 0xD800) << 10) + (low - 0xDC00)
        position += 6
    return (chr(code), position)


def _decode_string(text: str) -> str:
    """Decode a quoted string literal token."""
    quote = text[0]
    body = text[1:-1]
    decoded: list[str] = []
    position = 0
    while position < len(body):
        char = body[position]
        if char == "\\":
            escape = body[position + 1]
            position += 2
            if escape == quote:
                decoded.append(quote)
            elif escape in _STRING_ESCAPES:
                decoded.append(_STRING_ESCAPES[escape])
            elif escape == "u":
                unicode_char, position = _decode_unicode_escape(body, position)
                decoded.append(unicode_char)
            else:
                raise ValueError("invalid escape sequence")
            continue
        if ord(char) < 0x20:
            raise ValueError("invalid character in string literal")
        decoded.append(char)
        position += 1
    return "".join(decoded)


def _with_value(token: Token, source: str) -> Token:
    """Attach the decoded literal value to string and number tokens."""
    match token.kind:
        case TokenKind.STRING:
            try:
                decoded = _decode_string(token.text)
            except ValueError as exc:
                raise QueryLexError(str(exc), source=source, span=token.span) from exc
            return Token(token.kind, token.text, token.span, decoded)
        case TokenKind.INTEGER:
            return Token(token.kind, token.text, token.span, int(token.text))
        case TokenKind.FLOAT:
            number = float(token.text)
            if not math.isfinite(number):
                raise QueryLexError("number literal is out of range", source=source, span=token.span)
            return Token(token.kind, token.text, token.span, number)
    return token


def tokenize(source: str) -> list[Token]:
    """Split query text into tokens terminated by an end-of-input token.

    Raises:
        QueryLexError: If the text contains something that is not a token
    """
    try:
        raw_tokens = _LEXER.parse(source)
    except ParseError as exc:
        offset = exc.index
        raise QueryLexError(
            _lex_error_cause(source, offset),
            source=source,
            span=Span(offset, offset + 1),
        ) from exc

    tokens = [_with_value(token, source) for token in raw_tokens]
    tokens.append(Token(TokenKind.EOI, "", Span(len(source), len(source))))
    logger.debug("Tokenized %d token(s) from %r", len(tokens), source)
    return tokens
