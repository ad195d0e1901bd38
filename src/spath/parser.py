"""Parser for query expressions.

The parser works on the token list produced by `spath.lexer.tokenize`. Grammar
failures surface as parsy `ParseError`s and are turned into `QueryParseError`
with the offending token's span. Semantic problems (bad slice step, unknown
function, wrong argument type, ...) are raised directly from the `@generate`
builders once enough input was consumed to be sure about them.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator
from dataclasses import dataclass
from typing import Final, Literal, TypeAlias, cast

from parsy import ParseError, Parser, forward_declaration, generate, index, seq, test_item

from spath.ast import (
    ChildSegment,
    Comparison,
    DescendantSegment,
    ExistenceTest,
    Expr,
    FilterSelector,
    FunctionCall,
    IndexSelector,
    LiteralExpr,
    LogicalAnd,
    LogicalNot,
    LogicalOr,
    NameSelector,
    Query,
    Segment,
    Selector,
    SliceSelector,
    WildcardSelector,
)
from spath.diagnostics import Span
from spath.errors import QueryParseError
from spath.functions import BUILTIN_REGISTRY, ExprType, FunctionRegistry
from spath.lexer import Token, TokenKind, tokenize


logger = logging.getLogger("spath")

MAX_INDEX: Final = 2**53 - 1
MIN_INDEX: Final = -(2**53) + 1
MAX_NESTING_DEPTH: Final = 10

ComparisonOperator: TypeAlias = Literal["==", "!=", "<", "<=", ">", ">="]


@dataclass(frozen=True, slots=True)
class _Operand:
    """Filter sub-expression paired with the source span it was parsed from."""

    expr: Expr
    span: Span


def _kind(kind: TokenKind) -> Parser:
    """Build a parser accepting one token of the given kind."""
    return test_item(lambda token: isinstance(token, Token) and token.kind is kind, kind.value)


def _keyword(text: str) -> Parser:
    """Build a parser accepting an identifier token with fixed text."""
    return test_item(
        lambda token: isinstance(token, Token)
        and token.kind is TokenKind.IDENT
        and token.text == text,
        text,
    )


def _ensure_adjacent(previous: Token, token: Token, message: str) -> None:
    """Reject whitespace between two tokens that must touch."""
    if previous.span.end != token.span.start:
        raise QueryParseError(message, span=Span(previous.span.end, token.span.start))


def _index_value(token: Token) -> int:
    """Validate an integer token used as an index or slice bound."""
    if token.text == "-0":
        raise QueryParseError("negative zero is not a valid index", span=token.span)
    value = cast(int, token.value)
    if not MIN_INDEX <= value <= MAX_INDEX:
        raise QueryParseError(
            f"index {token.text} is outside the range [{MIN_INDEX}, {MAX_INDEX}]",
            span=token.span,
        )
    return value


def _as_logical(operand: _Operand) -> Expr:
    """Turn a parsed operand into an expression usable as a test."""
    expr = operand.expr
    if isinstance(expr, Query):
        return ExistenceTest(expr)
    if isinstance(expr, LiteralExpr):
        raise QueryParseError(
            f"literal {expr} cannot be used as a test expression", span=operand.span
        )
    if isinstance(expr, FunctionCall) and expr.result_type is ExprType.VALUE:
        raise QueryParseError(
            f"function {expr.name}() returns {ExprType.VALUE.value} "
            "and cannot be used as a test expression",
            span=operand.span,
        )
    return expr


def _as_comparable(operand: _Operand) -> Expr:
    """Check that a parsed operand can appear on one side of a comparison."""
    expr = operand.expr
    if isinstance(expr, LiteralExpr):
        return expr
    if isinstance(expr, Query):
        if not expr.is_singular:
            raise QueryParseError(
                f"non-singular query {expr} cannot be compared", span=operand.span
            )
        return expr
    if isinstance(expr, FunctionCall):
        if expr.result_type is ExprType.LOGICAL:
            raise QueryParseError(
                f"function {expr.name}() returns {ExprType.LOGICAL.value} and cannot be compared",
                span=operand.span,
            )
        return expr
    raise QueryParseError("logical expression cannot be compared", span=operand.span)


def _convert_argument(operand: _Operand, parameter: ExprType, position: int, name: str) -> Expr:
    """Check a function argument against its parameter type.

    Queries passed to LOGICAL parameters become existence tests. Non-singular
    queries and node-returning functions are accepted for VALUE parameters and
    checked for a single node when the function is called.
    """
    expr = operand.expr
    accepted: Expr | None = None
    match parameter:
        case ExprType.VALUE:
            if isinstance(expr, LiteralExpr | Query):
                accepted = expr
            elif isinstance(expr, FunctionCall) and expr.result_type is not ExprType.LOGICAL:
                accepted = expr
        case ExprType.LOGICAL:
            if isinstance(expr, Query):
                accepted = ExistenceTest(expr)
            elif isinstance(expr, FunctionCall):
                accepted = expr if expr.result_type is not ExprType.VALUE else None
            elif not isinstance(expr, LiteralExpr):
                accepted = expr
        case ExprType.NODES:
            if isinstance(expr, Query):
                accepted = expr
            elif isinstance(expr, FunctionCall) and expr.result_type is ExprType.NODES:
                accepted = expr

    if accepted is None:
        raise QueryParseError(
            f"argument {position} of {name}() must be of type {parameter.value}",
            span=operand.span,
        )
    return accepted


def _chain_logical(
    term: Parser,
    operator: Parser,
    builder: Callable[[Expr, Expr], Expr],
) -> Parser:
    """Build a left-associative parser for `&&` or `||` chains."""

    @generate
    def parser() -> Generator[Parser, object, _Operand]:
        first = cast(_Operand, (yield term))
        rest = cast(list[_Operand], (yield (operator >> term).many()))
        if not rest:
            return first

        current = _as_logical(first)
        for operand in rest:
            current = builder(current, _as_logical(operand))
        return _Operand(current, first.span.merge(rest[-1].span))

    return parser


def _make_parser(registry: FunctionRegistry, tokens: list[Token]) -> Parser:
    """Create the full query parser for one token list."""
    dollar = _kind(TokenKind.DOLLAR)
    at = _kind(TokenKind.AT)
    dot = _kind(TokenKind.DOT)
    double_dot = _kind(TokenKind.DOUBLE_DOT)
    asterisk = _kind(TokenKind.ASTERISK)
    colon = _kind(TokenKind.COLON)
    comma = _kind(TokenKind.COMMA)
    question = _kind(TokenKind.QUESTION)
    lparen = _kind(TokenKind.LPAREN)
    rparen = _kind(TokenKind.RPAREN)
    lbracket = _kind(TokenKind.LBRACKET)
    rbracket = _kind(TokenKind.RBRACKET)
    identifier = _kind(TokenKind.IDENT)
    string_token = _kind(TokenKind.STRING)
    integer = _kind(TokenKind.INTEGER)
    number = integer | _kind(TokenKind.FLOAT)
    not_operator = _kind(TokenKind.NOT)
    and_operator = _kind(TokenKind.AND)
    or_operator = _kind(TokenKind.OR)
    comparison_operator = (
        _kind(TokenKind.EQ)
        | _kind(TokenKind.NE)
        | _kind(TokenKind.LE)
        | _kind(TokenKind.GE)
        | _kind(TokenKind.LT)
        | _kind(TokenKind.GT)
    )
    end_of_input = _kind(TokenKind.EOI)

    def span_between(start: int, end: int) -> Span:
        """Span covering tokens[start:end]."""
        if end <= start:
            return tokens[start].span
        return tokens[start].span.merge(tokens[end - 1].span)

    def spanned(parser: Parser) -> Parser:
        return seq(index, parser, index).combine(
            lambda start, expr, end: _Operand(expr, span_between(start, end))
        )

    logical_expr = forward_declaration()

    # Selectors

    name_selector = string_token.map(lambda token: NameSelector(cast(str, token.value)))
    wildcard_selector = asterisk.result(WildcardSelector())
    index_selector = integer.map(lambda token: IndexSelector(_index_value(token)))
    bound = integer.map(_index_value).optional()

    @generate
    def slice_selector() -> Generator[Parser, object, SliceSelector]:
        start = cast(int | None, (yield bound))
        yield colon
        end = cast(int | None, (yield bound))
        step: int | None = None
        second_colon = yield colon.optional()
        if second_colon is not None:
            step_token = cast(Token | None, (yield integer.optional()))
            if step_token is not None:
                step = _index_value(step_token)
                if step == 0:
                    raise QueryParseError("slice step must not be zero", span=step_token.span)
        return SliceSelector(start, end, step)

    @generate
    def filter_selector() -> Generator[Parser, object, FilterSelector]:
        yield question
        operand = cast(_Operand, (yield logical_expr))
        return FilterSelector(_as_logical(operand))

    selector = name_selector | wildcard_selector | filter_selector | slice_selector | index_selector
    bracketed_selectors = lbracket >> selector.sep_by(comma, min=1) << rbracket

    def shorthand(marker: Parser) -> Parser:
        """Build parser for `.name`, `.*`, `..name` and `..*`."""

        @generate
        def parser() -> Generator[Parser, object, list[Selector]]:
            marker_token = cast(Token, (yield marker))
            token = cast(Token, (yield asterisk | identifier))
            _ensure_adjacent(
                marker_token, token, f"whitespace is not allowed after {marker_token.kind.value}"
            )
            if token.kind is TokenKind.ASTERISK:
                return [WildcardSelector()]
            return [NameSelector(token.text)]

        return parser

    child_segment = (bracketed_selectors | shorthand(dot)).map(
        lambda selectors: ChildSegment(tuple(selectors))
    )
    descendant_segment = ((double_dot >> bracketed_selectors) | shorthand(double_dot)).map(
        lambda selectors: DescendantSegment(tuple(selectors))
    )
    segments = (descendant_segment | child_segment).many().map(tuple)

    # Filter expressions

    @generate
    def embedded_query() -> Generator[Parser, object, Query]:
        root = cast(Token, (yield dollar | at))
        query_segments = cast(tuple[Segment, ...], (yield segments))
        return Query(cast(Literal["$", "@"], root.text), query_segments)

    literal = (
        string_token.map(lambda token: LiteralExpr(token.value))
        | number.map(lambda token: LiteralExpr(token.value))
        | _keyword("true").result(LiteralExpr(True))
        | _keyword("false").result(LiteralExpr(False))
        | _keyword("null").result(LiteralExpr(None))
    )

    @generate
    def function_call() -> Generator[Parser, object, FunctionCall]:
        name_token = cast(Token, (yield identifier))
        open_token = cast(Token, (yield lparen))
        _ensure_adjacent(
            name_token, open_token, "whitespace is not allowed between function name and '('"
        )
        name = name_token.text
        definition = registry.get(name)
        if definition is None:
            available = ", ".join(registry.names()) or "none"
            raise QueryParseError(
                f"unknown function {name}(); available functions: {available}",
                span=name_token.span,
            )

        operands = cast(list[_Operand], (yield logical_expr.sep_by(comma)))
        close_token = cast(Token, (yield rparen))
        span = name_token.span.merge(close_token.span)

        parameters = definition.signature.parameters
        if len(operands) != len(parameters):
            raise QueryParseError(
                f"function {name}() expects {len(parameters)} argument(s), got {len(operands)}",
                span=span,
            )
        arguments = tuple(
            _convert_argument(operand, parameter, position, name)
            for position, (operand, parameter) in enumerate(
                zip(operands, parameters, strict=True), start=1
            )
        )
        return FunctionCall(name, arguments, definition.signature.result, span)

    @generate
    def parenthesized() -> Generator[Parser, object, Expr]:
        yield lparen
        operand = cast(_Operand, (yield logical_expr))
        yield rparen
        return _as_logical(operand)

    primary = parenthesized | embedded_query | function_call | literal

    @generate
    def basic_expr() -> Generator[Parser, object, _Operand]:
        start = cast(int, (yield index))
        negations = cast(list[Token], (yield not_operator.many()))
        left = cast(_Operand, (yield spanned(primary)))
        if negations:
            negated = _as_logical(left)
            for _negation in negations:
                negated = LogicalNot(negated)
            return _Operand(negated, tokens[start].span.merge(left.span))

        operator = cast(Token | None, (yield comparison_operator.optional()))
        if operator is None:
            return left
        right = cast(_Operand, (yield spanned(primary)))
        comparison = Comparison(
            _as_comparable(left),
            cast(ComparisonOperator, operator.text),
            _as_comparable(right),
        )
        return _Operand(comparison, left.span.merge(right.span))

    logical_and = _chain_logical(basic_expr, and_operator, LogicalAnd)
    logical_expr.become(_chain_logical(logical_and, or_operator, LogicalOr))

    @generate
    def query() -> Generator[Parser, object, Query]:
        yield dollar
        query_segments = cast(tuple[Segment, ...], (yield segments))
        yield end_of_input
        return Query("$", query_segments)

    return query


def _check_nesting(tokens: list[Token]) -> None:
    """Refuse brackets and parentheses nested deeper than MAX_NESTING_DEPTH."""
    depth = 0
    for token in tokens:
        if token.kind in (TokenKind.LBRACKET, TokenKind.LPAREN):
            depth += 1
            if depth > MAX_NESTING_DEPTH:
                raise QueryParseError(
                    f"nesting exceeds the maximum depth of {MAX_NESTING_DEPTH}", span=token.span
                )
        elif token.kind in (TokenKind.RBRACKET, TokenKind.RPAREN):
            depth = max(depth - 1, 0)


def _unexpected_token_error(source: str, tokens: list[Token], exc: ParseError) -> QueryParseError:
    """Convert a grammar failure at a token index into a query error."""
    position = min(exc.index, len(tokens) - 1)
    token = tokens[position]
    return QueryParseError(
        f"unexpected {token.describe()}",
        source=source,
        span=token.span,
        expected=tuple(sorted(exc.expected)),
    )


def parse_query(source: str, registry: FunctionRegistry | None = None) -> Query:
    """Parse query text into an AST.

    Args:
        source: Query text starting with `$`
        registry: Functions callable from filters; built-ins when omitted.
            The registry is frozen by this call.

    Raises:
        QueryLexError: If the text cannot be tokenized
        QueryParseError: If the tokens do not form a valid query
    """
    registry = BUILTIN_REGISTRY if registry is None else registry
    registry.freeze()

    tokens = tokenize(source)
    parser = _make_parser(registry, tokens)
    try:
        _check_nesting(tokens)
        result = parser.parse(tokens)
    except ParseError as exc:
        raise _unexpected_token_error(source, tokens, exc) from exc
    except RecursionError as exc:
        raise QueryParseError(
            "query is nested too deeply to parse", source=source, span=Span(0, len(source))
        ) from exc
    except QueryParseError as exc:
        if exc.source is None:
            exc.source = source
        raise

    if not isinstance(result, Query):
        raise QueryParseError("Parser did not produce a query", source=source)
    logger.debug("Parsed %r as %s", source, result)
    return result
