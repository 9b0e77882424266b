"""
formengine Formula Parser

Tokenizer and recursive-descent parser for computed-field formulas.

Grammar (lowest to highest precedence):

    expression  := conditional
    conditional := or_expr ( "?" expression ":" expression )?
    or_expr     := and_expr ( ("||" | "or") and_expr )*
    and_expr    := comparison ( ("&&" | "and") comparison )*
    comparison  := additive ( ("==" | "!=" | "<" | "<=" | ">" | ">=") additive )?
    additive    := term ( ("+" | "-") term )*
    term        := unary ( ("*" | "/" | "%") unary )*
    unary       := ("-" | "+" | "!" | "not") unary | power
    power       := primary ( ("^" | "**") unary )?
    primary     := NUMBER | STRING | "true" | "false" | IDENT
                 | IDENT "(" args ")" | "(" expression ")"

The resulting tree only ever names variables and whitelisted functions;
there is no attribute access, indexing or assignment.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, List, Optional, Tuple
import logging
import re

from formengine.errors import FormEngineException

logger = logging.getLogger(__name__)


class FormulaError(FormEngineException):
    """Raised for formulas that cannot be parsed or evaluated."""
    pass


# =============================================================================
# TOKENS
# =============================================================================

@dataclass(frozen=True)
class Token:
    kind: str    # number, string, ident, op, eof
    text: str
    position: int


_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
    |(?P<number>\d+(?:\.\d*)?(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?)
    |(?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
    |(?P<ident>[A-Za-z_$][A-Za-z0-9_$]*)
    |(?P<op>\*\*|==|!=|<=|>=|&&|\|\||[-+*/%^<>!?:(),])
    """,
    re.VERBOSE,
)

_WORD_OPERATORS = {"and", "or", "not"}


def tokenize(source: str) -> List[Token]:
    """Split a formula into tokens."""
    tokens: List[Token] = []
    pos = 0
    while pos < len(source):
        match = _TOKEN_RE.match(source, pos)
        if match is None:
            raise FormulaError(f"Unexpected character {source[pos]!r} at position {pos}")
        kind = match.lastgroup
        text = match.group(kind)
        if kind != "ws":
            if kind == "ident" and text in _WORD_OPERATORS:
                kind = "op"
            tokens.append(Token(kind, text, pos))
        pos = match.end()
    tokens.append(Token("eof", "", len(source)))
    return tokens


# =============================================================================
# AST
# =============================================================================

@dataclass(frozen=True)
class Node:
    """Base AST node."""


@dataclass(frozen=True)
class Literal(Node):
    value: Any


@dataclass(frozen=True)
class Variable(Node):
    name: str


@dataclass(frozen=True)
class UnaryOp(Node):
    op: str
    operand: Node


@dataclass(frozen=True)
class BinaryOp(Node):
    op: str
    left: Node
    right: Node


@dataclass(frozen=True)
class Conditional(Node):
    test: Node
    if_true: Node
    if_false: Node


@dataclass(frozen=True)
class Call(Node):
    function: str
    args: Tuple[Node, ...] = field(default_factory=tuple)


# =============================================================================
# PARSER
# =============================================================================

_COMPARISON_OPS = {"==", "!=", "<", "<=", ">", ">="}

# Parentheses, call arguments, conditional branches and prefix operators
MAX_NESTING = 32
# Height of the finished tree; long flat chains like a + b + ... count here
MAX_TREE_DEPTH = 200


def tree_depth(node: Node) -> int:
    """Height of a tree, walked without recursion."""
    deepest = 0
    stack = [(node, 1)]
    while stack:
        current, depth = stack.pop()
        deepest = max(deepest, depth)
        if isinstance(current, UnaryOp):
            children: Tuple[Node, ...] = (current.operand,)
        elif isinstance(current, BinaryOp):
            children = (current.left, current.right)
        elif isinstance(current, Conditional):
            children = (current.test, current.if_true, current.if_false)
        elif isinstance(current, Call):
            children = current.args
        else:
            children = ()
        stack.extend((child, depth + 1) for child in children)
    return deepest


class Parser:
    """Recursive-descent parser producing an immutable AST."""

    def __init__(self, source: str):
        self._source = source
        self._tokens = tokenize(source)
        self._pos = 0
        self._depth = 0

    def parse(self) -> Node:
        if self._peek().kind == "eof":
            raise FormulaError("Empty formula")
        node = self._expression()
        token = self._peek()
        if token.kind != "eof":
            raise FormulaError(f"Unexpected {token.text!r} at position {token.position}")
        if tree_depth(node) > MAX_TREE_DEPTH:
            raise FormulaError(f"Formula is nested more than {MAX_TREE_DEPTH} levels deep")
        return node

    # -- helpers --------------------------------------------------------------

    def _peek(self) -> Token:
        return self._tokens[self._pos]

    def _advance(self) -> Token:
        token = self._tokens[self._pos]
        self._pos += 1
        return token

    def _match(self, *ops: str) -> Optional[str]:
        token = self._peek()
        if token.kind == "op" and token.text in ops:
            self._pos += 1
            return token.text
        return None

    def _expect(self, op: str) -> None:
        token = self._advance()
        if token.kind != "op" or token.text != op:
            raise FormulaError(
                f"Expected {op!r} at position {token.position}, found {token.text or 'end of formula'!r}"
            )

    def _nested(self, parse_rule) -> Node:
        self._depth += 1
        try:
            if self._depth > MAX_NESTING:
                raise FormulaError(
                    f"Formula nests more than {MAX_NESTING} levels at position {self._peek().position}"
                )
            return parse_rule()
        finally:
            self._depth -= 1

    # -- grammar --------------------------------------------------------------

    def _expression(self) -> Node:
        return self._nested(self._conditional)

    def _conditional(self) -> Node:
        test = self._or()
        if self._match("?"):
            if_true = self._expression()
            self._expect(":")
            if_false = self._expression()
            return Conditional(test, if_true, if_false)
        return test

    def _or(self) -> Node:
        node = self._and()
        while self._match("||", "or"):
            node = BinaryOp("||", node, self._and())
        return node

    def _and(self) -> Node:
        node = self._comparison()
        while self._match("&&", "and"):
            node = BinaryOp("&&", node, self._comparison())
        return node

    def _comparison(self) -> Node:
        node = self._additive()
        op = self._match(*_COMPARISON_OPS)
        if op:
            node = BinaryOp(op, node, self._additive())
        return node

    def _additive(self) -> Node:
        node = self._term()
        while True:
            op = self._match("+", "-")
            if not op:
                return node
            node = BinaryOp(op, node, self._term())

    def _term(self) -> Node:
        node = self._unary()
        while True:
            op = self._match("*", "/", "%")
            if not op:
                return node
            node = BinaryOp(op, node, self._unary())

    def _unary(self) -> Node:
        op = self._match("-", "+", "!", "not")
        if op:
            operand = self._nested(self._unary)
            return UnaryOp("!" if op == "not" else op, operand)
        return self._power()

    def _power(self) -> Node:
        node = self._primary()
        if self._match("^", "**"):
            node = BinaryOp("^", node, self._nested(self._unary))
        return node

    def _primary(self) -> Node:
        token = self._advance()

        if token.kind == "number":
            return Literal(float(token.text))

        if token.kind == "string":
            return Literal(_unquote(token.text))

        if token.kind == "ident":
            if token.text == "true":
                return Literal(True)
            if token.text == "false":
                return Literal(False)
            if self._match("("):
                return Call(token.text, tuple(self._arguments()))
            return Variable(token.text)

        if token.kind == "op" and token.text == "(":
            node = self._expression()
            self._expect(")")
            return node

        if token.kind == "eof":
            raise FormulaError("Unexpected end of formula")
        raise FormulaError(f"Unexpected {token.text!r} at position {token.position}")

    def _arguments(self) -> List[Node]:
        args: List[Node] = []
        if self._match(")"):
            return args
        while True:
            args.append(self._expression())
            if self._match(")"):
                return args
            self._expect(",")


def _unquote(text: str) -> str:
    body = text[1:-1]
    return re.sub(r"\\(.)", r"\1", body)


@lru_cache(maxsize=256)
def parse_formula(source: str) -> Node:
    """Parse a formula, caching the tree per source string."""
    return Parser(source).parse()


def referenced_names(node: Node) -> List[str]:
    """Variable names a tree reads, in first-seen order."""
    names: List[str] = []

    def visit(n: Node) -> None:
        if isinstance(n, Variable):
            if n.name not in names:
                names.append(n.name)
        elif isinstance(n, UnaryOp):
            visit(n.operand)
        elif isinstance(n, BinaryOp):
            visit(n.left)
            visit(n.right)
        elif isinstance(n, Conditional):
            visit(n.test)
            visit(n.if_true)
            visit(n.if_false)
        elif isinstance(n, Call):
            for arg in n.args:
                visit(arg)

    visit(node)
    return names
