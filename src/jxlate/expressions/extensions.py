"""Jinja2 extensions for jxlate expressions."""

from __future__ import annotations

from functools import partial
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple

from jinja2.ext import Extension
from jinja2.lexer import Token

# Global that custom operator calls are rewritten into.
DISPATCH = "_jxlate_binop"

# Jinja's own binary operators, ranked on the scale custom operators use.
BUILTIN_PRECEDENCE: Dict[str, int] = {
    "or": 10,
    "and": 15,
    "eq": 20,
    "ne": 20,
    "lt": 20,
    "lteq": 20,
    "gt": 20,
    "gteq": 20,
    "in": 20,
    "not in": 20,
    "tilde": 25,
    "add": 30,
    "sub": 30,
    "mul": 40,
    "div": 40,
    "floordiv": 40,
    "mod": 40,
    "pow": 50,
}

RESERVED_NAMES = frozenset(
    {"and", "or", "not", "in", "is", "if", "else", "true", "false", "none"}
)

_OPEN = {"lparen": "rparen", "lbracket": "rbracket", "lbrace": "rbrace"}
_CLOSE = frozenset(_OPEN.values())

_BOUNDARY_TYPES = frozenset(
    {
        "comma",
        "colon",
        "assign",
        "semicolon",
        "data",
        "variable_begin",
        "variable_end",
        "block_begin",
        "block_end",
        "raw_begin",
        "raw_end",
        "linestatement_begin",
        "linestatement_end",
    }
)
_BOUNDARY_NAMES = frozenset({"if", "else", "for", "recursive"})

# Tokens after which an operand is still incomplete.
_PREFIX_TYPES = frozenset({"add", "sub", "pipe", "dot"})
_PREFIX_NAMES = frozenset({"not", "is"})

Atom = List[Token]


class OperatorSpec(NamedTuple):
    precedence: int
    fn: Callable[[Any, Any], Any]


class _Op(NamedTuple):
    name: str
    precedence: int
    tokens: List[Token]
    custom: bool


def _apply_operator(environment, name: str, left: Any, right: Any) -> Any:
    return environment.binary_operators[name].fn(left, right)


def _single(atom: Atom, type_: str, value: Optional[str] = None) -> bool:
    if len(atom) != 1 or atom[0].type != type_:
        return False
    return value is None or atom[0].value == value


def _is_boundary(atom: Atom) -> bool:
    if len(atom) != 1:
        return False
    tok = atom[0]
    if tok.type in _BOUNDARY_TYPES:
        return True
    return tok.type == "name" and tok.value in _BOUNDARY_NAMES


def _is_open(atom: Atom) -> bool:
    if len(atom) != 1:
        return False
    tok = atom[0]
    if tok.type in _PREFIX_TYPES:
        return True
    return tok.type == "name" and tok.value in _PREFIX_NAMES


def _matching(tokens: List[Token], start: int) -> Optional[int]:
    depth = 0
    for index in range(start, len(tokens)):
        kind = tokens[index].type
        if kind in _OPEN:
            depth += 1
        elif kind in _CLOSE:
            depth -= 1
            if depth == 0:
                return index
    return None


def _group(tokens: List[Token]) -> List[Token]:
    lineno = tokens[0].lineno
    return [Token(lineno, "lparen", "("), *tokens, Token(lineno, "rparen", ")")]


class BinaryOperatorExtension(Extension):
    """Adds named infix operators such as ``age plus 10`` to expressions.

    Jinja's grammar has a fixed operator set, so operators registered here
    are resolved in ``filter_stream``: any expression segment that uses one
    is re-parenthesised by precedence and each custom operator becomes a
    call to a dispatch global. Segments without custom operators are left
    untouched.

    Operators are registered on the environment::

        env.binary_operators["plus"] = OperatorSpec(30, lambda a, b: a + b)

    Operator names must be identifiers; built-in operators rank from
    ``or`` (10) to ``**`` (50), see ``BUILTIN_PRECEDENCE``.
    """

    def __init__(self, environment):
        super().__init__(environment)
        # Runtime attribute, not part of Environment's type definition
        environment.binary_operators = {}  # type: ignore[attr-defined]
        environment.globals[DISPATCH] = partial(_apply_operator, environment)

    def filter_stream(self, stream):
        operators = self.environment.binary_operators  # type: ignore[attr-defined]
        if not operators:
            return stream

        tokens = list(stream)
        if not any(t.type == "name" and t.value in operators for t in tokens):
            return iter(tokens)
        return iter(self._rewrite(tokens))

    def _rewrite(self, tokens: List[Token]) -> List[Token]:
        out: List[Token] = []
        segment: List[Atom] = []
        for atom in self._atoms(tokens):
            if _is_boundary(atom):
                out.extend(self._rewrite_segment(segment))
                out.extend(atom)
                segment = []
            else:
                segment.append(atom)
        out.extend(self._rewrite_segment(segment))
        return out

    def _atoms(self, tokens: List[Token]) -> List[Atom]:
        """Split tokens into single tokens and bracketed groups."""
        atoms: List[Atom] = []
        index = 0
        while index < len(tokens):
            tok = tokens[index]
            if tok.type in _OPEN:
                end = _matching(tokens, index)
                if end is None:
                    atoms.extend([t] for t in tokens[index:])
                    break
                inner = self._rewrite(tokens[index + 1 : end])
                atoms.append([tok, *inner, tokens[end]])
                index = end + 1
            else:
                atoms.append([tok])
                index += 1
        return atoms

    def _rewrite_segment(self, atoms: List[Atom]) -> List[Token]:
        flat = [tok for atom in atoms for tok in atom]
        if not any(self._is_custom(atom) for atom in atoms):
            return flat

        operands, ops = self._split(atoms)
        if not ops or not all(operands):
            # Leave malformed input for Jinja's parser to report.
            return flat
        return self._combine(operands, ops)

    def _is_custom(self, atom: Atom) -> bool:
        return (
            len(atom) == 1
            and atom[0].type == "name"
            and atom[0].value in self.environment.binary_operators  # type: ignore[attr-defined]
        )

    def _split(self, atoms: List[Atom]) -> Tuple[List[List[Atom]], List[_Op]]:
        operands: List[List[Atom]] = [[]]
        ops: List[_Op] = []
        index = 0
        while index < len(atoms):
            current = operands[-1]
            if current and not _is_open(current[-1]):
                op, width = self._operator_at(atoms, index)
                if op is not None:
                    ops.append(op)
                    operands.append([])
                    index += width
                    continue
            current.append(atoms[index])
            index += 1
        return operands, ops

    def _operator_at(self, atoms: List[Atom], index: int) -> Tuple[Optional[_Op], int]:
        atom = atoms[index]
        if len(atom) != 1:
            return None, 0
        tok = atom[0]

        if tok.type == "name":
            spec = self.environment.binary_operators.get(tok.value)  # type: ignore[attr-defined]
            if spec is not None:
                return _Op(tok.value, spec.precedence, [tok], True), 1
            if (
                tok.value == "not"
                and index + 1 < len(atoms)
                and _single(atoms[index + 1], "name", "in")
            ):
                tokens = [tok, atoms[index + 1][0]]
                return _Op("not in", BUILTIN_PRECEDENCE["not in"], tokens, False), 2
            if tok.value in ("and", "or", "in"):
                return _Op(tok.value, BUILTIN_PRECEDENCE[tok.value], [tok], False), 1
            return None, 0

        if tok.type in BUILTIN_PRECEDENCE:
            return _Op(tok.type, BUILTIN_PRECEDENCE[tok.type], [tok], False), 1
        return None, 0

    def _combine(self, operands: List[List[Atom]], ops: List[_Op]) -> List[Token]:
        terms = [_group([tok for atom in operand for tok in atom]) for operand in operands]
        output: List[List[Token]] = [terms[0]]
        pending: List[_Op] = []

        # Left-associative precedence climbing.
        for op, term in zip(ops, terms[1:]):
            while pending and pending[-1].precedence >= op.precedence:
                self._reduce(output, pending.pop())
            pending.append(op)
            output.append(term)
        while pending:
            self._reduce(output, pending.pop())
        return output[0]

    def _reduce(self, output: List[List[Token]], op: _Op) -> None:
        right = output.pop()
        left = output.pop()
        lineno = op.tokens[0].lineno
        if op.custom:
            output.append(
                [
                    Token(lineno, "name", DISPATCH),
                    Token(lineno, "lparen", "("),
                    Token(lineno, "string", op.name),
                    Token(lineno, "comma", ","),
                    *left,
                    Token(lineno, "comma", ","),
                    *right,
                    Token(lineno, "rparen", ")"),
                ]
            )
        else:
            output.append(_group([*left, *op.tokens, *right]))
