"""
SOQL parser and composer.

Parses the subset of SOQL used by migration scripts into a small AST and
composes it back to text:

    SELECT <fields> FROM <object> [USING SCOPE <scope>] [WHERE ...] [WITH ...]
    [GROUP BY ...] [HAVING ...] [ORDER BY ...] [LIMIT n] [OFFSET n] [FOR ...]

Clause bodies other than the field list, ORDER BY, LIMIT and OFFSET are kept
as text. Conditions added programmatically are kept as Condition nodes so
they compose deterministically.
"""

import re
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, List, Optional, Sequence, Tuple, Union


class TokenType(Enum):
    """Token categories produced by the tokenizer."""
    WORD = auto()  # Keywords, identifiers, numbers, date literals
    STRING = auto()  # 'quoted text'
    LPAREN = auto()
    RPAREN = auto()
    COMMA = auto()
    OPERATOR = auto()  # =, !=, <>, <, <=, >, >=


@dataclass
class Token:
    """A token with its position in the source text."""
    type: TokenType
    value: str
    start: int
    end: int


class QuerySyntaxError(ValueError):
    """Raised when a query cannot be parsed."""

    def __init__(self, message: str, position: int = 0):
        super().__init__(f"{message} (position {position})")
        self.position = position


# Clause keywords in the order they must appear
CLAUSE_ORDER = [
    "SELECT",
    "FROM",
    "USING SCOPE",
    "WHERE",
    "WITH",
    "GROUP BY",
    "HAVING",
    "ORDER BY",
    "LIMIT",
    "OFFSET",
    "FOR",
]

# First word -> second word of two-word clause keywords
_TWO_WORD_CLAUSES = {"GROUP": "BY", "ORDER": "BY", "USING": "SCOPE"}
_OPERATORS = ("<=", ">=", "!=", "<>", "=", "<", ">")
_WORD_RE = re.compile(r"[^\s(),'=<>!]+")
_IDENTIFIER_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")


def tokenize(text: str) -> List[Token]:
    """
    Split query text into tokens.

    Raises:
        QuerySyntaxError: On unterminated strings or unknown characters
    """
    tokens = []
    pos = 0
    length = len(text)

    while pos < length:
        char = text[pos]

        if char.isspace():
            pos += 1
            continue

        if char == "'":
            end = pos + 1
            while end < length and text[end] != "'":
                end += 2 if text[end] == "\\" else 1
            if end >= length:
                raise QuerySyntaxError("Unterminated string literal", pos)
            tokens.append(Token(TokenType.STRING, text[pos:end + 1], pos, end + 1))
            pos = end + 1
            continue

        if char in "(),":
            token_type = {
                "(": TokenType.LPAREN,
                ")": TokenType.RPAREN,
                ",": TokenType.COMMA,
            }[char]
            tokens.append(Token(token_type, char, pos, pos + 1))
            pos += 1
            continue

        operator = next((op for op in _OPERATORS if text.startswith(op, pos)), None)
        if operator:
            tokens.append(Token(TokenType.OPERATOR, operator, pos, pos + len(operator)))
            pos += len(operator)
            continue

        match = _WORD_RE.match(text, pos)
        if not match:
            raise QuerySyntaxError(f"Unexpected character '{char}'", pos)
        tokens.append(Token(TokenType.WORD, match.group(0), pos, match.end()))
        pos = match.end()

    return tokens


@dataclass
class Field:
    """A top-level entry of the SELECT list."""
    text: str

    @property
    def is_subquery(self) -> bool:
        return self.text.startswith("(")


@dataclass
class Condition:
    """A predicate added to a WHERE clause programmatically."""
    field: str
    operator: str
    values: List[Any]
    value_type: str = "STRING"

    def compose(self) -> str:
        literals = [format_value(v, self.value_type) for v in self.values]
        if self.operator.upper() in ("IN", "NOT IN", "INCLUDES", "EXCLUDES"):
            return f"{self.field} {self.operator} ({', '.join(literals)})"
        return f"{self.field} {self.operator} {literals[0]}"


@dataclass
class WhereClause:
    """Expressions joined with AND. Raw text expressions come from parsing."""
    expressions: List[Union[str, Condition]] = field(default_factory=list)

    def compose(self) -> str:
        if len(self.expressions) == 1:
            return _compose_expression(self.expressions[0], False)
        return " AND ".join(_compose_expression(e, True) for e in self.expressions)


def _compose_expression(expression: Union[str, Condition], grouped: bool) -> str:
    if isinstance(expression, Condition):
        return expression.compose()
    return f"({expression})" if grouped else expression


@dataclass
class Query:
    """Parsed SOQL query."""
    fields: List[Field]
    sobject: str
    alias: Optional[str] = None
    using_scope: Optional[str] = None
    where: Optional[WhereClause] = None
    with_clause: Optional[str] = None
    group_by: Optional[str] = None
    having: Optional[str] = None
    order_by: List[str] = field(default_factory=list)
    limit: Optional[int] = None
    offset: Optional[int] = None
    for_clause: Optional[str] = None


def format_value(value: Any, value_type: str = "STRING") -> str:
    """Format a value as a SOQL literal."""
    value_type = value_type.upper()
    if value_type == "STRING":
        escaped = str(value).replace("\\", "\\\\").replace("'", "\\'")
        return f"'{escaped}'"
    if value_type == "BOOLEAN":
        return str(value).lower()
    return str(value)


def _find_clauses(tokens: Sequence[Token]) -> List[Tuple[str, int, int]]:
    """Locate top-level clause keywords as (clause, keyword_start, body_start)."""
    clauses = []
    depth = 0
    index = 0

    while index < len(tokens):
        token = tokens[index]
        if token.type == TokenType.LPAREN:
            depth += 1
        elif token.type == TokenType.RPAREN:
            depth -= 1
            if depth < 0:
                raise QuerySyntaxError("Unbalanced parenthesis", token.start)
        elif depth == 0 and token.type == TokenType.WORD:
            word = token.value.upper()
            if word in _TWO_WORD_CLAUSES:
                second = _TWO_WORD_CLAUSES[word]
                following = tokens[index + 1] if index + 1 < len(tokens) else None
                if following and following.type == TokenType.WORD and following.value.upper() == second:
                    clauses.append((f"{word} {second}", index, index + 2))
                    index += 2
                    continue
            elif word in CLAUSE_ORDER:
                clauses.append((word, index, index + 1))
        index += 1

    if depth != 0:
        raise QuerySyntaxError("Unbalanced parenthesis", len(tokens) and tokens[-1].end)

    return clauses


def _split_top_level(tokens: Sequence[Token]) -> List[List[Token]]:
    """Split tokens on commas outside parentheses."""
    groups: List[List[Token]] = [[]]
    depth = 0
    for token in tokens:
        if token.type == TokenType.LPAREN:
            depth += 1
        elif token.type == TokenType.RPAREN:
            depth -= 1
        if token.type == TokenType.COMMA and depth == 0:
            groups.append([])
        else:
            groups[-1].append(token)
    return groups


def _slice(text: str, tokens: Sequence[Token]) -> str:
    return text[tokens[0].start:tokens[-1].end]


def _parse_int(clause: str, tokens: Sequence[Token]) -> int:
    if len(tokens) != 1 or not tokens[0].value.isdigit():
        position = tokens[0].start if tokens else 0
        raise QuerySyntaxError(f"{clause} expects a non-negative integer", position)
    return int(tokens[0].value)


def parse(text: str) -> Query:
    """
    Parse SOQL text into a Query.

    Args:
        text: Query text

    Returns:
        Parsed Query

    Raises:
        QuerySyntaxError: If the text is not a valid query
    """
    if not text or not text.strip():
        raise QuerySyntaxError("Query is empty", 0)

    tokens = tokenize(text)
    clauses = _find_clauses(tokens)

    if not clauses or clauses[0][0] != "SELECT" or clauses[0][1] != 0:
        raise QuerySyntaxError("Query must start with SELECT", tokens[0].start)
    if len(clauses) < 2 or clauses[1][0] != "FROM":
        raise QuerySyntaxError("Missing FROM clause", tokens[-1].end)

    # Clause bodies
    bodies = {}
    last_rank = -1
    for i, (clause, keyword_start, body_start) in enumerate(clauses):
        rank = CLAUSE_ORDER.index(clause)
        if rank <= last_rank:
            raise QuerySyntaxError(f"Unexpected {clause}", tokens[keyword_start].start)
        last_rank = rank
        body_end = clauses[i + 1][1] if i + 1 < len(clauses) else len(tokens)
        body = tokens[body_start:body_end]
        if not body:
            raise QuerySyntaxError(f"{clause} clause is empty", tokens[keyword_start].end)
        bodies[clause] = body

    # SELECT list
    fields = []
    for group in _split_top_level(bodies["SELECT"]):
        if not group:
            raise QuerySyntaxError("Empty field in SELECT list", bodies["SELECT"][0].start)
        field_text = _slice(text, group)
        if group[0].type == TokenType.LPAREN:
            # Child relationship sub-query
            if group[-1].type != TokenType.RPAREN:
                raise QuerySyntaxError("Invalid sub-query field", group[0].start)
            parse(text[group[0].end:group[-1].start])
        fields.append(Field(field_text))

    # FROM object
    from_tokens = bodies["FROM"]
    if len(from_tokens) > 2 or any(t.type != TokenType.WORD for t in from_tokens):
        raise QuerySyntaxError("Invalid FROM clause", from_tokens[0].start)
    sobject = from_tokens[0].value
    if not _IDENTIFIER_RE.match(sobject):
        raise QuerySyntaxError(f"Invalid object name '{sobject}'", from_tokens[0].start)
    alias = from_tokens[1].value if len(from_tokens) == 2 else None

    query = Query(fields=fields, sobject=sobject, alias=alias)

    if "USING SCOPE" in bodies:
        scope_tokens = bodies["USING SCOPE"]
        if len(scope_tokens) != 1 or scope_tokens[0].type != TokenType.WORD:
            raise QuerySyntaxError("USING SCOPE expects a single scope name", scope_tokens[0].start)
        query.using_scope = scope_tokens[0].value
    if "WHERE" in bodies:
        query.where = WhereClause([_slice(text, bodies["WHERE"])])
    if "WITH" in bodies:
        query.with_clause = _slice(text, bodies["WITH"])
    if "GROUP BY" in bodies:
        query.group_by = _slice(text, bodies["GROUP BY"])
    if "HAVING" in bodies:
        query.having = _slice(text, bodies["HAVING"])
    if "ORDER BY" in bodies:
        groups = _split_top_level(bodies["ORDER BY"])
        if any(not g for g in groups):
            raise QuerySyntaxError("Empty ORDER BY item", bodies["ORDER BY"][0].start)
        query.order_by = [_slice(text, g) for g in groups]
    if "LIMIT" in bodies:
        query.limit = _parse_int("LIMIT", bodies["LIMIT"])
    if "OFFSET" in bodies:
        query.offset = _parse_int("OFFSET", bodies["OFFSET"])
    if "FOR" in bodies:
        query.for_clause = _slice(text, bodies["FOR"])

    return query


def compose(query: Query) -> str:
    """Compose a Query back into SOQL text."""
    parts = [
        "SELECT " + ", ".join(f.text for f in query.fields),
        f"FROM {query.sobject}" + (f" {query.alias}" if query.alias else ""),
    ]
    if query.using_scope:
        parts.append(f"USING SCOPE {query.using_scope}")
    if query.where and query.where.expressions:
        parts.append(f"WHERE {query.where.compose()}")
    if query.with_clause:
        parts.append(f"WITH {query.with_clause}")
    if query.group_by:
        parts.append(f"GROUP BY {query.group_by}")
    if query.having:
        parts.append(f"HAVING {query.having}")
    if query.order_by:
        parts.append("ORDER BY " + ", ".join(query.order_by))
    if query.limit is not None:
        parts.append(f"LIMIT {query.limit}")
    if query.offset is not None:
        parts.append(f"OFFSET {query.offset}")
    if query.for_clause:
        parts.append(f"FOR {query.for_clause}")
    return " ".join(parts)
