"""Structural operations over parsed SOQL queries."""

from typing import Any, List, Optional, Sequence, Union

from . import soql
from ..errors import MalformedQueryError


class QueryModel:
    """
    A parsed query with the rewriting operations used by object plans.

    Wraps the AST returned by the SOQL parser. Every rewriting operation
    mutates the AST in place; call compose() (or read .text) to get the
    resulting query string.
    """

    def __init__(self, ast: soql.Query):
        self.ast = ast

    @classmethod
    def parse(cls, text: str, entity_name: str = "") -> "QueryModel":
        """
        Parse query text.

        Args:
            text: SOQL query text
            entity_name: Object the query belongs to (for diagnostics)

        Returns:
            QueryModel wrapping the parsed query

        Raises:
            MalformedQueryError: If the text is not a valid query
        """
        try:
            return cls(soql.parse(text))
        except soql.QuerySyntaxError as e:
            raise MalformedQueryError(entity_name, text, e) from e

    def compose(self) -> str:
        """Compose the query back to text."""
        return soql.compose(self.ast)

    @property
    def text(self) -> str:
        return self.compose()

    @property
    def entity(self) -> str:
        """Object named in the FROM clause."""
        return self.ast.sobject

    @property
    def limit(self) -> Optional[int]:
        return self.ast.limit

    @property
    def offset(self) -> Optional[int]:
        return self.ast.offset

    @property
    def using_scope(self) -> Optional[str]:
        return self.ast.using_scope

    @property
    def where(self) -> Optional[str]:
        if not self.ast.where or not self.ast.where.expressions:
            return None
        return self.ast.where.compose()

    @property
    def order_by(self) -> List[str]:
        return list(self.ast.order_by)

    @property
    def is_limited(self) -> bool:
        """True when the query caps rows or filters them."""
        return bool(self.ast.limit) or self.where is not None

    def field_names(self) -> List[str]:
        """Top-level fields in order, duplicates collapsed (first spelling wins)."""
        names = []
        seen = set()
        for f in self.ast.fields:
            key = f.text.lower()
            if key not in seen:
                seen.add(key)
                names.append(f.text)
        return names

    def has_field(self, name: str) -> bool:
        """True when the query selects the field (field names are case-insensitive)."""
        return name.lower() in {f.text.lower() for f in self.ast.fields}

    def distinct_fields(self) -> "QueryModel":
        """Remove duplicate fields from the SELECT list in place."""
        self.ast.fields = [soql.Field(name) for name in self.field_names()]
        return self

    def ensure_field(self, name: str) -> "QueryModel":
        """Append a field if the query does not select it yet."""
        if not self.has_field(name):
            self.ast.fields.append(soql.Field(name))
        return self

    def replace_fields_with(self, names: Sequence[str]) -> "QueryModel":
        """Replace the whole SELECT list."""
        self.ast.fields = [soql.Field(name) for name in names]
        return self

    def and_predicate(
        self,
        field: str,
        values: Union[Any, Sequence[Any]],
        operator: Optional[str] = None,
        value_type: str = "STRING"
    ) -> "QueryModel":
        """
        Conjoin a condition onto the WHERE clause, creating it if absent.

        Args:
            field: Field the condition applies to
            values: A single value or a list of values
            operator: Comparison operator (IN for lists, = otherwise)
            value_type: STRING, BOOLEAN, NUMBER or LITERAL

        Returns:
            self
        """
        if isinstance(values, (list, tuple, set)):
            value_list = list(values)
            operator = operator or "IN"
        else:
            value_list = [values]
            operator = operator or "="

        condition = soql.Condition(
            field=field,
            operator=operator,
            values=value_list,
            value_type=value_type,
        )
        if self.ast.where is None:
            self.ast.where = soql.WhereClause()
        self.ast.where.expressions.append(condition)
        return self

    def set_order_by(self, field: str, direction: str = "ASC") -> "QueryModel":
        """Replace the ORDER BY clause with a single field."""
        self.ast.order_by = [f"{field} {direction.upper()}"]
        return self

    def __repr__(self) -> str:
        return f"QueryModel({self.compose()!r})"
