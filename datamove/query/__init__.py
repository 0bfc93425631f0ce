"""SOQL parsing and rewriting."""

from .soql import Condition, Field, Query, QuerySyntaxError, WhereClause, compose, parse
from .model import QueryModel

__all__ = [
    "Condition",
    "Field",
    "Query",
    "QuerySyntaxError",
    "WhereClause",
    "compose",
    "parse",
    "QueryModel",
]
