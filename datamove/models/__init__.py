"""Data models for the plan compiler."""

from .schema import (
    FieldDescriptor,
    EntityDescriptor,
    parse_describe,
)
from .endpoint import (
    EndpointDescriptor,
    OrgInfo,
)
from .script import (
    MigrationScript,
    ScriptObject,
    ScriptMockField,
    decode_operation,
)
from .plan import (
    ObjectPlan,
    CompileOutcome,
    compile_object,
)

__all__ = [
    "FieldDescriptor",
    "EntityDescriptor",
    "parse_describe",
    "EndpointDescriptor",
    "OrgInfo",
    "MigrationScript",
    "ScriptObject",
    "ScriptMockField",
    "decode_operation",
    "ObjectPlan",
    "CompileOutcome",
    "compile_object",
]
