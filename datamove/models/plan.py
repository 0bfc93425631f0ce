"""Compiled per-object plans."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from ..constants import (
    COMPLEX_FIELDS_QUERY_PREFIX,
    COMPLEX_FIELDS_QUERY_SEPARATOR,
    COMPLEX_FIELDS_SEPARATOR,
    ID_FIELD,
    PERSON_ACCOUNT_CONTACT_OBJECT,
    PERSON_ACCOUNT_FIELD,
    RECORD_TYPE_ID_FIELD,
    SPECIAL_OBJECTS,
    Operation,
)
from ..errors import CommandInitializationError, MalformedDeleteQueryError, MalformedQueryError
from ..query import QueryModel
from .schema import EntityDescriptor, FieldDescriptor
from .script import ScriptMockField, ScriptObject

if TYPE_CHECKING:
    from .script import MigrationScript


@dataclass
class ObjectPlan:
    """
    Execution-ready description of how one object is queried and written.

    Created by ObjectPlan.compile() from a script object entry. The transfer
    engine treats a compiled plan as read-only; only the describe maps are
    filled in afterwards by the schema description step.
    """
    name: str
    query: str
    parsed_query: QueryModel
    operation: Operation
    external_id: str
    initial_external_id: str = ""
    delete_query: str = ""
    parsed_delete_query: Optional[QueryModel] = None

    # Flags
    excluded: bool = False
    all_records: bool = True
    is_extra_object: bool = False
    delete_old_data: bool = False
    use_csv_values_mapping: bool = False
    update_with_mock_data: bool = False
    mock_csv_data: bool = False
    target_records_filter: str = ""
    mock_fields: List[ScriptMockField] = field(default_factory=list)

    # Schema of the object on both endpoints
    source_describe: Optional[EntityDescriptor] = None
    target_describe: Optional[EntityDescriptor] = None
    source_fields_map: Dict[str, FieldDescriptor] = field(default_factory=dict)
    target_fields_map: Dict[str, FieldDescriptor] = field(default_factory=dict)

    script: Optional["MigrationScript"] = field(default=None, repr=False, compare=False)

    @classmethod
    def compile(
        cls,
        entry: ScriptObject,
        script: "MigrationScript",
        is_extra_object: bool = False
    ) -> "ObjectPlan":
        """
        Compile a script object entry.

        Args:
            entry: Object entry from the script
            script: Owning script (its source org must already be set up)
            is_extra_object: True for objects added by the compiler

        Returns:
            Compiled ObjectPlan

        Raises:
            MalformedQueryError: If the query cannot be parsed
            MalformedDeleteQueryError: If the delete query cannot be parsed
        """
        # Insert always matches records by Id
        external_id = ID_FIELD if entry.operation == Operation.INSERT else entry.external_id

        parsed_query = QueryModel.parse(entry.query, entry.label)
        parsed_query.distinct_fields()

        delete_old_data = entry.delete_old_data
        if entry.operation == Operation.DELETE:
            delete_old_data = True
            parsed_query.replace_fields_with([ID_FIELD])
        else:
            parsed_query.ensure_field(ID_FIELD)

        query = parsed_query.compose()
        name = parsed_query.entity

        delete_query = ""
        parsed_delete_query = None
        if delete_old_data:
            delete_query, parsed_delete_query = _compile_delete_query(
                name, entry.delete_query or query, script
            )

        return cls(
            name=name,
            query=query,
            parsed_query=parsed_query,
            operation=entry.operation,
            external_id=external_id,
            initial_external_id=entry.external_id,
            delete_query=delete_query,
            parsed_delete_query=parsed_delete_query,
            excluded=entry.excluded,
            all_records=entry.all_records,
            is_extra_object=is_extra_object,
            delete_old_data=delete_old_data,
            use_csv_values_mapping=entry.use_csv_values_mapping,
            update_with_mock_data=entry.update_with_mock_data,
            mock_csv_data=entry.mock_csv_data,
            target_records_filter=entry.target_records_filter,
            mock_fields=list(entry.mock_fields),
            script=script,
        )

    @property
    def fields_in_query(self) -> List[str]:
        return self.parsed_query.field_names()

    @property
    def fields_to_update(self) -> List[str]:
        """Queried fields that are writable on both endpoints."""
        if (self.operation == Operation.READONLY
                or not self.source_fields_map
                or not self.target_fields_map):
            return []

        result = []
        for name in self.fields_in_query:
            source = self.source_fields_map.get(name)
            target = self.target_fields_map.get(name)
            if source and target and not source.is_readonly and not target.is_readonly:
                result.append(name)
        return result

    @property
    def has_record_type_id_field(self) -> bool:
        return self.parsed_query.has_field(RECORD_TYPE_ID_FIELD)

    @property
    def str_operation(self) -> str:
        return self.operation.value

    @property
    def is_limited_query(self) -> bool:
        return self.parsed_query.is_limited

    @property
    def is_special_object(self) -> bool:
        return self.name in SPECIAL_OBJECTS

    @property
    def is_complex_external_id(self) -> bool:
        return ("." in self.external_id
                or COMPLEX_FIELDS_SEPARATOR in self.external_id
                or self.external_id.startswith(COMPLEX_FIELDS_QUERY_PREFIX))

    @property
    def complex_external_id(self) -> str:
        """External id in the query notation used for composite keys."""
        return COMPLEX_FIELDS_QUERY_PREFIX + self.external_id.replace(
            COMPLEX_FIELDS_SEPARATOR, COMPLEX_FIELDS_QUERY_SEPARATOR
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "operation": self.str_operation,
            "query": self.query,
            "delete_query": self.delete_query,
            "external_id": self.external_id,
            "initial_external_id": self.initial_external_id,
            "fields": self.fields_in_query,
            "fields_to_update": self.fields_to_update,
            "excluded": self.excluded,
            "all_records": self.all_records,
            "is_extra_object": self.is_extra_object,
            "delete_old_data": self.delete_old_data,
            "use_csv_values_mapping": self.use_csv_values_mapping,
            "update_with_mock_data": self.update_with_mock_data,
            "is_limited_query": self.is_limited_query,
            "is_special_object": self.is_special_object,
        }


def _compile_delete_query(
    name: str,
    text: str,
    script: Optional["MigrationScript"]
) -> Tuple[str, QueryModel]:
    try:
        parsed = QueryModel.parse(text, name)
    except MalformedQueryError as e:
        raise MalformedDeleteQueryError(name, text, e.cause) from e

    parsed.replace_fields_with([ID_FIELD])

    source_org = script.source_org if script else None
    if (source_org and source_org.is_person_account_enabled
            and name == PERSON_ACCOUNT_CONTACT_OBJECT):
        parsed.and_predicate(PERSON_ACCOUNT_FIELD, "false", "=", "BOOLEAN")

    return parsed.compose(), parsed


@dataclass
class CompileOutcome:
    """Result of compiling one script object: a plan or the error it hit."""
    entry: ScriptObject
    plan: Optional[ObjectPlan] = None
    error: Optional[CommandInitializationError] = None

    @property
    def ok(self) -> bool:
        return self.plan is not None


def compile_object(
    entry: ScriptObject,
    script: "MigrationScript",
    is_extra_object: bool = False
) -> CompileOutcome:
    """Compile a script object without raising; failures land in the outcome."""
    try:
        plan = ObjectPlan.compile(entry, script, is_extra_object)
    except CommandInitializationError as e:
        return CompileOutcome(entry=entry, error=e)
    return CompileOutcome(entry=entry, plan=plan)
