"""Migration script models, parsed from the script document."""

import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Union

from ..constants import (
    DEFAULT_API_VERSION,
    DEFAULT_BULK_API_THRESHOLD_RECORDS,
    DEFAULT_BULK_API_V1_BATCH_SIZE,
    DEFAULT_BULK_API_VERSION,
    DEFAULT_EXTERNAL_ID,
    DEFAULT_POLLING_INTERVAL_MS,
    Operation,
)
from ..errors import CommandInitializationError, InvalidOperationError
from .endpoint import EndpointDescriptor

if TYPE_CHECKING:
    from .plan import ObjectPlan


def decode_operation(value: Union[str, Operation, None], entity_name: str = "") -> Operation:
    """
    Decode an operation name from the script document.

    Names are matched case-insensitively. Missing values mean Readonly.

    Raises:
        InvalidOperationError: If the name is unknown
    """
    if isinstance(value, Operation):
        return value
    if value is None or value == "":
        return Operation.READONLY
    for operation in Operation:
        if str(value).strip().lower() == operation.value.lower():
            return operation
    raise InvalidOperationError(entity_name, str(value))


@dataclass
class ScriptMockField:
    """Mock data rule for a field of a script object."""
    name: str = ""
    pattern: str = ""
    excluded_regex: str = ""
    included_regex: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "pattern": self.pattern,
            "excludedRegex": self.excluded_regex,
            "includedRegex": self.included_regex,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScriptMockField":
        """Create from dictionary representation."""
        return cls(
            name=data.get("name", ""),
            pattern=data.get("pattern", ""),
            excluded_regex=data.get("excludedRegex", ""),
            included_regex=data.get("includedRegex", ""),
        )


@dataclass
class ScriptObject:
    """An object entry of the script, before compilation."""
    query: str = ""
    delete_query: str = ""
    operation: Operation = Operation.READONLY
    external_id: str = DEFAULT_EXTERNAL_ID
    delete_old_data: bool = False
    update_with_mock_data: bool = False
    mock_csv_data: bool = False
    target_records_filter: str = ""
    excluded: bool = False
    use_csv_values_mapping: bool = False
    all_records: bool = True
    mock_fields: List[ScriptMockField] = field(default_factory=list)
    name: str = ""  # Optional label; the query decides the real object name

    @property
    def label(self) -> str:
        """Name used in messages before the query is parsed."""
        return self.name or self.query

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        result = {
            "query": self.query,
            "deleteQuery": self.delete_query,
            "operation": self.operation.value,
            "externalId": self.external_id,
            "deleteOldData": self.delete_old_data,
            "updateWithMockData": self.update_with_mock_data,
            "mockCSVData": self.mock_csv_data,
            "targetRecordsFilter": self.target_records_filter,
            "excluded": self.excluded,
            "useCSVValuesMapping": self.use_csv_values_mapping,
            "allRecords": self.all_records,
            "mockFields": [m.to_dict() for m in self.mock_fields],
        }
        if self.name:
            result["name"] = self.name
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScriptObject":
        """Create from dictionary representation."""
        name = data.get("name") or ""
        return cls(
            query=data.get("query") or "",
            delete_query=data.get("deleteQuery") or "",
            operation=decode_operation(data.get("operation"), name or data.get("query") or ""),
            external_id=data.get("externalId") or DEFAULT_EXTERNAL_ID,
            delete_old_data=data.get("deleteOldData", False),
            update_with_mock_data=data.get("updateWithMockData", False),
            mock_csv_data=data.get("mockCSVData", False),
            target_records_filter=data.get("targetRecordsFilter") or "",
            excluded=data.get("excluded", False),
            use_csv_values_mapping=data.get("useCSVValuesMapping", False),
            all_records=data.get("allRecords", True),
            mock_fields=[ScriptMockField.from_dict(m) for m in data.get("mockFields") or []],
            name=name,
        )


@dataclass
class MigrationScript:
    """
    The migration script.

    Holds the raw org and object entries read from the script document and,
    once compiled, the resolved endpoints and the ordered object plans.
    """
    orgs: List[EndpointDescriptor] = field(default_factory=list)
    objects: List[ScriptObject] = field(default_factory=list)

    # Options
    polling_interval_ms: int = DEFAULT_POLLING_INTERVAL_MS
    bulk_threshold: int = DEFAULT_BULK_API_THRESHOLD_RECORDS
    bulk_api_version: str = DEFAULT_BULK_API_VERSION
    bulk_api_v1_batch_size: int = DEFAULT_BULK_API_V1_BATCH_SIZE
    all_or_none: bool = False
    prompt_on_update_error: bool = True
    prompt_on_missing_parent_objects: bool = True
    validate_csv_files_only: bool = False
    encrypt_data_files: bool = False
    api_version: str = DEFAULT_API_VERSION
    create_target_csv_files: bool = True
    import_csv_files_as_is: bool = False

    # Runtime state
    source_org: Optional[EndpointDescriptor] = field(default=None, repr=False)
    target_org: Optional[EndpointDescriptor] = field(default=None, repr=False)
    base_path: str = ""
    errors: List[CommandInitializationError] = field(default_factory=list, repr=False)
    _objects_map: Dict[str, "ObjectPlan"] = field(default_factory=dict, init=False, repr=False)

    @property
    def objects_map(self) -> Mapping[str, "ObjectPlan"]:
        """Compiled plans by object name, in processing order (read-only)."""
        return MappingProxyType(self._objects_map)

    @property
    def plans(self) -> List["ObjectPlan"]:
        return list(self._objects_map.values())

    def get_plan(self, name: str) -> Optional["ObjectPlan"]:
        """Get a compiled plan by object name."""
        return self._objects_map.get(name)

    def set_plans(self, plans: Dict[str, "ObjectPlan"]) -> None:
        """Replace the compiled plan map."""
        self._objects_map = dict(plans)

    def get_org(self, name: str) -> Optional[EndpointDescriptor]:
        """Get a raw org entry by name."""
        for org in self.orgs:
            if org.name == name:
                return org
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "orgs": [o.to_dict() for o in self.orgs],
            "objects": [o.to_dict() for o in self.objects],
            "pollingIntervalMs": self.polling_interval_ms,
            "bulkThreshold": self.bulk_threshold,
            "bulkApiVersion": self.bulk_api_version,
            "bulkApiV1BatchSize": self.bulk_api_v1_batch_size,
            "allOrNone": self.all_or_none,
            "promptOnUpdateError": self.prompt_on_update_error,
            "promptOnMissingParentObjects": self.prompt_on_missing_parent_objects,
            "validateCSVFilesOnly": self.validate_csv_files_only,
            "encryptDataFiles": self.encrypt_data_files,
            "apiVersion": self.api_version,
            "createTargetCSVFiles": self.create_target_csv_files,
            "importCSVFilesAsIs": self.import_csv_files_as_is,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MigrationScript":
        """Create from dictionary representation."""
        return cls(
            orgs=[EndpointDescriptor.from_dict(o) for o in data.get("orgs") or []],
            objects=[ScriptObject.from_dict(o) for o in data.get("objects") or []],
            polling_interval_ms=data.get("pollingIntervalMs", DEFAULT_POLLING_INTERVAL_MS),
            bulk_threshold=data.get("bulkThreshold", DEFAULT_BULK_API_THRESHOLD_RECORDS),
            bulk_api_version=data.get("bulkApiVersion") or DEFAULT_BULK_API_VERSION,
            bulk_api_v1_batch_size=data.get("bulkApiV1BatchSize", DEFAULT_BULK_API_V1_BATCH_SIZE),
            all_or_none=data.get("allOrNone", False),
            prompt_on_update_error=data.get("promptOnUpdateError", True),
            prompt_on_missing_parent_objects=data.get("promptOnMissingParentObjects", True),
            validate_csv_files_only=data.get("validateCSVFilesOnly", False),
            encrypt_data_files=data.get("encryptDataFiles", False),
            api_version=data.get("apiVersion") or DEFAULT_API_VERSION,
            create_target_csv_files=data.get("createTargetCSVFiles", True),
            import_csv_files_as_is=data.get("importCSVFilesAsIs", False),
        )

    @classmethod
    def from_json_file(cls, file_path: str) -> "MigrationScript":
        """Load a script from a JSON file."""
        with open(file_path, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)
