"""Pydantic models for API requests and responses."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..constants import (
    DEFAULT_API_VERSION,
    DEFAULT_BULK_API_THRESHOLD_RECORDS,
    DEFAULT_BULK_API_V1_BATCH_SIZE,
    DEFAULT_BULK_API_VERSION,
    DEFAULT_EXTERNAL_ID,
    DEFAULT_POLLING_INTERVAL_MS,
)


class ScriptModel(BaseModel):
    """Base for script document models (camelCase keys in the document)."""
    model_config = ConfigDict(populate_by_name=True)


# Request Models
class ScriptOrgModel(ScriptModel):
    name: str
    instance_url: str = Field("", alias="instanceUrl")
    access_token: str = Field("", alias="accessToken")


class ScriptMockFieldModel(ScriptModel):
    name: str
    pattern: str = ""
    excluded_regex: str = Field("", alias="excludedRegex")
    included_regex: str = Field("", alias="includedRegex")


class ScriptObjectModel(ScriptModel):
    query: str
    name: str = ""
    delete_query: str = Field("", alias="deleteQuery")
    operation: str = "Readonly"
    external_id: str = Field(DEFAULT_EXTERNAL_ID, alias="externalId")
    delete_old_data: bool = Field(False, alias="deleteOldData")
    update_with_mock_data: bool = Field(False, alias="updateWithMockData")
    mock_csv_data: bool = Field(False, alias="mockCSVData")
    target_records_filter: str = Field("", alias="targetRecordsFilter")
    excluded: bool = False
    use_csv_values_mapping: bool = Field(False, alias="useCSVValuesMapping")
    all_records: bool = Field(True, alias="allRecords")
    mock_fields: List[ScriptMockFieldModel] = Field(default_factory=list, alias="mockFields")


class ScriptDocument(ScriptModel):
    orgs: List[ScriptOrgModel] = Field(default_factory=list)
    objects: List[ScriptObjectModel] = Field(default_factory=list)
    polling_interval_ms: int = Field(DEFAULT_POLLING_INTERVAL_MS, alias="pollingIntervalMs")
    bulk_threshold: int = Field(DEFAULT_BULK_API_THRESHOLD_RECORDS, alias="bulkThreshold")
    bulk_api_version: str = Field(DEFAULT_BULK_API_VERSION, alias="bulkApiVersion")
    bulk_api_v1_batch_size: int = Field(DEFAULT_BULK_API_V1_BATCH_SIZE, alias="bulkApiV1BatchSize")
    all_or_none: bool = Field(False, alias="allOrNone")
    prompt_on_update_error: bool = Field(True, alias="promptOnUpdateError")
    prompt_on_missing_parent_objects: bool = Field(True, alias="promptOnMissingParentObjects")
    validate_csv_files_only: bool = Field(False, alias="validateCSVFilesOnly")
    encrypt_data_files: bool = Field(False, alias="encryptDataFiles")
    api_version: str = Field(DEFAULT_API_VERSION, alias="apiVersion")
    create_target_csv_files: bool = Field(True, alias="createTargetCSVFiles")
    import_csv_files_as_is: bool = Field(False, alias="importCSVFilesAsIs")


class CompileRequest(BaseModel):
    script: ScriptDocument
    source_username: str
    target_username: str
    api_version: Optional[str] = None
    continue_on_error: bool = False
    describe: bool = False


# Response Models
class ObjectPlanResponse(BaseModel):
    name: str
    operation: str
    query: str
    delete_query: str = ""
    external_id: str
    fields: List[str] = Field(default_factory=list)
    fields_to_update: List[str] = Field(default_factory=list)
    all_records: bool = True
    is_extra_object: bool = False
    delete_old_data: bool = False
    is_limited_query: bool = False
    is_special_object: bool = False


class CompileErrorResponse(BaseModel):
    message: str
    error_type: str
    entity_name: Optional[str] = None
    text: Optional[str] = None
    endpoint_name: Optional[str] = None


class EndpointResponse(BaseModel):
    name: str
    media: str
    is_person_account_enabled: bool = False


class CompiledPlanResponse(BaseModel):
    source: EndpointResponse
    target: EndpointResponse
    objects: List[ObjectPlanResponse] = Field(default_factory=list)
    errors: List[CompileErrorResponse] = Field(default_factory=list)
    total: int = 0
