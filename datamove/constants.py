"""Static values shared by the plan compiler."""

from enum import Enum


class Operation(str, Enum):
    """Operation applied to the records of a script object."""
    INSERT = "Insert"
    UPDATE = "Update"
    UPSERT = "Upsert"
    READONLY = "Readonly"
    DELETE = "Delete"


class MediaType(str, Enum):
    """Kind of data media behind an endpoint."""
    ORG = "org"  # Live service connection
    FILE = "file"  # Local CSV file set


# Script defaults
DEFAULT_POLLING_INTERVAL_MS = 5000
DEFAULT_BULK_API_THRESHOLD_RECORDS = 200
DEFAULT_BULK_API_VERSION = "2.0"
DEFAULT_BULK_API_V1_BATCH_SIZE = 9500
DEFAULT_API_VERSION = "47.0"
DEFAULT_EXTERNAL_ID = "Name"

# Endpoint name marking a local CSV file set instead of an org
CSV_FILE_ORG_NAME = "csvfile"

# Record identifier field present in every compiled query
ID_FIELD = "Id"
RECORD_TYPE_ID_FIELD = "RecordTypeId"

# Queries issued while setting up an org endpoint
ACCESS_CHECK_QUERY = "SELECT Id FROM Account LIMIT 1"
PERSON_ACCOUNT_CHECK_QUERY = "SELECT IsPersonAccount FROM Account LIMIT 1"

# Complex (composite) external id notation
COMPLEX_FIELDS_SEPARATOR = ";"
COMPLEX_FIELDS_QUERY_SEPARATOR = "$"
COMPLEX_FIELDS_QUERY_PREFIX = "$$"

# Objects dropped from the compiled plan
NOT_SUPPORTED_OBJECTS = [
    "Profile",
    "RecordType",
    "User",
    "Group",
    "DandBCompany",
]

# Objects needing bespoke handling by the transfer engine
SPECIAL_OBJECTS = [
    "Group",
    "User",
    "RecordType",
]

# Extra RecordType object injected for entities querying RecordTypeId
RECORD_TYPE_OBJECT = "RecordType"
RECORD_TYPE_QUERY = "SELECT Id, DeveloperName, SobjectType FROM RecordType"
RECORD_TYPE_EXTERNAL_ID = "DeveloperName"
RECORD_TYPE_SOBJECT_FIELD = "SobjectType"

# Person accounts are excluded from Contact delete queries
PERSON_ACCOUNT_CONTACT_OBJECT = "Contact"
PERSON_ACCOUNT_FIELD = "IsPersonAccount"
