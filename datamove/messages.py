"""User-facing message resources."""

import os
from enum import Enum
from typing import Dict, Optional


class Resource(str, Enum):
    """Keys of the message resource table."""
    NO_OBJECTS_DEFINED = "noObjectsDefinedInPackageFile"
    OBJECT_WILL_BE_EXCLUDED = "objectWillBeExcluded"
    MALFORMED_QUERY = "malformedQuery"
    MALFORMED_DELETE_QUERY = "malformedDeleteQuery"
    INVALID_OPERATION = "invalidOperation"
    TRYING_TO_CONNECT_CLI = "tryingToConnectCLI"
    TRYING_TO_CONNECT_CLI_FAILED = "tryingToConnectCLIFailed"
    ACCESS_TO_ORG_EXPIRED = "accessToOrgExpired"
    SUCCESSFULLY_CONNECTED = "successfullyConnected"
    PERSON_ACCOUNT_UNAVAILABLE = "personAccountUnavailable"
    GETTING_ORG_METADATA = "gettingOrgMetadata"
    OBJECT_DESCRIBE_FAILED = "objectDescribeFailed"
    DUPLICATE_OBJECT = "duplicateObject"
    OBJECT_NOT_SUPPORTED = "objectNotSupported"
    OBJECT_SKIPPED = "objectSkipped"
    EXTRA_OBJECT_ADDED = "extraObjectAdded"


MESSAGES: Dict[str, Dict[Resource, str]] = {
    "en": {
        Resource.NO_OBJECTS_DEFINED: "There are no objects defined in the script to process.",
        Resource.OBJECT_WILL_BE_EXCLUDED: "{0} will be excluded from the process.",
        Resource.MALFORMED_QUERY: "Malformed query string of the object {0}: {1}. Error: {2}.",
        Resource.MALFORMED_DELETE_QUERY: "Malformed delete query string of the object {0}: {1}. Error: {2}.",
        Resource.INVALID_OPERATION: "Invalid operation '{1}' of the object {0}.",
        Resource.TRYING_TO_CONNECT_CLI: "Trying to connect to {0} using the CLI.",
        Resource.TRYING_TO_CONNECT_CLI_FAILED: "Unable to connect to {0} using the CLI.",
        Resource.ACCESS_TO_ORG_EXPIRED: "Access to {0} has expired. Please reconnect.",
        Resource.SUCCESSFULLY_CONNECTED: "Successfully connected to {0}.",
        Resource.PERSON_ACCOUNT_UNAVAILABLE: "Person accounts are not enabled in {0}.",
        Resource.GETTING_ORG_METADATA: "Getting org metadata...",
        Resource.OBJECT_DESCRIBE_FAILED: "Unable to describe the object {0} in {1}. Error: {2}.",
        Resource.DUPLICATE_OBJECT: "The object {0} is defined more than once. The last definition is used.",
        Resource.OBJECT_NOT_SUPPORTED: "The object {0} is not supported and will be removed from the process.",
        Resource.OBJECT_SKIPPED: "The object {0} was skipped: {1}",
        Resource.EXTRA_OBJECT_ADDED: "The object {0} was added to the process for {1}.",
    },
}

DEFAULT_LOCALE = "en"


def get_locale() -> str:
    """Get the active locale, falling back to the default table."""
    locale = os.environ.get("DATAMOVE_LOCALE", DEFAULT_LOCALE)
    return locale if locale in MESSAGES else DEFAULT_LOCALE


def get_resource_string(resource: Resource, *args, locale: Optional[str] = None) -> str:
    """
    Render a message from the resource table.

    Args:
        resource: Message key
        *args: Positional values substituted into the message
        locale: Locale override (defaults to DATAMOVE_LOCALE)

    Returns:
        Formatted message text
    """
    table = MESSAGES.get(locale or get_locale(), MESSAGES[DEFAULT_LOCALE])
    template = table.get(resource) or MESSAGES[DEFAULT_LOCALE][resource]
    return template.format(*args)
