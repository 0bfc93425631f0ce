"""Errors raised while compiling a migration script."""

from typing import Any, Dict, Optional

from .messages import Resource, get_resource_string


class CommandInitializationError(Exception):
    """
    Base error for every compile-time failure.

    Carries the rendered message plus the structured context a caller
    needs to report the failure without re-deriving it.
    """

    def __init__(
        self,
        message: str,
        entity_name: Optional[str] = None,
        text: Optional[str] = None,
        endpoint_name: Optional[str] = None,
        cause: Optional[BaseException] = None
    ):
        super().__init__(message)
        self.message = message
        self.entity_name = entity_name
        self.text = text
        self.endpoint_name = endpoint_name
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "message": self.message,
            "error_type": type(self).__name__,
            "entity_name": self.entity_name,
            "text": self.text,
            "endpoint_name": self.endpoint_name,
        }


class NoObjectsDefinedError(CommandInitializationError):
    """No objects are left to process after exclusion filtering."""

    def __init__(self):
        super().__init__(get_resource_string(Resource.NO_OBJECTS_DEFINED))


class MalformedQueryError(CommandInitializationError):
    """The primary query of an object cannot be parsed."""

    resource = Resource.MALFORMED_QUERY

    def __init__(self, entity_name: str, text: str, cause: Optional[BaseException] = None):
        super().__init__(
            get_resource_string(self.resource, entity_name, text, cause),
            entity_name=entity_name,
            text=text,
            cause=cause,
        )


class MalformedDeleteQueryError(MalformedQueryError):
    """The delete query of an object cannot be parsed."""

    resource = Resource.MALFORMED_DELETE_QUERY


class InvalidOperationError(CommandInitializationError):
    """An object declares an operation name that does not exist."""

    def __init__(self, entity_name: str, text: str):
        super().__init__(
            get_resource_string(Resource.INVALID_OPERATION, entity_name, text),
            entity_name=entity_name,
            text=text,
        )


class EndpointAuthenticationError(CommandInitializationError):
    """An endpoint could not be authenticated."""

    resource = Resource.TRYING_TO_CONNECT_CLI_FAILED

    def __init__(self, endpoint_name: str, cause: Optional[BaseException] = None):
        super().__init__(
            get_resource_string(self.resource, endpoint_name),
            endpoint_name=endpoint_name,
            cause=cause,
        )


class EndpointNotConnectedError(EndpointAuthenticationError):
    """The credential collaborator returned no connected session."""


class EndpointAccessExpiredError(EndpointAuthenticationError):
    """The access token was rejected by the live service."""

    resource = Resource.ACCESS_TO_ORG_EXPIRED


class ObjectDescribeError(CommandInitializationError):
    """Describing an object on an endpoint failed."""

    def __init__(self, entity_name: str, endpoint_name: str, cause: Optional[BaseException] = None):
        super().__init__(
            get_resource_string(Resource.OBJECT_DESCRIBE_FAILED, entity_name, endpoint_name, cause),
            entity_name=entity_name,
            endpoint_name=endpoint_name,
            cause=cause,
        )


class QueryExecutionError(Exception):
    """A query or describe call against a live endpoint failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
