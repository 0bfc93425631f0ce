"""Collaborator interfaces used while compiling a script."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Tuple

from ..models.endpoint import EndpointDescriptor, OrgInfo
from ..models.schema import EntityDescriptor, FieldDescriptor


class BaseCredentialProvider(ABC):
    """
    Base class for credential providers.

    Credential providers look up an access token and instance URL for
    an endpoint that was not given one in the script.
    """

    @abstractmethod
    def display_connection(self, endpoint_name: str) -> OrgInfo:
        """
        Get connection details for an endpoint.

        Args:
            endpoint_name: Org alias or username

        Returns:
            OrgInfo; is_connected is False when no session is available
        """
        pass


class BaseQueryClient(ABC):
    """
    Base class for clients executing queries against a live endpoint.

    Implementations raise QueryExecutionError when a call fails.
    """

    def __init__(self, endpoint: EndpointDescriptor):
        """
        Initialize the client.

        Args:
            endpoint: Connected endpoint the client talks to
        """
        self.endpoint = endpoint

    @abstractmethod
    async def query(self, soql: str, use_bulk_api: bool = False) -> List[Dict[str, Any]]:
        """
        Run a query.

        Args:
            soql: Query text
            use_bulk_api: Route the query through the bulk transport

        Returns:
            Records returned by the endpoint
        """
        pass

    @abstractmethod
    async def describe(self, entity_name: str) -> Tuple[EntityDescriptor, Dict[str, FieldDescriptor]]:
        """
        Describe an object.

        Args:
            entity_name: Object API name

        Returns:
            Tuple of (EntityDescriptor, field name -> FieldDescriptor)
        """
        pass
