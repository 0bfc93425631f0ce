"""Endpoint (org or CSV file set) models."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from ..constants import (
    ACCESS_CHECK_QUERY,
    CSV_FILE_ORG_NAME,
    DEFAULT_API_VERSION,
    PERSON_ACCOUNT_CHECK_QUERY,
    MediaType,
)
from ..errors import EndpointAccessExpiredError, EndpointNotConnectedError, QueryExecutionError
from ..messages import Resource, get_resource_string

if TYPE_CHECKING:
    from ..services.base import BaseCredentialProvider, BaseQueryClient
    from .script import MigrationScript

logger = logging.getLogger(__name__)


@dataclass
class OrgInfo:
    """Connection details reported by the credential collaborator."""
    access_token: str = ""
    client_id: str = ""
    connected_status: str = ""
    status: str = ""
    org_id: str = ""
    instance_url: str = ""
    username: str = ""

    @property
    def is_connected(self) -> bool:
        return self.connected_status == "Connected" or self.status == "Active"


@dataclass
class EndpointDescriptor:
    """
    One side of a migration: a live org or a local CSV file set.

    Built from the script document, then given its role with for_role().
    setup() is the only method that mutates a descriptor after that.
    """
    name: str = ""
    instance_url: str = ""
    access_token: str = ""

    # Runtime state
    script: Optional["MigrationScript"] = field(default=None, repr=False, compare=False)
    is_source: bool = False
    media: MediaType = MediaType.ORG
    is_person_account_enabled: bool = False

    @property
    def is_connected(self) -> bool:
        return bool(self.access_token)

    @property
    def is_file_media(self) -> bool:
        return self.media == MediaType.FILE

    @property
    def api_version(self) -> str:
        return self.script.api_version if self.script else DEFAULT_API_VERSION

    @classmethod
    def for_role(
        cls,
        raw: Optional["EndpointDescriptor"],
        name: str,
        script: "MigrationScript",
        is_source: bool
    ) -> "EndpointDescriptor":
        """
        Build the descriptor used by a compiled script.

        Args:
            raw: Org entry from the script document, if any
            name: Endpoint name given to the compiler
            script: Owning script
            is_source: True for the source endpoint

        Returns:
            New fully initialized descriptor
        """
        raw = raw or cls()
        media = MediaType.FILE if name.lower() == CSV_FILE_ORG_NAME else MediaType.ORG
        return cls(
            name=name,
            instance_url=raw.instance_url,
            access_token=raw.access_token,
            script=script,
            is_source=is_source,
            media=media,
        )

    async def setup(
        self,
        credentials: "BaseCredentialProvider",
        api_factory: Callable[["EndpointDescriptor"], "BaseQueryClient"]
    ) -> None:
        """
        Connect to the endpoint and check its capabilities.

        Args:
            credentials: Provider of access tokens for unconnected orgs
            api_factory: Builds a query client bound to this endpoint

        Raises:
            EndpointNotConnectedError: If no access token could be obtained
            EndpointAccessExpiredError: If the live org rejects the token
        """
        if self.is_file_media:
            return

        if not self.is_connected:
            logger.info(get_resource_string(Resource.TRYING_TO_CONNECT_CLI, self.name))
            loop = asyncio.get_running_loop()
            org_info = await loop.run_in_executor(None, credentials.display_connection, self.name)
            if not org_info or not org_info.is_connected or not org_info.access_token:
                raise EndpointNotConnectedError(self.name)
            self.access_token = org_info.access_token
            self.instance_url = org_info.instance_url

        await self._validate_access_token(api_factory(self))
        logger.info(get_resource_string(Resource.SUCCESSFULLY_CONNECTED, self.name))

    async def _validate_access_token(self, client: "BaseQueryClient") -> None:
        try:
            await client.query(ACCESS_CHECK_QUERY, False)
        except QueryExecutionError as e:
            raise EndpointAccessExpiredError(self.name, e) from e

        # Person accounts are optional; a failed check only clears the flag
        try:
            await client.query(PERSON_ACCOUNT_CHECK_QUERY, False)
            self.is_person_account_enabled = True
        except QueryExecutionError as e:
            self.is_person_account_enabled = False
            logger.debug(f"{get_resource_string(Resource.PERSON_ACCOUNT_UNAVAILABLE, self.name)} ({e})")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "instanceUrl": self.instance_url,
            "accessToken": self.access_token,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EndpointDescriptor":
        """Create from dictionary representation."""
        return cls(
            name=data.get("name", ""),
            instance_url=data.get("instanceUrl", ""),
            access_token=data.get("accessToken", ""),
        )
