"""Salesforce REST client used for endpoint checks and object describes."""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..errors import QueryExecutionError
from ..models.endpoint import EndpointDescriptor
from ..models.schema import EntityDescriptor, FieldDescriptor, parse_describe
from .base import BaseQueryClient

logger = logging.getLogger(__name__)


class SalesforceApi(BaseQueryClient):
    """
    Query client for the Salesforce REST API.

    Supports:
    - SOQL queries with automatic paging (nextRecordsUrl)
    - Object describes
    - Retry on throttling and server errors
    """

    def __init__(
        self,
        endpoint: EndpointDescriptor,
        session: Optional[requests.Session] = None,
        retry_config: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize the client.

        Args:
            endpoint: Connected endpoint
            session: Custom requests session
            retry_config: max_retries and backoff_factor overrides
        """
        super().__init__(endpoint)
        self.retry_config = retry_config or {
            "max_retries": 3,
            "backoff_factor": 2.0,
        }
        self._session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        """Create a requests session with retry logic."""
        session = requests.Session()

        retries = Retry(
            total=self.retry_config.get("max_retries", 3),
            backoff_factor=self.retry_config.get("backoff_factor", 2.0),
            status_forcelist=[429, 500, 502, 503, 504],
        )

        adapter = HTTPAdapter(max_retries=retries)
        session.mount("https://", adapter)
        session.mount("http://", adapter)

        return session

    @property
    def instance_url(self) -> str:
        return self.endpoint.instance_url.rstrip("/")

    @property
    def base_url(self) -> str:
        """Versioned REST API root of the org."""
        return f"{self.instance_url}/services/data/v{self.endpoint.api_version}"

    def _get_auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.endpoint.access_token}"}

    def _get(self, url: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """GET a REST resource, translating failures into QueryExecutionError."""
        try:
            response = self._session.get(url, headers=self._get_auth_headers(), params=params)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            body = e.response.text if e.response is not None else ""
            raise QueryExecutionError(f"HTTP error: {status_code} - {body}", status_code) from e
        except requests.exceptions.RequestException as e:
            raise QueryExecutionError(f"Request failed: {e}") from e
        except ValueError as e:
            raise QueryExecutionError(f"Invalid response: {e}") from e

    def query_records(self, soql: str) -> List[Dict[str, Any]]:
        """
        Run a SOQL query through the REST API, following result pages.

        Args:
            soql: Query text

        Returns:
            All returned records
        """
        data = self._get(f"{self.base_url}/query", params={"q": soql})
        records = list(data.get("records", []))

        while not data.get("done", True) and data.get("nextRecordsUrl"):
            data = self._get(f"{self.instance_url}{data['nextRecordsUrl']}")
            records.extend(data.get("records", []))

        logger.debug(f"{self.endpoint.name}: {len(records)} records for {soql}")
        return records

    def describe_object(self, entity_name: str) -> Tuple[EntityDescriptor, Dict[str, FieldDescriptor]]:
        """Describe an object through the REST API."""
        data = self._get(f"{self.base_url}/sobjects/{entity_name}/describe")
        return parse_describe(data)

    async def query(self, soql: str, use_bulk_api: bool = False) -> List[Dict[str, Any]]:
        if use_bulk_api:
            raise NotImplementedError("Bulk queries are executed by the transfer engine")
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.query_records, soql)

    async def describe(self, entity_name: str) -> Tuple[EntityDescriptor, Dict[str, FieldDescriptor]]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.describe_object, entity_name)
