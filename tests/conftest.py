"""Shared fixtures: in-memory credential provider and org server."""

from typing import Any, Dict, List, Optional, Set, Tuple

import pytest

from datamove.errors import QueryExecutionError
from datamove.models import EndpointDescriptor, EntityDescriptor, FieldDescriptor, MigrationScript, OrgInfo
from datamove.services import BaseCredentialProvider, BaseQueryClient, MigrationPlanCompiler

SOURCE = "source@example.com"
TARGET = "target@example.com"


class FakeCredentialProvider(BaseCredentialProvider):
    """Returns canned sessions and records which endpoints were looked up."""

    def __init__(self, sessions: Optional[Dict[str, OrgInfo]] = None):
        self.sessions = sessions or {}
        self.calls: List[str] = []

    def display_connection(self, endpoint_name: str) -> OrgInfo:
        self.calls.append(endpoint_name)
        return self.sessions.get(endpoint_name, OrgInfo())


class FakeOrgServer:
    """In-memory stand-in for the live orgs behind every endpoint."""

    def __init__(self):
        self.queries: List[Tuple[str, str]] = []
        self.failing: Dict[str, Set[str]] = {}
        self.describes: Dict[Tuple[str, str], Tuple[EntityDescriptor, Dict[str, FieldDescriptor]]] = {}

    def fail(self, endpoint_name: str, soql: str) -> None:
        self.failing.setdefault(endpoint_name, set()).add(soql)

    def add_describe(self, endpoint_name: str, entity: str, fields: List[FieldDescriptor]) -> None:
        self.describes[(endpoint_name, entity)] = (
            EntityDescriptor(name=entity, label=entity, createable=True, updateable=True),
            {f.name: f for f in fields},
        )

    def client_factory(self, endpoint: EndpointDescriptor) -> "FakeQueryClient":
        return FakeQueryClient(endpoint, self)

    def queries_for(self, endpoint_name: str) -> List[str]:
        return [soql for name, soql in self.queries if name == endpoint_name]


class FakeQueryClient(BaseQueryClient):
    def __init__(self, endpoint: EndpointDescriptor, server: FakeOrgServer):
        super().__init__(endpoint)
        self.server = server

    async def query(self, soql: str, use_bulk_api: bool = False) -> List[Dict[str, Any]]:
        self.server.queries.append((self.endpoint.name, soql))
        if soql in self.server.failing.get(self.endpoint.name, set()):
            raise QueryExecutionError(f"Query failed: {soql}", 400)
        return [{"Id": "001000000000001AAA"}]

    async def describe(self, entity_name: str):
        key = (self.endpoint.name, entity_name)
        if key not in self.server.describes:
            raise QueryExecutionError(f"NOT_FOUND: {entity_name}", 404)
        return self.server.describes[key]


def connected(name: str) -> OrgInfo:
    return OrgInfo(
        access_token=f"token-{name}",
        instance_url=f"https://{name.split('@')[0]}.my.salesforce.com",
        connected_status="Connected",
        username=name,
    )


@pytest.fixture
def server():
    return FakeOrgServer()


@pytest.fixture
def credentials():
    return FakeCredentialProvider({SOURCE: connected(SOURCE), TARGET: connected(TARGET)})


@pytest.fixture
def compiler(server, credentials):
    return MigrationPlanCompiler(credentials=credentials, api_factory=server.client_factory)


@pytest.fixture
def make_script():
    """Build a script from object entries written as in the script document."""

    def _make(objects: List[Dict[str, Any]], **options) -> MigrationScript:
        data = {"objects": objects}
        data.update(options)
        return MigrationScript.from_dict(data)

    return _make
