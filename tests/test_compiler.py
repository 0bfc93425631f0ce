"""Tests for compiling whole migration scripts."""

import logging

import pytest

from datamove.constants import ACCESS_CHECK_QUERY, PERSON_ACCOUNT_CHECK_QUERY, Operation
from datamove.errors import (
    EndpointAccessExpiredError,
    EndpointNotConnectedError,
    MalformedQueryError,
    NoObjectsDefinedError,
    ObjectDescribeError,
)
from datamove.models import FieldDescriptor
from datamove.services import MigrationPlanCompiler

from .conftest import SOURCE, TARGET, FakeCredentialProvider

RECORD_TYPE_QUERY_PREFIX = "SELECT Id, DeveloperName, SobjectType FROM RecordType WHERE SobjectType IN "


class TestCompile:
    """Test MigrationPlanCompiler.compile"""

    @pytest.mark.asyncio
    async def test_single_object(self, compiler, make_script):
        script = make_script([{"query": "SELECT Name FROM Account", "operation": "Insert"}])

        await compiler.compile(script, SOURCE, TARGET)

        assert list(script.objects_map) == ["Account"]
        plan = script.objects_map["Account"]
        assert plan.fields_in_query == ["Name", "Id"]
        assert plan.external_id == "Id"
        assert plan.script is script
        assert script.errors == []

    @pytest.mark.asyncio
    async def test_endpoints_are_set_up_source_first(self, compiler, make_script, server):
        script = make_script([{"query": "SELECT Name FROM Account"}])

        await compiler.compile(script, SOURCE, TARGET)

        assert script.source_org.name == SOURCE
        assert script.source_org.is_source
        assert script.target_org.name == TARGET
        assert not script.target_org.is_source
        assert server.queries == [
            (SOURCE, ACCESS_CHECK_QUERY),
            (SOURCE, PERSON_ACCOUNT_CHECK_QUERY),
            (TARGET, ACCESS_CHECK_QUERY),
            (TARGET, PERSON_ACCOUNT_CHECK_QUERY),
        ]

    @pytest.mark.asyncio
    async def test_tokens_from_script_orgs(self, server, make_script):
        credentials = FakeCredentialProvider()
        compiler = MigrationPlanCompiler(credentials=credentials, api_factory=server.client_factory)
        script = make_script(
            [{"query": "SELECT Name FROM Account"}],
            orgs=[
                {"name": SOURCE, "instanceUrl": "https://src", "accessToken": "t1"},
                {"name": TARGET, "instanceUrl": "https://tgt", "accessToken": "t2"},
            ],
        )

        await compiler.compile(script, SOURCE, TARGET)

        assert credentials.calls == []
        assert script.source_org.access_token == "t1"
        assert script.target_org.access_token == "t2"
        # Raw org entries are left untouched
        assert not script.orgs[0].is_source

    @pytest.mark.asyncio
    async def test_all_objects_excluded(self, compiler, make_script, credentials, server):
        script = make_script([
            {"query": "SELECT Name FROM Account", "operation": "Upsert", "excluded": True},
            {"query": "SELECT Name FROM Contact", "operation": "Update", "excluded": True},
        ])

        with pytest.raises(NoObjectsDefinedError):
            await compiler.compile(script, SOURCE, TARGET)

        # Nothing is contacted
        assert credentials.calls == []
        assert server.queries == []

    @pytest.mark.asyncio
    async def test_empty_script(self, compiler, make_script):
        with pytest.raises(NoObjectsDefinedError):
            await compiler.compile(make_script([]), SOURCE, TARGET)

    @pytest.mark.asyncio
    async def test_excluded_readonly_objects_are_kept(self, compiler, make_script):
        script = make_script([
            {"query": "SELECT Name FROM Account", "operation": "Readonly", "excluded": True},
            {"query": "SELECT Name FROM Contact", "operation": "Update", "excluded": True},
        ])

        await compiler.compile(script, SOURCE, TARGET)

        assert list(script.objects_map) == ["Account"]
        assert script.objects_map["Account"].excluded

    @pytest.mark.asyncio
    async def test_record_type_object_added_once(self, compiler, make_script):
        script = make_script([
            {"query": "SELECT Name, RecordTypeId FROM Account", "operation": "Upsert"},
            {"query": "SELECT LastName, RecordTypeId FROM Contact", "operation": "Upsert"},
            {"query": "SELECT Name FROM Lead", "operation": "Upsert"},
            {"query": "SELECT Name, RecordTypeId FROM Case", "operation": "Upsert"},
        ])

        await compiler.compile(script, SOURCE, TARGET)

        names = list(script.objects_map)
        assert names == ["Account", "Contact", "Lead", "Case", "RecordType"]
        plan = script.objects_map["RecordType"]
        assert plan.query == RECORD_TYPE_QUERY_PREFIX + "('Account', 'Contact', 'Case') ORDER BY SobjectType ASC"
        assert plan.is_extra_object
        assert plan.all_records
        assert plan.operation == Operation.READONLY
        assert plan.external_id == "DeveloperName"
        assert plan.is_special_object

    @pytest.mark.asyncio
    async def test_record_type_filter_is_union_of_referencing_objects(self, compiler, make_script):
        script = make_script([
            {"query": "SELECT Name, RecordTypeId FROM Account"},
            {"query": "SELECT Name, RecordTypeId FROM Opportunity"},
        ])

        await compiler.compile(script, SOURCE, TARGET)

        record_types = [p for p in script.plans if p.name == "RecordType"]
        assert len(record_types) == 1
        assert record_types[0].query == (
            RECORD_TYPE_QUERY_PREFIX + "('Account', 'Opportunity') ORDER BY SobjectType ASC"
        )

    @pytest.mark.asyncio
    async def test_no_record_type_object_without_references(self, compiler, make_script):
        script = make_script([{"query": "SELECT Name FROM Account", "operation": "Upsert"}])

        await compiler.compile(script, SOURCE, TARGET)

        assert "RecordType" not in script.objects_map

    @pytest.mark.asyncio
    async def test_person_account_contact_example(self, compiler, make_script):
        script = make_script([{
            "query": "SELECT Id, RecordTypeId FROM Contact",
            "operation": "Update",
            "deleteOldData": True,
        }])

        await compiler.compile(script, SOURCE, TARGET)

        assert script.source_org.is_person_account_enabled
        contact = script.objects_map["Contact"]
        assert contact.delete_query == "SELECT Id FROM Contact WHERE IsPersonAccount = false"
        record_type = script.objects_map["RecordType"]
        assert record_type.query == RECORD_TYPE_QUERY_PREFIX + "('Contact') ORDER BY SobjectType ASC"

    @pytest.mark.asyncio
    async def test_unsupported_objects_removed(self, compiler, make_script, caplog):
        script = make_script([
            {"query": "SELECT Name FROM Profile"},
            {"query": "SELECT Name FROM User"},
            {"query": "SELECT Name FROM Account", "operation": "Upsert"},
            {"query": "SELECT DeveloperName FROM RecordType"},
        ])

        with caplog.at_level(logging.INFO, logger="datamove"):
            await compiler.compile(script, SOURCE, TARGET)

        assert list(script.objects_map) == ["Account"]
        assert "Profile" in caplog.text

    @pytest.mark.asyncio
    async def test_duplicate_object_last_wins(self, compiler, make_script, caplog):
        script = make_script([
            {"query": "SELECT Name FROM Account", "operation": "Insert"},
            {"query": "SELECT Name FROM Contact", "operation": "Insert"},
            {"query": "SELECT Name, Phone FROM Account", "operation": "Upsert"},
        ])

        with caplog.at_level(logging.WARNING, logger="datamove"):
            await compiler.compile(script, SOURCE, TARGET)

        assert list(script.objects_map) == ["Account", "Contact"]
        assert script.objects_map["Account"].operation == Operation.UPSERT
        assert script.objects_map["Account"].fields_in_query == ["Name", "Phone", "Id"]
        assert "Account" in caplog.text

    @pytest.mark.asyncio
    async def test_malformed_query_stops_compilation(self, compiler, make_script):
        script = make_script([
            {"query": "SELECT Name FROM Account"},
            {"name": "Broken", "query": "SELECT Name Contact"},
        ])

        with pytest.raises(MalformedQueryError) as exc_info:
            await compiler.compile(script, SOURCE, TARGET)

        assert exc_info.value.entity_name == "Broken"
        assert len(script.objects_map) == 0

    @pytest.mark.asyncio
    async def test_continue_on_error_skips_failed_objects(self, server, credentials, make_script):
        compiler = MigrationPlanCompiler(
            credentials=credentials, api_factory=server.client_factory, continue_on_error=True
        )
        script = make_script([
            {"query": "SELECT Name FROM Account"},
            {"name": "Broken", "query": "SELECT Name Contact"},
            {"query": "SELECT Name FROM Lead", "deleteOldData": True, "deleteQuery": "SELECT"},
        ])

        await compiler.compile(script, SOURCE, TARGET)

        assert list(script.objects_map) == ["Account"]
        assert [type(e).__name__ for e in script.errors] == [
            "MalformedQueryError", "MalformedDeleteQueryError"
        ]

    @pytest.mark.asyncio
    async def test_source_failure_stops_before_target(self, compiler, make_script, server):
        server.fail(SOURCE, ACCESS_CHECK_QUERY)
        script = make_script([{"query": "SELECT Name FROM Account"}])

        with pytest.raises(EndpointAccessExpiredError) as exc_info:
            await compiler.compile(script, SOURCE, TARGET)

        assert exc_info.value.endpoint_name == SOURCE
        assert server.queries_for(TARGET) == []

    @pytest.mark.asyncio
    async def test_unknown_target(self, compiler, make_script):
        script = make_script([{"query": "SELECT Name FROM Account"}])

        with pytest.raises(EndpointNotConnectedError) as exc_info:
            await compiler.compile(script, SOURCE, "nobody@example.com")

        assert exc_info.value.endpoint_name == "nobody@example.com"

    @pytest.mark.asyncio
    async def test_csv_file_target(self, compiler, make_script, server, credentials):
        script = make_script([{"query": "SELECT Name FROM Account"}])

        await compiler.compile(script, SOURCE, "csvfile")

        assert script.target_org.is_file_media
        assert credentials.calls == [SOURCE]
        assert server.queries_for("csvfile") == []

    @pytest.mark.asyncio
    async def test_options(self, compiler, make_script):
        script = make_script([{"query": "SELECT Name FROM Account"}], apiVersion="50.0")

        await compiler.compile(script, SOURCE, TARGET, base_path="/data/migration", api_version="55.0")

        assert script.base_path == "/data/migration"
        assert script.api_version == "55.0"
        assert script.source_org.api_version == "55.0"

    @pytest.mark.asyncio
    async def test_objects_map_is_read_only(self, compiler, make_script):
        script = make_script([{"query": "SELECT Name FROM Account"}])

        await compiler.compile(script, SOURCE, TARGET)

        with pytest.raises(TypeError):
            script.objects_map["Contact"] = script.objects_map["Account"]


class TestDescribeObjects:
    """Test MigrationPlanCompiler.describe_objects"""

    def add_account(self, server, endpoint_name, phone_calculated=False):
        server.add_describe(endpoint_name, "Account", [
            FieldDescriptor("Id", type="id"),
            FieldDescriptor("Name", type="string", creatable=True, updateable=True),
            FieldDescriptor("Phone", type="phone", creatable=True, calculated=phone_calculated),
        ])

    @pytest.mark.asyncio
    async def test_describe_both_sides(self, compiler, make_script, server):
        self.add_account(server, SOURCE)
        self.add_account(server, TARGET, phone_calculated=True)
        script = make_script([{"query": "SELECT Name, Phone FROM Account", "operation": "Upsert"}])
        await compiler.compile(script, SOURCE, TARGET)

        await compiler.describe_objects(script)

        plan = script.objects_map["Account"]
        assert plan.source_describe.name == "Account"
        assert set(plan.source_fields_map) == {"Id", "Name", "Phone"}
        assert plan.target_fields_map["Phone"].is_readonly
        assert plan.fields_to_update == ["Name"]

    @pytest.mark.asyncio
    async def test_csv_side_mirrors_org(self, compiler, make_script, server):
        self.add_account(server, SOURCE)
        script = make_script([{"query": "SELECT Name, Phone FROM Account", "operation": "Upsert"}])
        await compiler.compile(script, SOURCE, "csvfile")

        await compiler.describe_objects(script)

        plan = script.objects_map["Account"]
        assert plan.target_fields_map == plan.source_fields_map
        assert plan.fields_to_update == ["Name", "Phone"]

    @pytest.mark.asyncio
    async def test_describe_failure(self, compiler, make_script, server):
        self.add_account(server, SOURCE)
        script = make_script([{"query": "SELECT Name FROM Account"}])
        await compiler.compile(script, SOURCE, TARGET)

        with pytest.raises(ObjectDescribeError) as exc_info:
            await compiler.describe_objects(script)

        assert exc_info.value.entity_name == "Account"
        assert exc_info.value.endpoint_name == TARGET
