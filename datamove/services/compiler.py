"""Migration plan compiler - turns a script into ordered object plans."""

import logging
from typing import Callable, Dict, List, Optional

from ..constants import (
    NOT_SUPPORTED_OBJECTS,
    RECORD_TYPE_EXTERNAL_ID,
    RECORD_TYPE_OBJECT,
    RECORD_TYPE_QUERY,
    RECORD_TYPE_SOBJECT_FIELD,
    Operation,
)
from ..errors import NoObjectsDefinedError, ObjectDescribeError, QueryExecutionError
from ..messages import Resource, get_resource_string
from ..models.endpoint import EndpointDescriptor
from ..models.plan import CompileOutcome, ObjectPlan, compile_object
from ..models.script import MigrationScript, ScriptObject
from ..query import QueryModel
from .base import BaseCredentialProvider, BaseQueryClient
from .credentials import SfdxCredentialProvider
from .salesforce_api import SalesforceApi

logger = logging.getLogger(__name__)


class MigrationPlanCompiler:
    """
    Compiles a migration script into an executable plan.

    Handles:
    - Exclusion filtering of script objects
    - Endpoint connection and capability probing
    - Per-object query compilation
    - Unsupported object removal
    - Injection of dependency objects (RecordType)
    - Optional schema description of every compiled object
    """

    def __init__(
        self,
        credentials: Optional[BaseCredentialProvider] = None,
        api_factory: Optional[Callable[[EndpointDescriptor], BaseQueryClient]] = None,
        continue_on_error: bool = False
    ):
        """
        Initialize the compiler.

        Args:
            credentials: Provider used for endpoints without an access token
            api_factory: Builds a query client for a connected endpoint
            continue_on_error: Skip objects that fail to compile instead of
                raising the first failure
        """
        self.credentials = credentials or SfdxCredentialProvider()
        self.api_factory = api_factory or SalesforceApi
        self.continue_on_error = continue_on_error

    async def compile(
        self,
        script: MigrationScript,
        source_username: str,
        target_username: str,
        base_path: str = "",
        api_version: Optional[str] = None
    ) -> MigrationScript:
        """
        Compile the script in place.

        Args:
            script: Script read from the script document
            source_username: Name of the source endpoint
            target_username: Name of the target endpoint
            base_path: Directory of the script (CSV files live there)
            api_version: API version override

        Returns:
            The script, with endpoints resolved and objects_map filled

        Raises:
            NoObjectsDefinedError: If no object is left after exclusion
            EndpointAuthenticationError: If an endpoint cannot be connected
            CommandInitializationError: If an object fails to compile and
                continue_on_error is off
        """
        script.base_path = base_path
        script.api_version = api_version or script.api_version
        script.errors = []

        # Remove excluded objects
        script.objects = self._filter_excluded(script.objects)
        if not script.objects:
            raise NoObjectsDefinedError()

        # Phase 1: Endpoints
        logger.info("=== PHASE 1: ENDPOINTS ===")
        script.source_org = EndpointDescriptor.for_role(
            script.get_org(source_username), source_username, script, is_source=True
        )
        script.target_org = EndpointDescriptor.for_role(
            script.get_org(target_username), target_username, script, is_source=False
        )
        await script.source_org.setup(self.credentials, self.api_factory)
        await script.target_org.setup(self.credentials, self.api_factory)

        # Phase 2: Objects
        logger.info("=== PHASE 2: OBJECTS ===")
        outcomes = [compile_object(entry, script) for entry in script.objects]
        plans = self._build_objects_map(self._collect_plans(script, outcomes))

        # Remove unsupported objects
        for name in list(plans):
            if name in NOT_SUPPORTED_OBJECTS:
                logger.info(get_resource_string(Resource.OBJECT_NOT_SUPPORTED, name))
                del plans[name]

        # Phase 3: Extra objects
        logger.info("=== PHASE 3: EXTRA OBJECTS ===")
        record_type_plan = self._create_record_type_plan(script, list(plans.values()))
        if record_type_plan:
            plans[record_type_plan.name] = record_type_plan

        script.set_plans(plans)
        logger.info(f"Compiled {len(plans)} objects: {', '.join(plans)}")
        return script

    async def describe_objects(self, script: MigrationScript) -> None:
        """
        Describe every compiled object on both endpoints.

        A CSV endpoint has no schema of its own and mirrors the describe of
        the org side.

        Raises:
            ObjectDescribeError: If an org cannot describe an object
        """
        logger.info(get_resource_string(Resource.GETTING_ORG_METADATA))

        clients = {}
        for org in (script.source_org, script.target_org):
            if org and not org.is_file_media:
                clients[org.is_source] = self.api_factory(org)

        for plan in script.plans:
            for is_source, client in clients.items():
                try:
                    describe, fields = await client.describe(plan.name)
                except QueryExecutionError as e:
                    raise ObjectDescribeError(plan.name, client.endpoint.name, e) from e
                if is_source:
                    plan.source_describe, plan.source_fields_map = describe, fields
                else:
                    plan.target_describe, plan.target_fields_map = describe, fields

            if script.source_org and script.source_org.is_file_media:
                plan.source_describe = plan.target_describe
                plan.source_fields_map = dict(plan.target_fields_map)
            if script.target_org and script.target_org.is_file_media:
                plan.target_describe = plan.source_describe
                plan.target_fields_map = dict(plan.source_fields_map)

    def _filter_excluded(self, objects: List[ScriptObject]) -> List[ScriptObject]:
        """Drop excluded objects; read-only objects are always kept."""
        included = []
        for entry in objects:
            if entry.excluded and entry.operation != Operation.READONLY:
                logger.debug(get_resource_string(Resource.OBJECT_WILL_BE_EXCLUDED, entry.label))
                continue
            included.append(entry)
        return included

    def _collect_plans(self, script: MigrationScript, outcomes: List[CompileOutcome]) -> List[ObjectPlan]:
        """Apply the escalation policy to per-object compile outcomes."""
        plans = []
        for outcome in outcomes:
            if outcome.ok:
                plans.append(outcome.plan)
                continue
            if not self.continue_on_error:
                raise outcome.error
            script.errors.append(outcome.error)
            logger.warning(get_resource_string(
                Resource.OBJECT_SKIPPED, outcome.entry.label, outcome.error.message
            ))
        return plans

    def _build_objects_map(self, plans: List[ObjectPlan]) -> Dict[str, ObjectPlan]:
        """Key plans by object name; a repeated name keeps its first position and the last plan."""
        objects_map: Dict[str, ObjectPlan] = {}
        for plan in plans:
            if plan.name in objects_map:
                logger.warning(get_resource_string(Resource.DUPLICATE_OBJECT, plan.name))
            objects_map[plan.name] = plan
        return objects_map

    def _create_record_type_plan(
        self,
        script: MigrationScript,
        plans: List[ObjectPlan]
    ) -> Optional[ObjectPlan]:
        """Build the RecordType plan needed by objects querying RecordTypeId."""
        referencing = []
        for plan in plans:
            if plan.has_record_type_id_field and plan.name not in referencing:
                referencing.append(plan.name)
        if not referencing:
            return None

        query = QueryModel.parse(RECORD_TYPE_QUERY, RECORD_TYPE_OBJECT)
        query.and_predicate(RECORD_TYPE_SOBJECT_FIELD, referencing)
        query.set_order_by(RECORD_TYPE_SOBJECT_FIELD, "ASC")

        entry = ScriptObject(
            name=RECORD_TYPE_OBJECT,
            query=query.compose(),
            operation=Operation.READONLY,
            external_id=RECORD_TYPE_EXTERNAL_ID,
            all_records=True,
        )
        plan = ObjectPlan.compile(entry, script, is_extra_object=True)
        logger.info(get_resource_string(
            Resource.EXTRA_OBJECT_ADDED, RECORD_TYPE_OBJECT, ", ".join(referencing)
        ))
        return plan
