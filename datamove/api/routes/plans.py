"""Plan compilation endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from ...errors import CommandInitializationError
from ...models.endpoint import EndpointDescriptor
from ...models.plan import ObjectPlan
from ...models.script import MigrationScript
from ...services.compiler import MigrationPlanCompiler
from ..models import (
    CompileErrorResponse,
    CompiledPlanResponse,
    CompileRequest,
    EndpointResponse,
    ObjectPlanResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def get_compiler() -> MigrationPlanCompiler:
    """Compiler used by the endpoints (overridden in tests)."""
    return MigrationPlanCompiler()


def _endpoint_response(endpoint: EndpointDescriptor) -> EndpointResponse:
    return EndpointResponse(
        name=endpoint.name,
        media=endpoint.media.value,
        is_person_account_enabled=endpoint.is_person_account_enabled,
    )


def _plan_response(plan: ObjectPlan) -> ObjectPlanResponse:
    return ObjectPlanResponse(
        name=plan.name,
        operation=plan.str_operation,
        query=plan.query,
        delete_query=plan.delete_query,
        external_id=plan.external_id,
        fields=plan.fields_in_query,
        fields_to_update=plan.fields_to_update,
        all_records=plan.all_records,
        is_extra_object=plan.is_extra_object,
        delete_old_data=plan.delete_old_data,
        is_limited_query=plan.is_limited_query,
        is_special_object=plan.is_special_object,
    )


@router.post("/compile", response_model=CompiledPlanResponse)
async def compile_plan(
    request: CompileRequest,
    compiler: MigrationPlanCompiler = Depends(get_compiler)
):
    """Compile a migration script into ordered object plans."""
    compiler.continue_on_error = request.continue_on_error

    try:
        script = MigrationScript.from_dict(
            request.script.model_dump(by_alias=True, exclude_unset=True)
        )
        await compiler.compile(
            script,
            request.source_username,
            request.target_username,
            api_version=request.api_version,
        )
        if request.describe:
            await compiler.describe_objects(script)
    except CommandInitializationError as e:
        logger.error(f"Compilation failed: {e.message}")
        raise HTTPException(status_code=400, detail=e.to_dict())

    plans = [_plan_response(plan) for plan in script.plans]
    return CompiledPlanResponse(
        source=_endpoint_response(script.source_org),
        target=_endpoint_response(script.target_org),
        objects=plans,
        errors=[CompileErrorResponse(**e.to_dict()) for e in script.errors],
        total=len(plans),
    )
