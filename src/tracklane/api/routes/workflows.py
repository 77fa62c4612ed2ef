"""Workflow endpoints - graph editing, copies and the draft lifecycle."""

from fastapi import APIRouter, Query, status

from tracklane.api.dependencies import BoardStoreDep, RegistryDep
from tracklane.api.models import (
    APIResponse,
    StepCreate,
    StepResponse,
    TransitionCreate,
    TransitionResponse,
    WorkflowClone,
    WorkflowCreate,
    WorkflowDetailResponse,
    WorkflowSummaryResponse,
    summary_to_response,
    workflow_to_response,
)

router = APIRouter(prefix="/workflows", tags=["workflows"])


@router.get("", response_model=APIResponse[list[WorkflowSummaryResponse]])
def list_workflows(
    store: BoardStoreDep,
    project_id: str | None = Query(default=None, description="Filter by project ID"),
    include_drafts: bool = Query(default=False),
) -> APIResponse[list[WorkflowSummaryResponse]]:
    """List workflows."""
    workflows = store.list_workflows(project_id=project_id, include_drafts=include_drafts)
    return APIResponse(data=[summary_to_response(w) for w in workflows])


@router.post(
    "",
    response_model=APIResponse[WorkflowSummaryResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_workflow(
    body: WorkflowCreate, store: BoardStoreDep
) -> APIResponse[WorkflowSummaryResponse]:
    """Create an empty workflow."""
    created = store.create_workflow(
        name=body.name,
        description=body.description,
        project_id=body.project_id,
        is_default=body.is_default,
    )
    return APIResponse(data=summary_to_response(created))


@router.get("/{workflow_id}", response_model=APIResponse[WorkflowSummaryResponse])
def get_workflow(workflow_id: str, store: BoardStoreDep) -> APIResponse[WorkflowSummaryResponse]:
    return APIResponse(data=summary_to_response(store.get_workflow(workflow_id)))


@router.get("/{workflow_id}/graph", response_model=APIResponse[WorkflowDetailResponse])
def get_workflow_graph(
    workflow_id: str, store: BoardStoreDep
) -> APIResponse[WorkflowDetailResponse]:
    """Get the validated workflow graph with steps and transitions."""
    return APIResponse(data=workflow_to_response(store.load_workflow(workflow_id)))


@router.post(
    "/{workflow_id}/steps",
    response_model=APIResponse[StepResponse],
    status_code=status.HTTP_201_CREATED,
)
def add_step(
    workflow_id: str, body: StepCreate, store: BoardStoreDep, registry: RegistryDep
) -> APIResponse[StepResponse]:
    step = store.add_step(
        workflow_id,
        body.status_id,
        is_initial=body.is_initial,
        position_x=body.position_x,
        position_y=body.position_y,
    )
    registry.invalidate(workflow_id)
    return APIResponse(data=StepResponse.model_validate(step))


@router.post(
    "/{workflow_id}/transitions",
    response_model=APIResponse[TransitionResponse],
    status_code=status.HTTP_201_CREATED,
)
def add_transition(
    workflow_id: str, body: TransitionCreate, store: BoardStoreDep, registry: RegistryDep
) -> APIResponse[TransitionResponse]:
    transition = store.add_transition(
        workflow_id,
        body.from_step_id,
        body.to_step_id,
        body.name,
        description=body.description,
        conditions=body.conditions,
        validators=body.validators,
        post_functions=body.post_functions,
    )
    registry.invalidate(workflow_id)
    return APIResponse(data=TransitionResponse.model_validate(transition))


@router.post(
    "/{workflow_id}/clone",
    response_model=APIResponse[WorkflowDetailResponse],
    status_code=status.HTTP_201_CREATED,
)
def clone_workflow(
    workflow_id: str, body: WorkflowClone, store: BoardStoreDep
) -> APIResponse[WorkflowDetailResponse]:
    clone = store.clone_workflow(workflow_id, name=body.name, project_id=body.project_id)
    return APIResponse(data=workflow_to_response(clone))


@router.post(
    "/{workflow_id}/draft",
    response_model=APIResponse[WorkflowDetailResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_draft(workflow_id: str, store: BoardStoreDep) -> APIResponse[WorkflowDetailResponse]:
    """Start a draft copy of a published workflow."""
    return APIResponse(data=workflow_to_response(store.create_draft(workflow_id)))


@router.post("/{draft_id}/publish", response_model=APIResponse[WorkflowDetailResponse])
def publish_draft(
    draft_id: str, store: BoardStoreDep, registry: RegistryDep
) -> APIResponse[WorkflowDetailResponse]:
    """Publish a draft over the workflow it was drafted from."""
    published = store.publish_draft(draft_id)
    registry.invalidate(published.id)
    return APIResponse(data=workflow_to_response(published))


@router.post("/{draft_id}/discard", status_code=status.HTTP_204_NO_CONTENT)
def discard_draft(draft_id: str, store: BoardStoreDep) -> None:
    store.discard_draft(draft_id)
