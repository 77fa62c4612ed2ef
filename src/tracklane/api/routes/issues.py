"""Issue endpoints - creation, transition menu and history."""

from fastapi import APIRouter, HTTPException, Query, status

from tracklane.api.dependencies import BoardStoreDep, RegistryDep
from tracklane.api.models import (
    ActorModel,
    APIResponse,
    HistoryEntryResponse,
    IssueCreate,
    IssueResponse,
    MoveResponse,
    OfferedTransitionResponse,
    TransitionRequest,
    outcome_to_response,
)

router = APIRouter(prefix="/issues", tags=["issues"])


@router.get("", response_model=APIResponse[list[IssueResponse]])
def list_issues(
    store: BoardStoreDep,
    project_id: str | None = Query(default=None, description="Filter by project ID"),
    workflow_id: str | None = Query(default=None, description="Filter by workflow ID"),
) -> APIResponse[list[IssueResponse]]:
    issues = store.list_issues(project_id=project_id, workflow_id=workflow_id)
    return APIResponse(data=[IssueResponse.model_validate(i) for i in issues])


@router.post(
    "",
    response_model=APIResponse[IssueResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_issue(body: IssueCreate, store: BoardStoreDep) -> APIResponse[IssueResponse]:
    """Create an issue at its workflow's initial status."""
    issue = store.create_issue(
        key=body.key,
        summary=body.summary,
        workflow_id=body.workflow_id,
        project_id=body.project_id,
        issue_type=body.issue_type,
        priority=body.priority,
        assignee=body.assignee,
        reporter=body.reporter,
        story_points=body.story_points,
        fields=body.fields,
        parent_id=body.parent_id,
    )
    return APIResponse(data=IssueResponse.model_validate(issue))


@router.get("/{issue_id}", response_model=APIResponse[IssueResponse])
def get_issue(issue_id: str, store: BoardStoreDep) -> APIResponse[IssueResponse]:
    return APIResponse(data=IssueResponse.model_validate(store.get_issue(issue_id)))


@router.get(
    "/{issue_id}/transitions",
    response_model=APIResponse[list[OfferedTransitionResponse]],
)
async def offered_transitions(
    issue_id: str,
    registry: RegistryDep,
    actor_id: str = Query(..., min_length=1),
    role: list[str] = Query(default=[]),
    group: list[str] = Query(default=[]),
    permission: list[str] = Query(default=[]),
) -> APIResponse[list[OfferedTransitionResponse]]:
    """Transitions the actor may choose from the issue's current status."""
    coordinator = await registry.for_issue(issue_id)
    issue = coordinator.get_issue(issue_id) if coordinator is not None else None
    if coordinator is None or issue is None:
        return APIResponse(data=[])
    actor = ActorModel(id=actor_id, roles=role, groups=group, permissions=permission).to_actor()
    workflow = coordinator.validator.workflow
    return APIResponse(
        data=[
            OfferedTransitionResponse(
                id=t.id, name=t.name, to_status=workflow.get_step(t.to_step_id).status_id
            )
            for t in coordinator.validator.offered_transitions(issue, actor)
        ]
    )


@router.post("/{issue_id}/transitions", response_model=APIResponse[MoveResponse])
async def take_transition(
    issue_id: str, body: TransitionRequest, registry: RegistryDep
) -> APIResponse[MoveResponse]:
    """Move an issue to ``to_status`` through its workflow."""
    coordinator = await registry.for_issue(issue_id)
    if coordinator is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Issue has no workflow"
        )
    outcome = await coordinator.select_transition(issue_id, body.to_status, body.actor.to_actor())
    await coordinator.drain()
    return APIResponse(data=outcome_to_response(outcome), error=outcome.user_message)


@router.get("/{issue_id}/history", response_model=APIResponse[list[HistoryEntryResponse]])
def get_history(issue_id: str, store: BoardStoreDep) -> APIResponse[list[HistoryEntryResponse]]:
    """Get the issue's transition history, oldest first."""
    store.get_issue(issue_id)
    history = store.get_history(issue_id)
    return APIResponse(data=[HistoryEntryResponse.model_validate(h) for h in history])
