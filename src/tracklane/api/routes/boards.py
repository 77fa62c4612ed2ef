"""Board endpoints - projections and drag-and-drop moves."""

from fastapi import APIRouter, Query, status

from tracklane.api.dependencies import BoardStoreDep, RegistryDep
from tracklane.api.models import (
    APIResponse,
    BoardCreate,
    BoardResponse,
    BoardSummaryResponse,
    MoveRequest,
    MoveResponse,
    board_to_response,
    outcome_to_response,
)
from tracklane.board import BoardColumn, BoardFilters

router = APIRouter(prefix="/boards", tags=["boards"])


@router.get("", response_model=APIResponse[list[BoardSummaryResponse]])
def list_boards(
    store: BoardStoreDep,
    project_id: str | None = Query(default=None, description="Filter by project ID"),
) -> APIResponse[list[BoardSummaryResponse]]:
    boards = store.list_boards(project_id=project_id)
    return APIResponse(data=[BoardSummaryResponse.model_validate(b) for b in boards])


@router.post(
    "",
    response_model=APIResponse[BoardSummaryResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_board(body: BoardCreate, store: BoardStoreDep) -> APIResponse[BoardSummaryResponse]:
    """Create a board. Without columns, the board type's template is used."""
    columns = None
    if body.columns is not None:
        columns = [
            BoardColumn(
                id=c.id,
                name=c.name,
                status_category=c.status_category,
                status_ids=tuple(c.status_ids),
                min_issues=c.min_issues,
                max_issues=c.max_issues,
            )
            for c in body.columns
        ]
    board = store.create_board(
        name=body.name,
        workflow_id=body.workflow_id,
        project_id=body.project_id,
        board_type=body.board_type,
        columns=columns,
        project_lead=body.project_lead,
    )
    return APIResponse(data=BoardSummaryResponse.model_validate(board))


@router.get("/{board_id}", response_model=APIResponse[BoardResponse])
async def get_board(
    board_id: str,
    store: BoardStoreDep,
    registry: RegistryDep,
    search: str = Query(default="", description="Match issue summary or key"),
    assignee: list[str] = Query(default=[], description="Only issues of these assignees"),
) -> APIResponse[BoardResponse]:
    """Project the board's issues onto its columns, with WIP state."""
    coordinator = await registry.for_board(board_id)
    board = store.get_board(board_id)
    view = coordinator.view(BoardFilters(search=search, assignees=frozenset(assignee)))
    return APIResponse(data=board_to_response(board, view))


@router.post("/{board_id}/moves", response_model=APIResponse[MoveResponse])
async def move_issue(
    board_id: str, body: MoveRequest, registry: RegistryDep
) -> APIResponse[MoveResponse]:
    """Drop an issue on a column.

    Rejected and rolled back moves still answer 200; ``data.state`` and
    ``error`` say what happened.
    """
    coordinator = await registry.for_board(board_id)
    outcome = await coordinator.drop_issue(body.issue_id, body.column_id, body.actor.to_actor())
    await coordinator.drain()
    return APIResponse(data=outcome_to_response(outcome), error=outcome.user_message)
