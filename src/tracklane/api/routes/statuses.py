"""Status CRUD endpoints."""

from fastapi import APIRouter, status

from tracklane.api.dependencies import BoardStoreDep
from tracklane.api.models import APIResponse, StatusCreate, StatusResponse, StatusUpdate

router = APIRouter(prefix="/statuses", tags=["statuses"])


@router.get("", response_model=APIResponse[list[StatusResponse]])
def list_statuses(store: BoardStoreDep) -> APIResponse[list[StatusResponse]]:
    """List all statuses."""
    return APIResponse(data=[StatusResponse.model_validate(s) for s in store.list_statuses()])


@router.post(
    "",
    response_model=APIResponse[StatusResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_status(body: StatusCreate, store: BoardStoreDep) -> APIResponse[StatusResponse]:
    """Create a new status."""
    created = store.create_status(
        name=body.name,
        category=body.category,
        color=body.color,
        status_id=body.id,
    )
    return APIResponse(data=StatusResponse.model_validate(created))


@router.get("/{status_id}", response_model=APIResponse[StatusResponse])
def get_status(status_id: str, store: BoardStoreDep) -> APIResponse[StatusResponse]:
    return APIResponse(data=StatusResponse.model_validate(store.get_status(status_id)))


@router.patch("/{status_id}", response_model=APIResponse[StatusResponse])
def update_status(
    status_id: str, body: StatusUpdate, store: BoardStoreDep
) -> APIResponse[StatusResponse]:
    """Update a status (partial update)."""
    updated = store.update_status(
        status_id, name=body.name, category=body.category, color=body.color
    )
    return APIResponse(data=StatusResponse.model_validate(updated))


@router.delete("/{status_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_status(status_id: str, store: BoardStoreDep) -> None:
    """Delete a status that no issue or workflow step uses."""
    store.delete_status(status_id)
