from fastapi import APIRouter, Depends, status
from fastapi.encoders import jsonable_encoder

from electora.dependencies import get_storage, require_manager
from electora.models.election_model import Election, ElectionCreate, StatusUpdateRequest
from electora.schemas import TokenData
from electora.storage import MemoryStorage

router = APIRouter(prefix="/api/elections", tags=["Election"])


def election_json(election: Election) -> dict:
    return jsonable_encoder(election, by_alias=True)


@router.get("")
def get_all_elections(storage: MemoryStorage = Depends(get_storage)):
    return {"success": True, "data": [election_json(e) for e in storage.list_elections()]}


@router.get("/{election_id}")
def get_election(election_id: str, storage: MemoryStorage = Depends(get_storage)):
    return {"success": True, "data": election_json(storage.get_election(election_id))}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_election(
    election: ElectionCreate,
    user: TokenData = Depends(require_manager),
    storage: MemoryStorage = Depends(get_storage),
):
    created = storage.create_election(election, created_by=user.username)
    return {"success": True, "message": "Election created successfully", "data": election_json(created)}


@router.put("/{election_id}")
def update_election(
    election_id: str,
    election: ElectionCreate,
    user: TokenData = Depends(require_manager),
    storage: MemoryStorage = Depends(get_storage),
):
    updated = storage.update_election(election_id, election)
    return {"success": True, "message": "Election updated successfully", "data": election_json(updated)}


@router.patch("/{election_id}/status")
def update_election_status(
    election_id: str,
    status_update: StatusUpdateRequest,
    user: TokenData = Depends(require_manager),
    storage: MemoryStorage = Depends(get_storage),
):
    updated = storage.update_status(election_id, status_update.status)
    return {"success": True, "message": "Election status updated successfully", "data": election_json(updated)}


@router.delete("/{election_id}")
def delete_election(
    election_id: str,
    user: TokenData = Depends(require_manager),
    storage: MemoryStorage = Depends(get_storage),
):
    removed = storage.delete_election(election_id)
    return {"success": True, "message": "Election deleted successfully", "data": {"deletedVotes": removed}}
