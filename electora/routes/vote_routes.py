import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder

from electora.dependencies import get_optional_user, get_storage, require_manager
from electora.exceptions import ElectoraError
from electora.models.election_model import ElectionStatus
from electora.models.vote_model import VoteSubmission
from electora.routes.election_routes import election_json
from electora.schemas import TokenData
from electora.storage import MemoryStorage
from electora.tally import calculate_results

logger = logging.getLogger(__name__)

vote_router = APIRouter(prefix="/api/elections", tags=["Vote"])


# ------------------------------
# CAST VOTE API
# ------------------------------
@vote_router.post("/{election_id}/vote", status_code=status.HTTP_201_CREATED)
def cast_vote(
    election_id: str,
    submission: VoteSubmission,
    request: Request,
    storage: MemoryStorage = Depends(get_storage),
):
    """
    Records one voter's ballots for every category of an active election.
    Either the whole vote is stored or nothing is.
    """
    ip_address = request.client.host if request.client else None
    try:
        vote, voter_count = storage.submit_vote(election_id, submission, ip_address=ip_address)
    except ElectoraError as e:
        logger.warning(f"Rejected vote for election {election_id}: {e}")
        raise

    return {
        "success": True,
        "message": "Vote submitted successfully",
        "data": {"voteId": vote.id, "voterCount": voter_count},
    }


@vote_router.get("/{election_id}/votes")
def get_votes(
    election_id: str,
    user: TokenData = Depends(require_manager),
    storage: MemoryStorage = Depends(get_storage),
):
    votes = storage.list_votes(election_id)
    return {"success": True, "data": jsonable_encoder(votes, by_alias=True)}


@vote_router.get("/{election_id}/results")
def get_results(
    election_id: str,
    user: Optional[TokenData] = Depends(get_optional_user),
    storage: MemoryStorage = Depends(get_storage),
):
    election = storage.get_election(election_id)

    # Public once completed; managers can watch results at any time
    if election.status != ElectionStatus.COMPLETED and (user is None or not user.is_manager):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Results not available")

    votes = storage.list_votes(election_id)
    return {
        "success": True,
        "data": {
            "election": election_json(election),
            "results": calculate_results(election, votes),
            "totalVotes": len(votes),
        },
    }
