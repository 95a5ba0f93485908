from datetime import datetime, timezone
from typing import List, Optional

from pydantic import Field

from electora.models.election_model import CamelModel


class Ballot(CamelModel):
    """One category's part of a vote: a ranking or a selection of candidate names."""

    category_id: str
    preferences: Optional[List[str]] = None
    selected: Optional[List[str]] = None


class VoteSubmission(CamelModel):
    voter_id: Optional[str] = None
    voter_name: Optional[str] = None
    votes: Optional[List[Ballot]] = None


class Vote(CamelModel):
    id: str
    election_id: str
    voter_id: Optional[str] = None
    voter_name: str = "Anonymous"
    votes: List[Ballot]
    submitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    ip_address: Optional[str] = None

    def ballot_for(self, category_id: str) -> Optional[Ballot]:
        for ballot in self.votes:
            if ballot.category_id == category_id:
                return ballot
        return None
