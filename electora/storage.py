# electora/storage.py
import logging
import threading
import time
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from electora.config import MANAGER_ROLE, MIN_CANDIDATES_PER_CATEGORY
from electora.exceptions import (
    DuplicateVoteError,
    ElectionClosedError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
    VoterNotAllowedError,
)
from electora.models.election_model import (
    Candidate,
    Category,
    CategoryIn,
    ContestType,
    Election,
    ElectionCreate,
    ElectionStatus,
)
from electora.models.vote_model import Ballot, Vote, VoteSubmission
from electora.schemas import UserRecord
from electora.security import hash_password
from electora.tally import category_ballots, validate_ballots

logger = logging.getLogger(__name__)

# draft -> active -> completed, with completed -> active to reopen
ALLOWED_TRANSITIONS = {
    ElectionStatus.DRAFT: {ElectionStatus.ACTIVE},
    ElectionStatus.ACTIVE: {ElectionStatus.COMPLETED},
    ElectionStatus.COMPLETED: {ElectionStatus.ACTIVE},
}


def _build_categories(categories: Optional[List[CategoryIn]]) -> List[Category]:
    if not categories:
        raise ValidationError("Missing required fields")

    built = []
    for cat in categories:
        candidates = [
            Candidate(name=c.name.strip(), description=c.description or "")
            for c in (cat.candidates or [])
            if c.name and c.name.strip()
        ]
        if not cat.name or not cat.name.strip() or len(candidates) < MIN_CANDIDATES_PER_CATEGORY:
            raise ValidationError("Each category must have a name and at least 2 candidates")
        names = [c.name for c in candidates]
        if len(set(names)) != len(names):
            raise ValidationError(
                "Candidate names must be unique within a category",
                {"category": cat.name.strip()},
            )
        built.append(Category(
            id=cat.id or str(uuid.uuid4()),
            name=cat.name.strip(),
            candidates=candidates,
            num_winners=max(1, cat.num_winners or 1),
        ))

    ids = [c.id for c in built]
    if len(set(ids)) != len(ids):
        raise ValidationError("Category IDs must be unique")
    return built


class MemoryStorage:
    """
    Process-local store for elections, votes and users.

    FastAPI runs sync handlers on a thread pool, so every operation takes
    the same re-entrant lock. Reads return the stored objects; callers must
    not mutate them.
    """

    def __init__(self, strict_transitions: bool = True):
        self.strict_transitions = strict_transitions
        self._lock = threading.RLock()
        self._elections: List[Election] = []
        self._votes: List[Vote] = []
        self._users: List[UserRecord] = []
        self._last_id = 0

    def reset(self) -> None:
        with self._lock:
            self._elections.clear()
            self._votes.clear()
            self._users.clear()

    def _next_id(self) -> str:
        # millisecond timestamp, bumped when two records land in the same ms
        candidate = int(time.time() * 1000)
        if candidate <= self._last_id:
            candidate = self._last_id + 1
        self._last_id = candidate
        return str(candidate)

    # --- Elections ---

    def add_election(self, election: Election) -> Election:
        with self._lock:
            self._elections.append(election)
            return election

    def create_election(self, data: ElectionCreate, created_by: Optional[str] = None) -> Election:
        title = (data.title or "").strip()
        if not title or data.contest_type is None or not data.categories:
            raise ValidationError("Missing required fields")
        categories = _build_categories(data.categories)

        with self._lock:
            election = Election(
                id=self._next_id(),
                title=title,
                status=ElectionStatus.DRAFT,
                contest_type=data.contest_type,
                categories=categories,
                allowed_voters=data.allowed_voters or [],
                end_date=data.end_date,
                is_private=bool(data.is_private),
                created_by=created_by,
            )
            self._elections.append(election)
        logger.info(f"Created election {election.id} ({election.contest_type.value}) by {created_by}")
        return election

    def get_election(self, election_id: str) -> Election:
        with self._lock:
            for election in self._elections:
                if election.id == election_id:
                    return election
        raise NotFoundError("Election not found", {"electionId": election_id})

    def list_elections(self) -> List[Election]:
        with self._lock:
            return list(self._elections)

    def update_election(self, election_id: str, data: ElectionCreate) -> Election:
        """Edit an election's fields. Only drafts can be edited."""
        with self._lock:
            election = self.get_election(election_id)
            if election.status != ElectionStatus.DRAFT:
                raise ValidationError("Only draft elections can be edited", {"electionId": election_id})

            # stored ballots must keep matching the contest type and candidates
            if (data.contest_type is not None or data.categories is not None) and self.list_votes(election_id):
                raise ValidationError(
                    "Contest type and categories cannot change once votes have been cast",
                    {"electionId": election_id},
                )

            changes = {}
            if data.title is not None:
                if not data.title.strip():
                    raise ValidationError("Missing required fields")
                changes["title"] = data.title.strip()
            if data.contest_type is not None:
                changes["contest_type"] = data.contest_type
            if data.categories is not None:
                changes["categories"] = _build_categories(data.categories)
            if data.allowed_voters is not None:
                changes["allowed_voters"] = list(data.allowed_voters)
            if "end_date" in data.model_fields_set:
                changes["end_date"] = data.end_date
            if data.is_private is not None:
                changes["is_private"] = data.is_private

            for field, value in changes.items():
                setattr(election, field, value)
        logger.info(f"Updated election {election_id}: {sorted(changes)}")
        return election

    def update_status(self, election_id: str, status: ElectionStatus) -> Election:
        status = ElectionStatus(status)
        with self._lock:
            election = self.get_election(election_id)
            current = ElectionStatus(election.status)
            if status == current:
                return election
            if self.strict_transitions and status not in ALLOWED_TRANSITIONS[current]:
                raise InvalidTransitionError(
                    f"Cannot change status from {current.value} to {status.value}",
                    {"electionId": election_id},
                )
            election.status = status
        logger.info(f"Election {election_id} status {current.value} -> {status.value}")
        return election

    def delete_election(self, election_id: str) -> int:
        """Remove an election and its votes. Returns the number of votes removed."""
        with self._lock:
            election = self.get_election(election_id)
            before = len(self._votes)
            self._votes = [v for v in self._votes if v.election_id != election_id]
            removed = before - len(self._votes)
            self._elections.remove(election)
        logger.info(f"Deleted election {election_id} and {removed} votes")
        return removed

    def list_categories(self, election_id: str) -> List[Category]:
        return list(self.get_election(election_id).categories)

    # --- Votes ---

    def submit_vote(self, election_id: str, submission: VoteSubmission, ip_address: Optional[str] = None) -> Tuple[Vote, int]:
        """
        Validate and record a vote. All checks and the append happen under one
        lock, so a rejected submission leaves the store untouched. Returns the
        vote and the election's voter count right after it was recorded.
        """
        with self._lock:
            election = self.get_election(election_id)

            if election.status != ElectionStatus.ACTIVE:
                raise ElectionClosedError("Election is not active", {"electionId": election_id})
            if election.has_ended(datetime.now(timezone.utc)):
                raise ElectionClosedError("Election has ended", {"electionId": election_id})

            voter_id = submission.voter_id or None
            if election.allowed_voters and voter_id not in election.allowed_voters:
                raise VoterNotAllowedError(
                    "You are not authorized to vote in this election",
                    {"electionId": election_id, "voterId": voter_id},
                )
            if voter_id and self.has_voted(election_id, voter_id):
                raise DuplicateVoteError(
                    "You have already voted in this election",
                    {"electionId": election_id, "voterId": voter_id},
                )

            validate_ballots(election, submission.votes)

            vote = Vote(
                id=self._next_id(),
                election_id=election_id,
                voter_id=voter_id,
                voter_name=submission.voter_name or "Anonymous",
                votes=[ballot.model_copy(deep=True) for ballot in submission.votes],
                ip_address=ip_address,
            )
            self._votes.append(vote)
            election.voter_count = sum(1 for v in self._votes if v.election_id == election_id)
            voter_count = election.voter_count
        logger.info(f"Accepted vote {vote.id} for election {election_id} ({voter_count} total)")
        return vote, voter_count

    def has_voted(self, election_id: str, voter_id: str) -> bool:
        with self._lock:
            return any(v.election_id == election_id and v.voter_id == voter_id for v in self._votes)

    def list_votes(self, election_id: str) -> List[Vote]:
        with self._lock:
            return [v for v in self._votes if v.election_id == election_id]

    def list_votes_for_category(self, election_id: str, category_id: str) -> List[Ballot]:
        election = self.get_election(election_id)
        if election.get_category(category_id) is None:
            raise NotFoundError("Category not found", {"electionId": election_id, "categoryId": category_id})
        return category_ballots(category_id, self.list_votes(election_id))

    # --- Users ---

    def add_user(self, username: str, email: str, hashed_password: str, role: str) -> UserRecord:
        with self._lock:
            user = UserRecord(
                id=len(self._users) + 1,
                username=username,
                email=email,
                hashed_password=hashed_password,
                role=role,
            )
            self._users.append(user)
            return user

    def add_user_if_unique(self, username: str, email: str, hashed_password: str, role: str) -> UserRecord:
        """Check username/email uniqueness and insert under one lock acquisition."""
        with self._lock:
            if self.get_user_by_username(username):
                raise ValidationError("Username already exists")
            if self.get_user_by_email(email):
                raise ValidationError("Email already registered")
            return self.add_user(username, email, hashed_password, role)

    def get_user(self, user_id: int) -> Optional[UserRecord]:
        with self._lock:
            return next((u for u in self._users if u.id == user_id), None)

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        with self._lock:
            return next((u for u in self._users if u.username == username), None)

    def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        with self._lock:
            return next((u for u in self._users if u.email == email), None)

    def list_users(self) -> List[UserRecord]:
        with self._lock:
            return list(self._users)


def seed_demo_data(storage: MemoryStorage) -> None:
    """Demo managers and one open Condorcet election."""
    storage.add_user("admin", "admin@electora.com", hash_password("admin123"), MANAGER_ROLE)
    storage.add_user("manager", "manager@electora.com", hash_password("manager456"), MANAGER_ROLE)
    storage.add_election(Election(
        id="1",
        title="Sample Election",
        status=ElectionStatus.ACTIVE,
        contest_type=ContestType.CONDORCET,
        categories=[
            Category(
                id="cat1",
                name="President",
                candidates=[
                    Candidate(name="Alice Johnson", description="Experienced leader"),
                    Candidate(name="Bob Smith", description="Innovative thinker"),
                    Candidate(name="Carol Davis", description="Community advocate"),
                ],
                num_winners=1,
            )
        ],
    ))
    logger.info("Seeded demo users and sample election")
