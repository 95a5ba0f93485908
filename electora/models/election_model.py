from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ContestType(str, Enum):
    CONDORCET = "Condorcet"
    PLURALITY = "Plurality"
    APPROVAL = "Approval"
    BORDA = "Borda"


class ElectionStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Candidate(CamelModel):
    name: str
    description: Optional[str] = ""


class CategoryIn(CamelModel):
    id: Optional[str] = None
    name: Optional[str] = None
    candidates: Optional[List[Candidate]] = None
    num_winners: Optional[int] = None


class Category(CamelModel):
    id: str
    name: str
    candidates: List[Candidate]
    num_winners: int = Field(default=1, ge=1)

    @property
    def candidate_names(self) -> List[str]:
        return [c.name for c in self.candidates]


class ElectionCreate(CamelModel):
    """Payload for creating or editing an election. Presence is checked by the store."""

    title: Optional[str] = Field(default=None, examples=["Student Council 2025"])
    contest_type: Optional[ContestType] = None
    categories: Optional[List[CategoryIn]] = None
    allowed_voters: Optional[List[str]] = None
    end_date: Optional[datetime] = None
    is_private: Optional[bool] = None


class StatusUpdateRequest(CamelModel):
    status: ElectionStatus


class Election(CamelModel):
    id: str
    title: str
    status: ElectionStatus = ElectionStatus.DRAFT
    contest_type: ContestType
    categories: List[Category]
    voter_count: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    allowed_voters: List[str] = Field(default_factory=list)
    end_date: Optional[datetime] = None
    is_private: bool = False
    created_by: Optional[str] = None

    def get_category(self, category_id: str) -> Optional[Category]:
        for category in self.categories:
            if category.id == category_id:
                return category
        return None

    def has_ended(self, now: Optional[datetime] = None) -> bool:
        if self.end_date is None:
            return False
        now = now or datetime.now(timezone.utc)
        end = self.end_date
        # naive end dates are taken as UTC
        if end.tzinfo is None:
            end = end.replace(tzinfo=timezone.utc)
        return now > end
