import pytest
from fastapi.testclient import TestClient

from electora.config import MANAGER_ROLE, VOTER_ROLE, Settings
from electora.main import create_app
from electora.models.election_model import Candidate, Category, ContestType, Election, ElectionStatus
from electora.security import create_access_token
from electora.storage import MemoryStorage


@pytest.fixture
def settings():
    return Settings(secret_key="test-secret", seed_demo_data=False)


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def app(settings, storage):
    return create_app(settings=settings, storage=storage)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def manager_headers(settings):
    token = create_access_token({"id": 1, "username": "admin", "role": MANAGER_ROLE}, settings=settings)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def voter_headers(settings):
    token = create_access_token({"id": 7, "username": "dana", "role": VOTER_ROLE}, settings=settings)
    return {"Authorization": f"Bearer {token}"}


def make_category(names, category_id="cat1", name="President"):
    return Category(id=category_id, name=name, candidates=[Candidate(name=n) for n in names])


def make_election(contest_type=ContestType.CONDORCET, names=("A", "B", "C"), status=ElectionStatus.ACTIVE, **kwargs):
    return Election(
        id=kwargs.pop("id", "100"),
        title="Test Election",
        status=status,
        contest_type=contest_type,
        categories=kwargs.pop("categories", [make_category(list(names))]),
        **kwargs,
    )


def election_payload(contest_type="Plurality", names=("A", "B", "C"), **extra):
    payload = {
        "title": "Club Board",
        "contestType": contest_type,
        "categories": [
            {
                "id": "chair",
                "name": "Chair",
                "candidates": [{"name": n, "description": f"{n} for chair"} for n in names],
                "numWinners": 1,
            }
        ],
    }
    payload.update(extra)
    return payload
