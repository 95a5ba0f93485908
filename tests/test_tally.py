"""
Tests for result computation and ballot validation.

Covers the four contest types, tie reporting, the Condorcet winner rule,
and the shape checks applied to ballots before they are stored.
"""

import pytest

from conftest import make_category, make_election
from electora.exceptions import ValidationError
from electora.models.election_model import Category, ContestType
from electora.models.vote_model import Ballot, Vote
from electora.tally import (
    NO_CONDORCET_WINNER,
    approval_results,
    borda_points,
    borda_results,
    calculate_results,
    condorcet_results,
    plurality_results,
    validate_ballots,
)


def ranked(*rankings, category_id="cat1"):
    return [Ballot(category_id=category_id, preferences=list(r)) for r in rankings]


def chosen(*selections, category_id="cat1"):
    return [Ballot(category_id=category_id, selected=list(s)) for s in selections]


class TestCondorcet:
    """Pairwise comparison and Condorcet winner"""

    def test_clear_winner_beats_everyone(self):
        category = make_category(["A", "B", "C"])
        result = condorcet_results(category, ranked("ABC", "ACB", "BAC"))
        assert result["condorcetWinner"] == "A"
        assert result["winners"] == ["A"]
        assert result["hasCondorcetWinner"] is True
        assert result["candidateScores"]["A"] == {"wins": 2, "losses": 0}

    def test_pairwise_counts(self):
        category = make_category(["A", "B", "C"])
        result = condorcet_results(category, ranked("ABC", "BAC", "CBA"))
        assert result["pairwiseResults"]["A vs B"] == {"wins": 1, "losses": 2}
        assert result["pairwiseResults"]["A vs C"] == {"wins": 2, "losses": 1}
        assert result["pairwiseResults"]["B vs C"] == {"wins": 2, "losses": 1}
        assert result["condorcetWinner"] == "B"

    def test_cyclic_preferences_have_no_winner(self):
        """Each candidate wins one match-up and loses one"""
        category = make_category(["A", "B", "C"])
        result = condorcet_results(category, ranked("ABC", "BCA", "CAB"))
        assert result["condorcetWinner"] is None
        assert result["winners"] == []
        assert result["message"] == NO_CONDORCET_WINNER
        for name in "ABC":
            assert result["candidateScores"][name] == {"wins": 1, "losses": 1}

    def test_two_unbeaten_candidates_means_no_winner(self):
        category = make_category(["A", "B"])
        result = condorcet_results(category, ranked("AB", "BA"))
        assert result["pairwiseResults"]["A vs B"] == {"wins": 1, "losses": 1}
        assert result["hasCondorcetWinner"] is False
        assert result["winners"] == []

    def test_unique_unbeaten_candidate_wins_despite_other_tie(self):
        """A beats B and C; B and C tie with each other"""
        category = make_category(["A", "B", "C"])
        result = condorcet_results(category, ranked("ABC", "ACB"))
        assert result["pairwiseResults"]["B vs C"] == {"wins": 1, "losses": 1}
        assert result["condorcetWinner"] == "A"

    def test_omitted_candidate_is_indifferent(self):
        category = make_category(["A", "B", "C"])
        result = condorcet_results(category, ranked("AB"))
        assert result["pairwiseResults"]["A vs B"] == {"wins": 1, "losses": 0}
        assert result["pairwiseResults"]["A vs C"] == {"wins": 0, "losses": 0}
        assert result["pairwiseResults"]["B vs C"] == {"wins": 0, "losses": 0}
        assert result["candidateScores"]["C"] == {"wins": 0, "losses": 0}
        # A and C both unbeaten
        assert result["condorcetWinner"] is None

    def test_no_ballots(self):
        category = make_category(["A", "B", "C"])
        result = condorcet_results(category, [])
        assert result["totalVotes"] == 0
        assert result["condorcetWinner"] is None

    def test_inputs_not_mutated(self):
        category = make_category(["A", "B", "C"])
        ballots = ranked("CBA", "BCA")
        before = [b.model_dump() for b in ballots]
        category_before = category.model_dump()
        first = condorcet_results(category, ballots)
        second = condorcet_results(category, ballots)
        assert first == second
        assert [b.model_dump() for b in ballots] == before
        assert category.model_dump() == category_before


class TestPlurality:
    """Single-choice tallying"""

    def test_simple_majority(self):
        category = make_category(["A", "B", "C"])
        result = plurality_results(category, chosen("A", "A", "B"))
        assert result["voteCounts"] == {"A": 2, "B": 1, "C": 0}
        assert result["winners"] == ["A"]
        assert result["totalVotes"] == 3

    def test_tie_reports_all_leaders(self):
        category = make_category(["A", "B", "C"])
        result = plurality_results(category, chosen("B", "A", "C", "B", "A"))
        assert result["winners"] == ["A", "B"]

    def test_counts_never_exceed_ballots(self):
        category = make_category(["A", "B"])
        ballots = chosen("A", "B", "A", "A")
        result = plurality_results(category, ballots)
        assert all(count <= len(ballots) for count in result["voteCounts"].values())
        assert sum(result["voteCounts"].values()) == len(ballots)

    def test_no_ballots_everyone_ties(self):
        category = make_category(["A", "B"])
        result = plurality_results(category, [])
        assert result["winners"] == ["A", "B"]


class TestApproval:
    """Approval tallying"""

    def test_counts_each_approval(self):
        category = make_category(["A", "B", "C"])
        result = approval_results(category, chosen("AB", "B", "BC", ""))
        assert result["voteCounts"] == {"A": 1, "B": 3, "C": 1}
        assert result["winners"] == ["B"]
        assert result["totalVotes"] == 4

    def test_tie(self):
        category = make_category(["A", "B", "C"])
        result = approval_results(category, chosen("AC", "CA"))
        assert result["winners"] == ["A", "C"]

    def test_counts_never_exceed_ballots(self):
        category = make_category(["A", "B", "C"])
        ballots = chosen("ABC", "AB", "A")
        result = approval_results(category, ballots)
        assert max(result["voteCounts"].values()) <= len(ballots)


class TestBorda:
    """Positional scoring"""

    def test_points_by_position(self):
        assert [borda_points(4, k) for k in range(4)] == [3, 2, 1, 0]

    def test_scores(self):
        category = make_category(["A", "B", "C"])
        result = borda_results(category, ranked("ABC", "BAC", "ACB"))
        assert result["scores"] == {"A": 5, "B": 3, "C": 1}
        assert result["winners"] == ["A"]

    @pytest.mark.parametrize("names", [["A", "B"], ["A", "B", "C"], ["A", "B", "C", "D", "E"]])
    def test_single_ballot_total(self, names):
        category = make_category(names)
        result = borda_results(category, ranked(list(reversed(names))))
        n = len(names)
        assert sum(result["scores"].values()) == n * (n - 1) // 2

    def test_tie(self):
        category = make_category(["A", "B"])
        result = borda_results(category, ranked("AB", "BA"))
        assert result["winners"] == ["A", "B"]


class TestCalculateResults:
    """Per-category dispatch on contest type"""

    def test_collects_ballots_per_category(self):
        election = make_election(
            ContestType.PLURALITY,
            categories=[make_category(["A", "B"], "c1", "Chair"), make_category(["X", "Y"], "c2", "Treasurer")],
        )
        votes = [
            Vote(id="1", election_id="100", votes=chosen("A", category_id="c1") + chosen("Y", category_id="c2")),
            Vote(id="2", election_id="100", votes=chosen("A", category_id="c1") + chosen("X", category_id="c2")),
        ]
        results = calculate_results(election, votes)
        assert results["contestType"] == "Plurality"
        chair, treasurer = results["categories"]
        assert chair["categoryId"] == "c1"
        assert chair["categoryName"] == "Chair"
        assert chair["results"]["winners"] == ["A"]
        assert treasurer["results"]["winners"] == ["X", "Y"]

    def test_borda_dispatch(self):
        election = make_election(ContestType.BORDA)
        votes = [Vote(id="1", election_id="100", votes=ranked("CBA"))]
        results = calculate_results(election, votes)
        assert results["categories"][0]["results"]["method"] == "Borda"
        assert results["categories"][0]["results"]["winners"] == ["C"]


class TestValidateBallots:
    """Ballot shape checks at submission time"""

    def test_condorcet_requires_preferences(self):
        election = make_election(ContestType.CONDORCET)
        with pytest.raises(ValidationError, match="requires preference rankings"):
            validate_ballots(election, chosen("A"))

    def test_condorcet_requires_full_ranking(self):
        election = make_election(ContestType.CONDORCET)
        with pytest.raises(ValidationError, match="All candidates must be ranked"):
            validate_ballots(election, ranked("AB"))

    def test_borda_rejects_duplicate_ranking(self):
        election = make_election(ContestType.BORDA)
        with pytest.raises(ValidationError):
            validate_ballots(election, ranked("AAB"))

    def test_plurality_requires_exactly_one(self):
        election = make_election(ContestType.PLURALITY)
        with pytest.raises(ValidationError, match="exactly one selection"):
            validate_ballots(election, chosen("AB"))
        with pytest.raises(ValidationError, match="exactly one selection"):
            validate_ballots(election, ranked("ABC"))

    def test_plurality_rejects_unknown_candidate(self):
        election = make_election(ContestType.PLURALITY)
        with pytest.raises(ValidationError, match="Unknown candidate"):
            validate_ballots(election, chosen("Z"))

    def test_approval_allows_empty_selection(self):
        election = make_election(ContestType.APPROVAL)
        validate_ballots(election, chosen(""))

    def test_approval_requires_selected(self):
        election = make_election(ContestType.APPROVAL)
        with pytest.raises(ValidationError, match="requires selected candidates"):
            validate_ballots(election, [Ballot(category_id="cat1")])

    def test_missing_category(self):
        election = make_election(
            ContestType.PLURALITY,
            categories=[make_category(["A", "B"], "c1"), make_category(["X", "Y"], "c2")],
        )
        with pytest.raises(ValidationError, match="vote in all categories"):
            validate_ballots(election, chosen("A", category_id="c1"))

    def test_unknown_category(self):
        election = make_election(ContestType.PLURALITY)
        with pytest.raises(ValidationError, match="Invalid category ID"):
            validate_ballots(election, chosen("A") + chosen("A", category_id="other"))

    def test_missing_vote_data(self):
        with pytest.raises(ValidationError, match="Invalid vote data"):
            validate_ballots(make_election(), None)

    def test_well_formed_condorcet(self):
        validate_ballots(make_election(ContestType.CONDORCET), ranked("CAB"))


def test_category_candidate_names_keep_order():
    category = Category(id="x", name="X", candidates=[{"name": "Zed"}, {"name": "Amy"}])
    assert category.candidate_names == ["Zed", "Amy"]
