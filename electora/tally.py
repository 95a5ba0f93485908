"""
Result computation for the four supported contest types.

Every function here is a pure function of a category definition and the
ballots cast for it. Inputs are never mutated and nothing is cached, so the
same input always yields the same result regardless of call order.

Ballots are assumed to have passed validate_ballots() at submission time.
The tallies still skip unknown names and repeated entries rather than fail.
"""

import logging
from itertools import combinations
from typing import Any, Dict, Iterable, List, Optional, Sequence

from electora.exceptions import ValidationError
from electora.models.election_model import Category, ContestType, Election
from electora.models.vote_model import Ballot, Vote

logger = logging.getLogger(__name__)

NO_CONDORCET_WINNER = "No Condorcet winner"


def pair_key(first: str, second: str) -> str:
    return f"{first} vs {second}"


def borda_points(num_candidates: int, position: int) -> int:
    """Points for rank position `position` (0 = most preferred)."""
    return max(num_candidates - 1 - position, 0)


def _ranking(preferences: Optional[Sequence[str]], candidates: Sequence[str]) -> List[str]:
    # known names only, first occurrence wins
    known = set(candidates)
    seen = set()
    ranking = []
    for name in preferences or []:
        if name in known and name not in seen:
            seen.add(name)
            ranking.append(name)
    return ranking


def _top_candidates(tally: Dict[str, int], candidates: Sequence[str]) -> List[str]:
    if not candidates:
        return []
    best = max(tally[name] for name in candidates)
    return [name for name in candidates if tally[name] == best]


def condorcet_results(category: Category, ballots: Sequence[Ballot]) -> Dict[str, Any]:
    candidates = category.candidate_names
    pairs = list(combinations(candidates, 2))
    pairwise = {pair_key(a, b): {"wins": 0, "losses": 0} for a, b in pairs}

    for ballot in ballots:
        position = {name: i for i, name in enumerate(_ranking(ballot.preferences, candidates))}
        for a, b in pairs:
            # an unranked candidate is indifferent, not a loss
            if a not in position or b not in position:
                continue
            if position[a] < position[b]:
                pairwise[pair_key(a, b)]["wins"] += 1
            else:
                pairwise[pair_key(a, b)]["losses"] += 1

    candidate_scores = {name: {"wins": 0, "losses": 0} for name in candidates}
    for a, b in pairs:
        result = pairwise[pair_key(a, b)]
        if result["wins"] > result["losses"]:
            candidate_scores[a]["wins"] += 1
            candidate_scores[b]["losses"] += 1
        elif result["losses"] > result["wins"]:
            candidate_scores[b]["wins"] += 1
            candidate_scores[a]["losses"] += 1

    unbeaten = [name for name in candidates if candidate_scores[name]["losses"] == 0]
    winner = unbeaten[0] if len(unbeaten) == 1 else None

    return {
        "method": ContestType.CONDORCET.value,
        "pairwiseResults": pairwise,
        "candidateScores": candidate_scores,
        "condorcetWinner": winner,
        "hasCondorcetWinner": winner is not None,
        "message": None if winner is not None else NO_CONDORCET_WINNER,
        "winners": [winner] if winner is not None else [],
        "totalVotes": len(ballots),
    }


def plurality_results(category: Category, ballots: Sequence[Ballot]) -> Dict[str, Any]:
    candidates = category.candidate_names
    vote_counts = {name: 0 for name in candidates}
    for ballot in ballots:
        if ballot.selected and ballot.selected[0] in vote_counts:
            vote_counts[ballot.selected[0]] += 1

    return {
        "method": ContestType.PLURALITY.value,
        "voteCounts": vote_counts,
        "winners": _top_candidates(vote_counts, candidates),
        "totalVotes": len(ballots),
    }


def approval_results(category: Category, ballots: Sequence[Ballot]) -> Dict[str, Any]:
    candidates = category.candidate_names
    vote_counts = {name: 0 for name in candidates}
    for ballot in ballots:
        for name in set(ballot.selected or []):
            if name in vote_counts:
                vote_counts[name] += 1

    return {
        "method": ContestType.APPROVAL.value,
        "voteCounts": vote_counts,
        "winners": _top_candidates(vote_counts, candidates),
        "totalVotes": len(ballots),
    }


def borda_results(category: Category, ballots: Sequence[Ballot]) -> Dict[str, Any]:
    candidates = category.candidate_names
    num_candidates = len(candidates)
    scores = {name: 0 for name in candidates}
    for ballot in ballots:
        for position, name in enumerate(_ranking(ballot.preferences, candidates)):
            scores[name] += borda_points(num_candidates, position)

    return {
        "method": ContestType.BORDA.value,
        "scores": scores,
        "winners": _top_candidates(scores, candidates),
        "totalVotes": len(ballots),
    }


CALCULATORS = {
    ContestType.CONDORCET: condorcet_results,
    ContestType.PLURALITY: plurality_results,
    ContestType.APPROVAL: approval_results,
    ContestType.BORDA: borda_results,
}


def category_ballots(category_id: str, votes: Iterable[Vote]) -> List[Ballot]:
    """Collect the ballot each vote cast for one category."""
    ballots = []
    for vote in votes:
        ballot = vote.ballot_for(category_id)
        if ballot is not None:
            ballots.append(ballot)
    return ballots


def calculate_results(election: Election, votes: Sequence[Vote]) -> Dict[str, Any]:
    calculator = CALCULATORS[ContestType(election.contest_type)]
    categories = []
    for category in election.categories:
        ballots = category_ballots(category.id, votes)
        categories.append({
            "categoryId": category.id,
            "categoryName": category.name,
            "results": calculator(category, ballots),
        })
    logger.debug(f"Computed {election.contest_type} results for election {election.id} from {len(votes)} votes")
    return {"contestType": ContestType(election.contest_type).value, "categories": categories}


# ------------------------------
# Ballot validation
# ------------------------------

def _check_ranking(contest_type: ContestType, category: Category, ballot: Ballot) -> None:
    if ballot.preferences is None:
        raise ValidationError(
            f"{contest_type.value} voting requires preference rankings",
            {"categoryId": category.id},
        )
    candidates = category.candidate_names
    if len(ballot.preferences) != len(candidates) or set(ballot.preferences) != set(candidates):
        raise ValidationError("All candidates must be ranked", {"categoryId": category.id})


def _check_selection(contest_type: ContestType, category: Category, ballot: Ballot) -> None:
    if ballot.selected is None:
        if contest_type == ContestType.PLURALITY:
            raise ValidationError("Plurality voting requires exactly one selection", {"categoryId": category.id})
        raise ValidationError("Approval voting requires selected candidates", {"categoryId": category.id})
    if contest_type == ContestType.PLURALITY and len(ballot.selected) != 1:
        raise ValidationError("Plurality voting requires exactly one selection", {"categoryId": category.id})
    if len(set(ballot.selected)) != len(ballot.selected):
        raise ValidationError("A candidate can only be selected once", {"categoryId": category.id})
    unknown = [name for name in ballot.selected if name not in category.candidate_names]
    if unknown:
        raise ValidationError(
            f"Unknown candidate: {unknown[0]}",
            {"categoryId": category.id},
        )


def validate_ballots(election: Election, ballots: Optional[Sequence[Ballot]]) -> None:
    """Raise ValidationError unless the ballots are a well-formed vote for this election."""
    if ballots is None:
        raise ValidationError("Invalid vote data")

    voted = [ballot.category_id for ballot in ballots]
    if any(category.id not in voted for category in election.categories):
        raise ValidationError("You must vote in all categories")
    if len(set(voted)) != len(voted):
        raise ValidationError("Each category can only be voted on once")

    contest_type = ContestType(election.contest_type)
    for ballot in ballots:
        category = election.get_category(ballot.category_id)
        if category is None:
            raise ValidationError("Invalid category ID", {"categoryId": ballot.category_id})
        if contest_type in (ContestType.CONDORCET, ContestType.BORDA):
            _check_ranking(contest_type, category, ballot)
        else:
            _check_selection(contest_type, category, ballot)
