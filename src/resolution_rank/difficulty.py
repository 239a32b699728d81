"""Effective difficulty: the creator's declared difficulty blended with peer votes.

Pure functions. effective_difficulty is always derivable from the declared
value and the vote map alone.
"""

from __future__ import annotations

import math
from dataclasses import replace
from fractions import Fraction

from resolution_rank.errors import PolicyViolation
from resolution_rank.models import Resolution

MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 5


def _round_half_up(value: Fraction, places: int = 0) -> Fraction:
    scale = 10**places
    return Fraction(math.floor(value * scale + Fraction(1, 2)), scale)


def round_half_up(value: float) -> int:
    """Nearest integer, halves rounded up (2.5 -> 3)."""
    return int(_round_half_up(Fraction(value)))


def round10(value: float) -> float:
    """Round to one decimal place, halves rounded up."""
    return float(_round_half_up(Fraction(value), places=1))


def is_valid_difficulty(value: object) -> bool:
    """Integer in 1-5. bool is rejected even though it subclasses int."""
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and MIN_DIFFICULTY <= value <= MAX_DIFFICULTY
    )


def effective_difficulty(declared: int, votes: dict[str, int]) -> float:
    """Average of declared difficulty and the mean peer vote, to one decimal.

    No votes -> the declared difficulty itself. Rounds half-up.
    """
    if not votes:
        return float(declared)
    mean_vote = Fraction(sum(votes.values()), len(votes))
    blended = (Fraction(declared) + mean_vote) / 2
    return float(_round_half_up(blended, places=1))


def check_in_points(effective: float) -> int:
    """Points shown for one completed check-in: effective difficulty, half-up."""
    return round_half_up(effective)


def cast_vote(resolution: Resolution, voter_id: str, vote: int) -> Resolution:
    """Record (or overwrite) a peer difficulty vote and recompute the blend.

    Raises PolicyViolation if the voter owns the resolution, the resolution is
    private, or the vote is not an integer in 1-5. The input is not mutated.
    """
    if voter_id == resolution.owner_id:
        raise PolicyViolation("own_resolution", "Cannot vote on own resolution")
    if resolution.is_private:
        raise PolicyViolation("private_resolution", "Cannot vote on private resolution")
    if not is_valid_difficulty(vote):
        raise PolicyViolation(
            "invalid_vote",
            f"Difficulty vote must be an integer from {MIN_DIFFICULTY} to {MAX_DIFFICULTY}",
        )

    votes = {**resolution.peer_difficulty_votes, voter_id: vote}
    return replace(
        resolution,
        peer_difficulty_votes=votes,
        effective_difficulty=effective_difficulty(resolution.declared_difficulty, votes),
    )
