from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from .models import TicketSolution


def lead_segment_name(solution: TicketSolution) -> Optional[str]:
    """Display name of the first train in *solution*, or ``None``."""
    trains = solution.solution.trains
    if not trains:
        return None
    return trains[0].name


def matches(
    solution: TicketSolution,
    categories: Iterable[str],
    denominations: Iterable[str],
) -> bool:
    """``True`` if any train has a wanted category or denomination."""
    categories = set(categories)
    denominations = set(denominations)
    return any(
        train.train_category in categories
        or train.denomination in denominations
        for train in solution.solution.trains
    )


def filter_solutions(
    solutions: Sequence[TicketSolution],
    categories: Sequence[str],
    denominations: Sequence[str],
) -> List[TicketSolution]:
    """Keep the solutions matching the configured train criteria.

    The two criteria are alternatives: a category hit on one train or a
    denomination hit on another is enough. Order is preserved and empty
    criteria keep nothing.
    """
    wanted_categories = set(categories)
    wanted_denominations = set(denominations)
    if not wanted_categories and not wanted_denominations:
        return []
    return [
        sol
        for sol in solutions
        if matches(sol, wanted_categories, wanted_denominations)
    ]


__all__ = ["filter_solutions", "lead_segment_name", "matches"]
