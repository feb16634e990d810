"""
Reconciliation

Accounts for every requested exercise id against what the catalog actually
returned.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from src.routine_service.resolution.models import Exercise, LookupSuccess, ResolutionOutcome

logger = logging.getLogger(__name__)


def unique_ids(exercise_ids: Iterable[int]) -> list[int]:
    """Drop duplicate ids, keeping first-seen order."""
    return list(dict.fromkeys(exercise_ids))


def reconcile(requested: Iterable[int], success: LookupSuccess) -> ResolutionOutcome:
    """
    Partition the requested ids into resolved and missing.

    An id counts as resolved only if the catalog returned data for it. The
    catalog's own missing list is checked but never trusted, so an id the
    catalog silently dropped still shows up as missing.

    Args:
        requested: Ids as the caller gave them, duplicates allowed
        success: The catalog's answer

    Returns:
        ResolutionOutcome covering each unique requested id exactly once
    """
    wanted = unique_ids(requested)
    wanted_set = set(wanted)

    resolved: dict[int, Exercise] = {}
    for exercise in success.exercises:
        if exercise.id not in wanted_set:
            logger.debug(f"Ignoring unrequested exercise {exercise.id} from catalog")
            continue
        resolved.setdefault(exercise.id, exercise)

    missing = tuple(i for i in wanted if i not in resolved)

    reported = set(success.missing_ids) & wanted_set
    if reported != set(missing):
        logger.warning(
            "Exercise catalog missing list disagrees with returned data: "
            f"reported={sorted(reported)} actual={sorted(missing)}"
        )

    return ResolutionOutcome(resolved=resolved, missing=missing)
