from __future__ import annotations

from collections.abc import Sequence

from loguru import logger

from sherlok.exceptions import SimulationError
from sherlok.simulation.models import Player


def evolve_generation(players: Sequence[Player]) -> int:
    """Elitist step: every player below the best score is reset to 0.

    Ties at the best score all survive with their score. Returns the best score.
    """
    if not players:
        raise SimulationError("Cannot evolve an empty population")

    best = max(player.score for player in players)
    survivors = 0
    for player in players:
        if player.score < best:
            player.score = 0
        else:
            survivors += 1

    logger.debug("[Evolution] best={} survivors={}/{}", best, survivors, len(players))
    return best
