import pytest
from pydantic import ValidationError

from sherlok.exceptions import SimulationError
from sherlok.simulation.evolution import evolve_generation
from sherlok.simulation.models import GenerationRecord, Player


def _population(scores):
    return [Player(id=i + 1, score=s) for i, s in enumerate(scores)]


def test_only_best_keeps_score():
    players = _population([5, 12, 3, 0])
    assert evolve_generation(players) == 12
    assert [p.score for p in players] == [0, 12, 0, 0]


def test_ties_at_best_all_survive():
    players = _population([7, 9, 9, 1])
    before = [p.score for p in players]
    best = evolve_generation(players)
    after = [p.score for p in players]
    assert max(after) == max(before) == best
    for b, a in zip(before, after):
        assert a == (b if b == best else 0)


def test_all_zero_population_is_unchanged():
    players = _population([0, 0, 0])
    assert evolve_generation(players) == 0
    assert [p.score for p in players] == [0, 0, 0]


def test_ids_and_predictions_are_kept():
    players = _population([1, 2])
    players[0].predictions = [4, 5]
    evolve_generation(players)
    assert [p.id for p in players] == [1, 2]
    assert players[0].predictions == [4, 5]


def test_empty_population_is_a_programming_error():
    with pytest.raises(SimulationError):
        evolve_generation([])


def test_player_score_cannot_go_negative():
    player = Player(id=1)
    with pytest.raises(ValidationError):
        player.score = -1


def test_generation_record_is_immutable():
    record = GenerationRecord(generation=1, score=10)
    with pytest.raises(ValidationError):
        record.score = 11
