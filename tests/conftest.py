import pytest


class ScriptedRandom:
    """Deterministic stand-in for `random.Random`: picks by index, rolls from a list."""

    def __init__(self, picks=(), rolls=()):
        self.picks = list(picks)
        self.rolls = list(rolls)

    def choice(self, seq):
        return seq[self.picks.pop(0) if self.picks else 0]

    def random(self):
        return self.rolls.pop(0) if self.rolls else 0.5


class ExplodingRandom:
    def choice(self, seq):
        raise AssertionError("spawner must not be called")

    def random(self):
        raise AssertionError("spawner must not be called")


@pytest.fixture
def lost_board():
    return [
        [2, 4, 2, 4],
        [4, 2, 4, 2],
        [2, 4, 2, 4],
        [4, 2, 4, 2],
    ]
