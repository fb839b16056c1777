import pytest


class ScriptedRandom:
    """Hands out pre-chosen die results, in order."""

    def __init__(self, values):
        self._values = list(values)
        self.calls = []

    def randint(self, a, b):
        if not self._values:
            raise AssertionError("ScriptedRandom ran out of values")
        value = self._values.pop(0)
        assert a <= value <= b, f"{value} is outside [{a}, {b}]"
        self.calls.append((a, b))
        return value


@pytest.fixture
def scripted_rng():
    return lambda *values: ScriptedRandom(values)
