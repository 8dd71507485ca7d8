"""Shared pytest fixtures and markers for all tests."""

import random

import pytest

from tribes.engine.context import TurnContext
from tribes.models.hexmap import HexData
from tribes.models.state import Chief, GameState, Garrison, Tribe
from tribes.spatial import get_hexes_in_range, parse_hex_coords

HOME_A = "050.050"
HOME_B = "046.050"


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks multi-turn scenario tests"
    )


class ScriptedRandom(random.Random):
    """Random generator whose first `random()` calls return fixed values.

    `uniform` is built on `random()`, so it is scripted too. Once the script
    runs out the generator falls back to its seeded stream.
    """

    def __init__(self, values, seed=0):
        super().__init__(seed)
        self._script = list(values)

    def random(self):
        if self._script:
            return self._script.pop(0)
        return super().random()


def plains_map(radius: int = 4) -> list[HexData]:
    """An all-plains hex disk around 050.050."""
    hexes = []
    for key in sorted(get_hexes_in_range((0, 0), radius)):
        q, r = parse_hex_coords(key)
        hexes.append(HexData(q=q, r=r))
    return hexes


def build_tribe(tribe_id: str, location: str, troops: int = 20, weapons: int = 10, chiefs=(), **kwargs) -> Tribe:
    """A tribe with a single home garrison."""
    return Tribe(
        id=tribe_id,
        tribe_name=tribe_id.capitalize(),
        location=location,
        garrisons={
            location: Garrison(troops=troops, weapons=weapons, chiefs=[Chief(name=n) for n in chiefs])
        },
        explored_hexes=[location],
        **kwargs,
    )


@pytest.fixture
def make_tribe():
    """Factory for tribes with one home garrison."""
    return build_tribe


@pytest.fixture
def state():
    """Two neutral tribes four hexes apart on a radius-4 plains map.

    alpha sits at 050.050 with chief "Ash", beta at 046.050 with chief "Birch".
    """
    return GameState(
        turn=5,
        map_data=plains_map(),
        tribes=[
            build_tribe("alpha", HOME_A, chiefs=["Ash"]),
            build_tribe("beta", HOME_B, chiefs=["Birch"]),
        ],
        rng_seed=7,
    )


@pytest.fixture
def ctx(state):
    """Turn context over the two-tribe state with a seeded generator."""
    return TurnContext(state=state, rng=random.Random(0))


@pytest.fixture
def scripted_ctx(state):
    """Factory for a turn context whose first random() draws are fixed."""
    def _make(*values):
        return TurnContext(state=state, rng=ScriptedRandom(values))
    return _make
