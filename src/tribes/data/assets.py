"""Game asset catalog.

Assets are unique items a tribe owns. Their effects reuse the technology
effect vocabulary but are subject to diminishing returns and hard caps (see
tribes.engine.effects).
"""

from __future__ import annotations

from dataclasses import dataclass

from tribes.data.technologies import Effect, EffectType


@dataclass(frozen=True)
class GameAsset:
    name: str
    effects: tuple[Effect, ...]


E = EffectType

ASSETS: tuple[GameAsset, ...] = (
    GameAsset("Dune_Buggy", (
        Effect(E.MOVEMENT_SPEED, 0.20),
        Effect(E.COMBAT_DEFENSE, -0.10, terrain="Plains"),
        Effect(E.COMBAT_DEFENSE, -0.10, terrain="Desert"),
    )),
    GameAsset("Ghillie_Mantle", (Effect(E.COMBAT_DEFENSE, 0.25, terrain="Forest"),)),
    GameAsset("Advanced_Sonar", (Effect(E.SCAVENGE_YIELD, 0.20, resource="Scrap"),)),
    GameAsset("Hydro_Purifier", (Effect(E.SCAVENGE_YIELD, 0.20, resource="Food"),)),
    GameAsset("Bunker_Buster", (Effect(E.COMBAT_ATTACK, 0.25, terrain="Ruins"),)),
    GameAsset("Junk_Forged_Armor", (Effect(E.COMBAT_DEFENSE, 0.05),)),
    GameAsset("Whetstone", (Effect(E.COMBAT_ATTACK, 0.05),)),
    GameAsset("Seed_Vault", (Effect(E.PASSIVE_FOOD, 5),)),
    GameAsset("Scrap_Compressor", (Effect(E.PASSIVE_SCRAP, 5),)),
    GameAsset("Mountaineering_Gear", (Effect(E.COMBAT_ATTACK, 0.20, terrain="Mountains"),)),
    GameAsset("Swamp_Skiff", (Effect(E.COMBAT_DEFENSE, 0.20, terrain="Swamp"),)),
    GameAsset("Desert_Cloaks", (Effect(E.COMBAT_DEFENSE, 0.20, terrain="Desert"),)),
    GameAsset("Barbed_Wire", (Effect(E.COMBAT_DEFENSE, 0.20, terrain="Plains"),)),
    GameAsset("Ambush_Netting", (Effect(E.COMBAT_ATTACK, 0.20, terrain="Forest"),)),
    GameAsset("Scrap_Cannon", (Effect(E.COMBAT_ATTACK, 0.20, terrain="Wasteland"),)),
    GameAsset("Radiation_Suit", (Effect(E.COMBAT_DEFENSE, 0.25, terrain="Radiation"),)),
    GameAsset("Scouts_Medkit", (Effect(E.SCAVENGE_YIELD, 0.15, resource="Food"),)),
    GameAsset("Masterwork_Tools", (Effect(E.SCAVENGE_YIELD, 0.15, resource="Weapons"),)),
    GameAsset("Ballistic_Shields", (Effect(E.COMBAT_DEFENSE, 0.10, terrain="Ruins"),)),
    GameAsset("Ratchet_Set", (Effect(E.SCAVENGE_YIELD, 0.15, resource="Scrap"),)),
)

_BY_NAME = {asset.name: asset for asset in ASSETS}


def get_asset(name: str) -> GameAsset | None:
    """Look up an asset by name."""
    return _BY_NAME.get(name)
