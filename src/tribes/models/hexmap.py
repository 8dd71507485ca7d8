"""Static map models: terrain, points of interest and hexes.

The map is produced by an external generator before the first turn. The
engine never adds or removes hexes; it only mutates POI sub-state
(fortification, exhaustion, Vault looting).
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from tribes.spatial import format_hex_coords


class TerrainType(str, Enum):
    """Terrain of a hex."""

    PLAINS = "Plains"
    DESERT = "Desert"
    MOUNTAINS = "Mountains"
    FOREST = "Forest"
    RUINS = "Ruins"
    WASTELAND = "Wasteland"
    WATER = "Water"
    RADIATION = "Radiation"
    CRATER = "Crater"
    SWAMP = "Swamp"


class POIType(str, Enum):
    """Kinds of point of interest."""

    SCRAPYARD = "Scrapyard"
    FOOD_SOURCE = "Food Source"
    WEAPONS_CACHE = "WeaponsCache"
    RESEARCH_LAB = "Research Lab"
    SETTLEMENT = "Settlement"
    OUTPOST = "Outpost"
    RUINS = "Ruins POI"
    BANDIT_CAMP = "Bandit Camp"
    MINE = "Mine"
    VAULT = "Vault"
    BATTLEFIELD = "Battlefield"
    FACTORY = "Factory"
    CRATER = "Crater POI"
    RADIATION = "Radiation Zone"


class POIRarity(str, Enum):
    """Rarity tier of a POI; scales scavenging yields."""

    COMMON = "Common"
    UNCOMMON = "Uncommon"
    RARE = "Rare"
    VERY_RARE = "Very Rare"


class POI(BaseModel):
    """A point of interest sitting on a hex.

    Attributes:
        id: Stable identifier
        type: Kind of POI
        difficulty: Generator difficulty rating, 1-10
        rarity: Rarity tier
        fortified: True when an outpost fortification stands here
        outpost_owner: Tribe ID owning the fortification
        disabled_until_turn: Fortification is inactive before this turn
    """

    id: str
    type: POIType
    difficulty: int = Field(default=1, ge=1, le=10)
    rarity: POIRarity = POIRarity.COMMON
    fortified: bool = False
    outpost_owner: str | None = None
    disabled_until_turn: int | None = None

    def is_fortification_active(self, turn: int) -> bool:
        """True if the fortification counts in combat on this turn."""
        if not self.fortified:
            return False
        return self.disabled_until_turn is None or turn >= self.disabled_until_turn


class HexData(BaseModel):
    """One hex of the static map."""

    q: int
    r: int
    terrain: TerrainType = TerrainType.PLAINS
    poi: POI | None = None

    @property
    def key(self) -> str:
        """Canonical coordinate key for this hex."""
        return format_hex_coords(self.q, self.r)
