"""Static catalogs: technologies and assets."""

from tribes.data.assets import ASSETS, GameAsset, get_asset
from tribes.data.technologies import (
    TECHNOLOGIES,
    Effect,
    EffectType,
    Technology,
    get_technology,
    prerequisites_met,
    tier_one_technologies,
)

__all__ = [
    "ASSETS",
    "GameAsset",
    "get_asset",
    "TECHNOLOGIES",
    "Effect",
    "EffectType",
    "Technology",
    "get_technology",
    "prerequisites_met",
    "tier_one_technologies",
]
