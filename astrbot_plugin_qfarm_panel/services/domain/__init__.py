"""QFarm game tables and planting recommendation."""

from .config_data import GameConfigData
from .recommendation_service import PlantingRecommender

__all__ = [
    "GameConfigData",
    "PlantingRecommender",
]
