"""Model capability profiling and category ranking."""

from promptroute.profiling.profiler import (
    KnownProfileTable,
    ModelProfiler,
    load_known_profiles,
)
from promptroute.profiling.ranking import (
    CategoryRanking,
    RankingRequirements,
    get_best_model_for_category,
    rank_models_for_category,
)

__all__ = [
    "ModelProfiler",
    "KnownProfileTable",
    "load_known_profiles",
    "CategoryRanking",
    "RankingRequirements",
    "rank_models_for_category",
    "get_best_model_for_category",
]
