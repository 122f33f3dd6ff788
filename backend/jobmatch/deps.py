"""
Shared FastAPI dependencies. Tests swap these via ``app.dependency_overrides``.
"""

from functools import lru_cache

from .components.matching.repository import InMemoryMatchScoreRepository, MatchScoreRepository
from .components.matching.service import MatchAnalysisService


@lru_cache(maxsize=1)
def get_match_analysis_service() -> MatchAnalysisService:
    return MatchAnalysisService()


@lru_cache(maxsize=1)
def get_match_score_repository() -> MatchScoreRepository:
    return InMemoryMatchScoreRepository()


__all__ = ["get_match_analysis_service", "get_match_score_repository"]
