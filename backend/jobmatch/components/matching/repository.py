"""Storage interface for saved match scores."""

from __future__ import annotations

import threading
from typing import Dict, Optional, Protocol

from .schemas import MatchScore


class MatchScoreRepository(Protocol):
    def save_match_score(self, score: MatchScore) -> MatchScore:
        ...

    def get_match_score(self, job_id: str) -> Optional[MatchScore]:
        ...


class InMemoryMatchScoreRepository:
    """Keeps the latest score per job id for the lifetime of the process."""

    def __init__(self) -> None:
        self._scores: Dict[str, MatchScore] = {}
        self._lock = threading.Lock()

    def save_match_score(self, score: MatchScore) -> MatchScore:
        with self._lock:
            self._scores[score.job_id] = score
        return score

    def get_match_score(self, job_id: str) -> Optional[MatchScore]:
        with self._lock:
            return self._scores.get(job_id)
