import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from ...deps import get_match_analysis_service, get_match_score_repository
from .errors import InvalidInputError, MatchAnalysisFailed
from .repository import MatchScoreRepository
from .schemas import MatchScore, ScoreBreakdown, recommendation_text
from .service import MatchAnalysisService

logger = logging.getLogger("jobmatch.api.matches")

router = APIRouter(prefix="/matches", tags=["Matches"])


class AnalyzeMatchRequest(BaseModel):
    # Raw dicts so missing fields surface as InvalidInputError (400), not 422.
    profile: Dict[str, Any]
    job: Optional[Dict[str, Any]] = None
    jobs: Optional[List[Dict[str, Any]]] = None
    save: bool = False


class BreakdownRequest(BaseModel):
    profile: Dict[str, Any]
    job: Dict[str, Any]


def _job_label(job: Dict[str, Any], index: int) -> str:
    return str(job.get("id") or f"jobs[{index}]")


@router.post("/analyze")
async def analyze_matches(
    data: AnalyzeMatchRequest,
    service: MatchAnalysisService = Depends(get_match_analysis_service),
    repository: MatchScoreRepository = Depends(get_match_score_repository),
):
    jobs = list(data.jobs or [])
    if data.job is not None:
        jobs.insert(0, data.job)
    if not jobs:
        raise HTTPException(status_code=400, detail="Provide either job or jobs")

    matches = []
    errors = []
    total_input = 0
    total_output = 0
    total_cost = 0.0

    # Sequential on purpose: one in-flight Claude call per request.
    for index, job in enumerate(jobs):
        try:
            analysis = await service.analyze_match(data.profile, job)
        except InvalidInputError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        except MatchAnalysisFailed as exc:
            logger.warning("Match analysis failed for job %s: %s", _job_label(job, index), exc)
            errors.append({"job_id": _job_label(job, index), "error": str(exc)})
            continue

        if data.save:
            repository.save_match_score(analysis.score)

        total_input += analysis.usage.input_tokens
        total_output += analysis.usage.output_tokens
        total_cost += analysis.usage.cost_usd
        matches.append(
            {
                "job_id": analysis.score.job_id,
                "score": analysis.score.model_dump(mode="json"),
                "recommendation_text": recommendation_text(analysis.score.recommendation),
                "usage": {**analysis.usage.model_dump(), "tokens_used": analysis.usage.tokens_used},
                "cached": analysis.cached,
            }
        )

    return {
        "matches": matches,
        "errors": errors,
        "usage": {
            "input_tokens": total_input,
            "output_tokens": total_output,
            "tokens_used": total_input + total_output,
            "cost_usd": total_cost,
        },
    }


@router.post("/breakdown", response_model=ScoreBreakdown)
async def score_breakdown(
    data: BreakdownRequest,
    service: MatchAnalysisService = Depends(get_match_analysis_service),
):
    try:
        return await service.calculate_score_breakdown(data.profile, data.job)
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except MatchAnalysisFailed as exc:
        raise HTTPException(status_code=502, detail=str(exc))


@router.delete("/cache", status_code=status.HTTP_204_NO_CONTENT)
def clear_match_cache(service: MatchAnalysisService = Depends(get_match_analysis_service)):
    service.clear_cache()


@router.get("/{job_id}", response_model=MatchScore)
def get_saved_match(
    job_id: str,
    repository: MatchScoreRepository = Depends(get_match_score_repository),
):
    score = repository.get_match_score(job_id)
    if score is None:
        raise HTTPException(status_code=404, detail="Match score not found")
    return score
