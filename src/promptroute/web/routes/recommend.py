"""Routing API routes: recommend, classify, profiles, cache, health."""

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from promptroute.profiling import rank_models_for_category
from promptroute.routing.router import PromptRouter
from promptroute.types import PromptProperties, PromptType

router = APIRouter()


# ── Pydantic models ────────────────────────────────────

class RecommendRequest(BaseModel):
    prompt: str = Field(min_length=1)
    accuracy: float = Field(0.5, ge=0.0, le=1.0)
    cost: float = Field(0.5, ge=0.0, le=1.0)
    speed: float = Field(0.5, ge=0.0, le=1.0)
    token_limit: int = Field(4000, gt=0)
    reasoning: bool = False

    def properties(self) -> PromptProperties:
        return PromptProperties(
            accuracy=self.accuracy,
            cost=self.cost,
            speed=self.speed,
            token_limit=self.token_limit,
            reasoning=self.reasoning,
        )


class ClassifyRequest(BaseModel):
    prompt: str = Field(min_length=1)


def _router(request: Request) -> PromptRouter:
    return request.app.state.router


async def _ready_router(request: Request) -> PromptRouter:
    """The app router, initialized on demand if startup could not do it."""
    r = _router(request)
    if not r.is_initialized:
        async with request.app.state.init_lock:
            if not r.is_initialized:
                await r.initialize()
    return r


# ── Endpoints ──────────────────────────────────────────

@router.post("/recommend")
async def recommend(body: RecommendRequest, r: PromptRouter = Depends(_ready_router)):
    selection = await r.recommend(body.prompt, body.properties())
    data = selection.to_dict()
    data["candidates"] = list(selection.candidates)
    return data


@router.post("/classify")
async def classify(body: ClassifyRequest, request: Request):
    result = await _router(request).classify(body.prompt)
    return {
        "category": result.category.to_dict(),
        "method": result.method,
        "semantic": result.semantic.to_dict() if result.semantic else None,
        "keyword": result.keyword.to_dict() if result.keyword else None,
    }


@router.get("/profiles")
async def list_profiles(
    request: Request,
    category: PromptType | None = None,
    limit: int = 50,
    reasoning: bool = False,
):
    profiles = await _router(request).list_profiles()
    if reasoning:
        profiles = [p for p in profiles if p.characteristics.is_reasoning]

    if category is not None:
        ranking = rank_models_for_category(profiles, category, limit=limit)
        return {
            "category": category.value,
            "count": len(ranking.ranked),
            "profiles": [
                {**r.profile.to_dict(), "score": round(r.score, 4), "reasoning": r.reasoning}
                for r in ranking.ranked
            ],
        }

    profiles = sorted(profiles, key=lambda p: p.id)[:limit]
    return {"count": len(profiles), "profiles": [p.to_dict() for p in profiles]}


@router.delete("/cache")
async def clear_cache(request: Request):
    _router(request).clear_cache()
    return {"status": "cleared"}


@router.get("/health")
async def health(request: Request):
    r = _router(request)
    return {
        "status": "ok" if r.is_initialized else "starting",
        **r.stats,
    }
