import logging
import random
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from namedrill.application.deck_service import DeckService
from namedrill.application.scheduler import review
from namedrill.application.stats import MetricsCalculator
from namedrill.application.utils.common import now_ms
from namedrill.consts import VERSION
from namedrill.domain.errors import (
    DeckNotFoundError,
    NameDrillError,
    PersonNotFoundError,
    QueueBuildError,
)
from namedrill.domain.models import SessionOutcome, StudyMode
from namedrill.infrastructure.records import DeckRecord, PersonRecord

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("namedrill.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"NameDrill Server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info("NameDrill Server shutting down...")


app = FastAPI(
    title="NameDrill Server",
    description="Local companion API for NameDrill front-ends.",
    version=VERSION,
    lifespan=lifespan,
)

start_time = time.time()


def get_service() -> DeckService:
    from namedrill.application.config import resolve_config
    from namedrill.application.factory import get_deck_service

    return get_deck_service(resolve_config())


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, (DeckNotFoundError, PersonNotFoundError)):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, QueueBuildError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, (NameDrillError, ValueError)):
        return HTTPException(status_code=422, detail=str(e))
    logger.error(f"Request failed: {e}", exc_info=True)
    return HTTPException(status_code=500, detail=str(e))


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


class DeckSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    deck_id: str
    name: str
    emoji: str
    people_count: int
    due_count: int
    mastered_count: int
    mastery_percent: int
    last_studied: int | None


@app.get("/decks", response_model=list[DeckSummaryResponse])
def list_decks(service: DeckService = Depends(get_service)):
    """Dashboard view: every deck with due count and mastery."""
    calc = MetricsCalculator()
    now = now_ms()
    try:
        return [calc.summarize_deck(d, now) for d in service.list_decks()]
    except Exception as e:
        raise _http_error(e) from e


@app.get("/decks/{deck_id}", response_model=DeckRecord)
def get_deck(deck_id: str, service: DeckService = Depends(get_service)):
    try:
        return DeckRecord.from_domain(service.get_deck(deck_id))
    except Exception as e:
        raise _http_error(e) from e


class PlanRequest(BaseModel):
    mode: StudyMode = StudyMode.FLASH
    seed: int | None = None  # Reproducible shuffles


class PlanResponse(BaseModel):
    mode: StudyMode
    queue: list[PersonRecord]
    choices: list[list[str]]  # Person ids per queue position (choice modes)


@app.post("/decks/{deck_id}/plan", response_model=PlanResponse)
def plan_session(deck_id: str, req: PlanRequest, service: DeckService = Depends(get_service)):
    """
    Build a session plan. The client walks it and posts one answer per item.
    """
    rng = random.Random(req.seed) if req.seed is not None else None
    try:
        plan = service.plan_session(deck_id, req.mode, rng=rng)
    except Exception as e:
        raise _http_error(e) from e

    logger.info(f"Planned {req.mode.value} session on {deck_id}: {len(plan)} people")
    return PlanResponse(
        mode=plan.mode,
        queue=[PersonRecord.from_domain(p) for p in plan.queue],
        choices=[[c.id for c in options] for options in plan.choices],
    )


class AnswerRequest(BaseModel):
    person_id: str
    correct: bool


class MemoryUpdateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    interval: int
    ease_factor: float
    repetitions: int
    next_review: int
    last_reviewed: int
    correct_count: int
    total_count: int


@app.post("/decks/{deck_id}/answers", response_model=MemoryUpdateResponse)
def record_answer(deck_id: str, req: AnswerRequest, service: DeckService = Depends(get_service)):
    """Record one pass/fail answer and return the person's new memory state."""
    try:
        return service.record_answer(deck_id, req.person_id, req.correct)
    except Exception as e:
        raise _http_error(e) from e


class OutcomeRequest(BaseModel):
    total: int = Field(ge=0)
    correct: int = Field(ge=0)
    time_ms: int = Field(ge=0)
    mode: StudyMode


class SessionSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    mode: StudyMode
    total: int
    correct: int
    accuracy_percent: int
    time_label: str
    headline: str
    deck_mastery_percent: int


@app.post("/decks/{deck_id}/complete", response_model=SessionSummaryResponse)
def complete_session(
    deck_id: str, req: OutcomeRequest, service: DeckService = Depends(get_service)
):
    """Stamp the deck as studied and return the result-screen summary."""
    if req.correct > req.total:
        raise HTTPException(status_code=422, detail="correct cannot exceed total")

    outcome = SessionOutcome(
        total=req.total, correct=req.correct, time_ms=req.time_ms, mode=req.mode
    )
    try:
        deck = service.finish_session(deck_id, outcome)
    except Exception as e:
        raise _http_error(e) from e
    return MetricsCalculator().summarize_session(outcome, deck)


class ReviewRequest(BaseModel):
    person: PersonRecord
    quality: int
    now: int | None = None


@app.post("/review", response_model=PersonRecord)
async def review_person(req: ReviewRequest):
    """
    Stateless scheduler call: apply one review to a posted person snapshot.
    Nothing is stored.
    """
    person = req.person.to_domain()
    update = review(person, req.quality, req.now if req.now is not None else now_ms())
    return PersonRecord.from_domain(person.apply(update))
