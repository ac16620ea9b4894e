from contextlib import asynccontextmanager
from operator import attrgetter
from typing import Literal, Optional
import logging
import os

from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel, ConfigDict, Field
from dotenv import load_dotenv

load_dotenv()

from database import init_db, get_db, engine
from candidate_store import CandidateStore, candidate_to_dict
from errors import ModelCallError, StoreError, SummaryGenerationError
from evaluation import EvaluationResult, build_evaluation_prompt, evaluate
from model_client import build_model_client
from questions import build_questions_prompt, normalize
from reconcile import reconcile
from summary import compose

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("interview-api")

INTERVIEW_ROLE = os.getenv("INTERVIEW_ROLE", "Full Stack (React/Node.js)")
FRONTEND_URLS = [
    url.strip()
    for url in os.getenv("FRONTEND_URLS", "http://localhost:5173,http://localhost:5174").split(",")
    if url.strip()
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    app.state.model_client = build_model_client()
    logger.info("Using Gemini model %s", app.state.model_client.model)
    yield
    await engine.dispose()


app = FastAPI(title="Interview Assistant API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=FRONTEND_URLS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Dependencies ─────────────────────────────────────────

def get_model_client(request: Request):
    return request.app.state.model_client


def get_store(db: AsyncSession = Depends(get_db)) -> CandidateStore:
    return CandidateStore(db)


# ── Request bodies ───────────────────────────────────────

CandidateStatus = Literal["not-started", "in-progress", "completed"]


class AnswerItem(BaseModel):
    question: str = ""
    answer: Optional[str] = ""
    score: int | float = Field(0, ge=0, le=10)
    feedback: str = ""


class CandidateCreate(BaseModel):
    name: str
    email: str
    phone: str
    status: Optional[CandidateStatus] = None
    score: int | float = 0
    answers: list[AnswerItem] = []
    summary: str = ""


class CandidatePatch(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    status: Optional[CandidateStatus] = None
    score: Optional[int | float] = None
    answers: Optional[list[AnswerItem]] = None
    summary: Optional[str] = None


class CandidateUpdate(BaseModel):
    updates: CandidatePatch


class EvaluateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question: str = ""
    answer: Optional[str] = ""
    resume_context: Optional[str] = Field("", alias="resumeContext")


class FinalSummaryRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    answers: list[AnswerItem] = []
    resume_context: Optional[str] = Field("", alias="resumeContext")


# ── Candidates ───────────────────────────────────────────

@app.post("/api/candidates", status_code=201)
async def create_candidate(body: CandidateCreate, store: CandidateStore = Depends(get_store)):
    try:
        candidate = await store.create(
            name=body.name,
            email=body.email,
            phone=body.phone,
            status=body.status or "not-started",
            score=body.score,
            answers=[a.model_dump() for a in body.answers],
            summary=body.summary,
        )
    except StoreError as e:
        logger.error("Error saving candidate: %s", e)
        raise HTTPException(500, "Error saving candidate data")
    return candidate_to_dict(candidate)


@app.get("/api/candidates")
async def list_candidates(email: Optional[str] = None, store: CandidateStore = Depends(get_store)):
    try:
        candidates = await store.find(email=email)
    except StoreError as e:
        logger.error("Error fetching candidates: %s", e)
        raise HTTPException(500, "Error fetching candidate data")
    return [candidate_to_dict(c) for c in candidates]


@app.get("/api/candidates/{candidate_id}")
async def get_candidate(candidate_id: int, store: CandidateStore = Depends(get_store)):
    try:
        candidate = await store.get(candidate_id)
    except StoreError as e:
        logger.error("Error fetching candidate %s: %s", candidate_id, e)
        raise HTTPException(500, "Error fetching candidate data")
    if not candidate:
        raise HTTPException(404, "Candidate not found")
    return candidate_to_dict(candidate)


@app.put("/api/candidates/{candidate_id}")
async def update_candidate(
    candidate_id: int,
    body: CandidateUpdate,
    store: CandidateStore = Depends(get_store),
):
    fields = body.updates.model_dump(exclude_unset=True, exclude_none=True)
    try:
        candidate = await store.update(candidate_id, fields)
    except StoreError as e:
        logger.error("Error updating candidate %s: %s", candidate_id, e)
        raise HTTPException(500, "Error updating candidate")
    if not candidate:
        raise HTTPException(404, "Candidate not found")
    return candidate_to_dict(candidate)


@app.post("/api/candidates/cleanup-duplicates")
async def cleanup_duplicates(store: CandidateStore = Depends(get_store)):
    """Keep only the most recent candidate per email."""
    removed = 0
    try:
        duplicates = await store.find_duplicates()
        outcome = reconcile(duplicates, key_fn=attrgetter("email"))
        for group in outcome.groups:
            for candidate_id in group.removed:
                if await store.delete(candidate_id):
                    removed += 1
            logger.info(
                "[CLEANUP] Kept candidate %s, removed %d duplicates for %s",
                group.kept,
                len(group.removed),
                group.key,
            )
    except StoreError as e:
        logger.error("Error cleaning up duplicates after %d removals: %s", removed, e)
        raise HTTPException(500, "Error cleaning up duplicates")

    return {
        "message": f"Cleanup complete. Removed {removed} duplicate candidates.",
        "removed": removed,
    }


# ── Interview AI ─────────────────────────────────────────
# Question generation and answer evaluation never surface a model outage to
# the caller: they log it and answer from the fallback path instead.

@app.post("/api/generateQuestions")
async def generate_questions(client=Depends(get_model_client)):
    text = ""
    try:
        text = await client.generate(build_questions_prompt(INTERVIEW_ROLE))
    except ModelCallError as e:
        logger.warning("[QUESTIONS] Gemini call failed, serving fallback set: %s", e)
    return {"questions": normalize(text)}


@app.post("/api/evaluateAnswer", response_model=EvaluationResult)
async def evaluate_answer(body: EvaluateRequest, client=Depends(get_model_client)):
    prompt = build_evaluation_prompt(body.question, body.answer, body.resume_context, INTERVIEW_ROLE)
    text = ""
    try:
        text = await client.generate(prompt)
    except ModelCallError as e:
        logger.warning("[EVAL] Gemini call failed, scoring heuristically: %s", e)
    return evaluate(body.question, body.answer, body.resume_context, text)


@app.post("/api/finalSummary")
async def final_summary(body: FinalSummaryRequest, client=Depends(get_model_client)):
    answers = [a.model_dump() for a in body.answers]
    try:
        summary = await compose(answers, body.resume_context, client, role=INTERVIEW_ROLE)
    except SummaryGenerationError as e:
        logger.error("[SUMMARY] %s", e)
        raise HTTPException(500, "Failed to generate final summary")
    return {"summary": summary}


@app.get("/api/health")
async def health(client=Depends(get_model_client)):
    return {"status": "ok", "model": client.model}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "5000")))
