"""Ranking oracles: propose a best-to-worst ordering of a snapshot.

Two interchangeable backends:

* ``GeminiRankingOracle`` asks a hosted generative model to rank the
  snapshot against a natural-language rubric. Not deterministic.
* ``WeightedScoreOracle`` ranks by a fixed weighted sum of the same four
  metrics. Deterministic, with a total tie-break (points desc, uid asc).

The output contract (exactly n distinct uids from the snapshot) is
enforced by ``edurewards.ranking.service.rank_top`` for both.
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from functools import lru_cache
from typing import Protocol

import httpx
import structlog
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types
from pydantic import BaseModel, ValidationError

from edurewards.config import get_settings
from edurewards.ranking.prompts import TOP_STUDENTS_PROMPT
from edurewards.ranking.snapshot import EngagementRecord
from edurewards.rewards.errors import OracleFailure

logger = structlog.get_logger()


class RankingOracle(Protocol):
    async def rank(self, snapshot: list[EngagementRecord], n: int) -> list[str]:
        """Return n uids from the snapshot, best first."""
        ...


# ---------------------------------------------------------------------------
# Deterministic scoring
# ---------------------------------------------------------------------------

POINTS_WEIGHT = 1.0
COURSE_WEIGHT = 50.0
TEST_WEIGHT = 10.0
RECENCY_WINDOW_DAYS = 30
RECENCY_WEIGHT = 2.0  # per day inside the window


def engagement_score(record: EngagementRecord, now: datetime) -> float:
    """Weighted sum of the four engagement metrics; points dominate."""
    score = (
        record.points_balance * POINTS_WEIGHT
        + record.courses_completed * COURSE_WEIGHT
        + record.tests_taken * TEST_WEIGHT
    )
    if record.last_login is not None:
        last_login = record.last_login
        if last_login.tzinfo is None:
            last_login = last_login.replace(tzinfo=timezone.utc)
        days_ago = max(0.0, (now - last_login).total_seconds() / 86400)
        score += max(0.0, RECENCY_WINDOW_DAYS - days_ago) * RECENCY_WEIGHT
    return score


class WeightedScoreOracle:
    """Local, deterministic ranking by engagement_score."""

    def __init__(self, now: datetime | None = None) -> None:
        self._now = now

    async def rank(self, snapshot: list[EngagementRecord], n: int) -> list[str]:
        now = self._now or datetime.now(timezone.utc)
        ordered = sorted(
            snapshot,
            key=lambda r: (-engagement_score(r, now), -r.points_balance, r.uid),
        )
        return [r.uid for r in ordered[:n]]


# ---------------------------------------------------------------------------
# Gemini
# ---------------------------------------------------------------------------


class TopStudentsOutput(BaseModel):
    top_student_uids: list[str]


class GeminiRankingOracle:
    """Delegates ranking to a Gemini model with structured JSON output."""

    def __init__(self, client: genai.Client, model: str, timeout_seconds: float) -> None:
        self._client = client
        self._model = model
        self._timeout = timeout_seconds

    def build_prompt(self, snapshot: list[EngagementRecord], n: int) -> str:
        students = [record.model_dump(mode="json") for record in snapshot]
        return TOP_STUDENTS_PROMPT.format(n=n, students_json=json.dumps(students, indent=2))

    async def rank(self, snapshot: list[EngagementRecord], n: int) -> list[str]:
        prompt = self.build_prompt(snapshot, n)
        try:
            response = await asyncio.wait_for(
                self._client.aio.models.generate_content(
                    model=self._model,
                    contents=prompt,
                    config=genai_types.GenerateContentConfig(
                        response_mime_type="application/json",
                        response_schema=TopStudentsOutput,
                        temperature=0.0,
                    ),
                ),
                timeout=self._timeout,
            )
        except TimeoutError as exc:
            logger.warning("ranking_oracle_timeout", model=self._model, timeout=self._timeout)
            raise OracleFailure("ranking oracle timed out") from exc
        except (genai_errors.APIError, httpx.HTTPError) as exc:
            logger.warning("ranking_oracle_unreachable", model=self._model, error=str(exc))
            raise OracleFailure("ranking oracle request failed") from exc

        try:
            output = TopStudentsOutput.model_validate_json(response.text or "")
        except ValidationError as exc:
            logger.warning("ranking_oracle_malformed", model=self._model, error=str(exc))
            raise OracleFailure("ranking oracle returned malformed output") from exc
        return output.top_student_uids


@lru_cache
def get_ranking_oracle() -> RankingOracle:
    """Oracle selected by EDU_RANKING_BACKEND (cached per process)."""
    settings = get_settings()
    if settings.ranking_backend == "gemini":
        client = genai.Client(api_key=settings.gemini_api_key or None)
        return GeminiRankingOracle(client, settings.gemini_model, settings.oracle_timeout_seconds)
    if settings.ranking_backend == "weighted":
        return WeightedScoreOracle()
    msg = f"Unknown ranking backend: {settings.ranking_backend}"
    raise ValueError(msg)
