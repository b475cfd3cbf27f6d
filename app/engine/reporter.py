# app/engine/reporter.py

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Set
import logging

import httpx

from app.config import BACKEND_API_URL, HTTP_TIMEOUT
from app.errors import ReportingError
from app.models import (
    Difficulty, GameMode, Identity, Outcome, ScoreRecord, SessionClose, SessionCreate,
)

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SessionReporter:
    """Writes session and score records to the backend.

    Every public method swallows failures: reporting must never block or
    alter gameplay.
    """

    def __init__(self, base_url: str = BACKEND_API_URL, client: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=HTTP_TIMEOUT)
        self.identity = Identity()
        self.difficulty: Optional[Difficulty] = None
        self._closed: Set[str] = set()

    async def _send(self, method: str, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.request(method, url, json=payload)
            response.raise_for_status()
            return response.json() if response.content else {}
        except (httpx.HTTPError, ValueError) as e:
            raise ReportingError(f"{method} {url} failed: {e}") from e

    # --- Session Lifecycle ---

    async def open_session(self, identity: Identity, difficulty: Difficulty) -> Optional[str]:
        """Create a session record. Returns its id, or None if the backend is unavailable."""
        self.identity = identity
        self.difficulty = difficulty
        body = SessionCreate(
            userId=identity.id,
            username=identity.username,
            difficulty=difficulty,
            startTime=_now_iso(),
        )
        try:
            data = await self._send("POST", "/sessions", body.model_dump(mode="json"))
            session_id = data.get("sessionId") if isinstance(data, dict) else None
            if not session_id:
                raise ReportingError("Backend response did not include a sessionId")
        except ReportingError as e:
            logger.error(f"Could not open session for '{identity.username}': {e}")
            return None

        logger.info(f"Session '{session_id}' opened for '{identity.username}' ({difficulty.value})")
        return str(session_id)

    async def report_answer(
        self,
        session_id: Optional[str],
        score: int,
        outcome: Outcome,
        correct_count: int,
        total_questions: int,
        mode: GameMode = GameMode.MAIN,
    ):
        if not session_id:
            logger.info(f"No session id, skipping {outcome.value} answer report")
            return
        try:
            await self._save_score(session_id, score, "active", correct_count, total_questions, mode)
        except ReportingError as e:
            logger.warning(f"Could not report answer for session '{session_id}': {e}")

    async def close_session(self, session_id: Optional[str], final_score: int, correct_count: int, total_questions: int):
        if not session_id:
            logger.info("No session id, skipping session close")
            return
        if session_id in self._closed:
            logger.debug(f"Session '{session_id}' already closed")
            return
        self._closed.add(session_id)

        body = SessionClose(
            endTime=_now_iso(),
            finalScore=final_score,
            correctAnswers=correct_count,
            totalQuestions=total_questions,
        )
        try:
            await self._send("PATCH", f"/sessions/{session_id}", body.model_dump(mode="json"))
            await self._save_score(session_id, final_score, "completed", correct_count, total_questions, GameMode.MAIN)
        except ReportingError as e:
            logger.error(f"Could not close session '{session_id}': {e}")
            return

        logger.info(f"Session '{session_id}' closed with score {final_score}")

    async def _save_score(self, session_id: str, score: int, status: str, correct_count: int, total_questions: int, mode: GameMode):
        if self.difficulty is None:
            raise ReportingError("Score record requires an opened session difficulty")
        record = ScoreRecord(
            userId=self.identity.id,
            username=self.identity.username,
            score=score,
            difficulty=self.difficulty,
            status=status,
            correctAnswers=correct_count,
            totalQuestions=total_questions,
            gameType=mode,
            sessionId=session_id,
        )
        await self._send("POST", "/scores", record.model_dump(mode="json"))

    async def aclose(self):
        await self._client.aclose()
