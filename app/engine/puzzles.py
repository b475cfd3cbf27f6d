# app/engine/puzzles.py

import random
import logging
from typing import Dict, List, Optional

import httpx
from pydantic import ValidationError

from app.config import PUZZLE_API_URL, HTTP_TIMEOUT
from app.errors import NetworkError
from app.models import Puzzle, PuzzlePayload
from app.puzzles import SECOND_CHANCE_PUZZLES

logger = logging.getLogger(__name__)


class QuestionSource:
    """Fetches main-mode puzzles from the remote heart puzzle provider."""

    def __init__(self, url: str = PUZZLE_API_URL, client: Optional[httpx.AsyncClient] = None):
        self.url = url
        self._client = client or httpx.AsyncClient(timeout=HTTP_TIMEOUT)

    async def fetch_next(self) -> Puzzle:
        """Request one puzzle. Raises NetworkError; the caller decides whether to retry."""
        try:
            response = await self._client.get(self.url)
            response.raise_for_status()
            payload = PuzzlePayload.model_validate(response.json())
        except httpx.HTTPError as e:
            logger.warning(f"Puzzle request to {self.url} failed: {e}")
            raise NetworkError("Failed to load question. Please try again.") from e
        except (ValueError, ValidationError) as e:
            logger.warning(f"Puzzle provider returned an unusable payload: {e}")
            raise NetworkError("Failed to load question. Please try again.") from e

        return payload.to_puzzle()

    async def aclose(self):
        await self._client.aclose()


class FallbackPuzzlePool:
    """Offline counting puzzles for the second-chance round. Never fails."""

    def __init__(self, catalog: Optional[List[Dict]] = None, rng: Optional[random.Random] = None):
        entries = catalog if catalog is not None else SECOND_CHANCE_PUZZLES
        if not entries:
            raise ValueError("Fallback puzzle catalog must not be empty")
        self._puzzles = [
            Puzzle(prompt=entry["question"], solution=entry["answer"], reward=entry["carrots"])
            for entry in entries
        ]
        self._rng = rng or random.Random()
        self._last_index: Optional[int] = None

    def sample_next(self) -> Puzzle:
        # Avoid showing the same puzzle twice in a row when there is a choice
        candidates = [i for i in range(len(self._puzzles)) if i != self._last_index]
        if not candidates:
            candidates = [0]
        index = self._rng.choice(candidates)
        self._last_index = index
        return self._puzzles[index]
