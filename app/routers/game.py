# app/routers/game.py

from fastapi import APIRouter

from app.config import MAX_CHANCES, SECOND_CHANCE_DURATION
from app.models import Difficulty
from .websocket import active_engines

router = APIRouter()


@router.get("/api/difficulties")
async def get_difficulties():
    """Returns every difficulty with its per-question time limit."""
    return {
        "difficulties": [
            {
                "name": level.value,
                "time": level.duration,
                "description": level.description,
            }
            for level in Difficulty
        ],
        "second_chance_time": SECOND_CHANCE_DURATION,
        "chances": MAX_CHANCES,
    }


@router.get("/api/stats")
async def get_stats():
    """Returns counts of the games currently being played."""
    by_difficulty = {level.value: 0 for level in Difficulty}
    for engine in active_engines.values():
        by_difficulty[engine.difficulty.value] += 1
    return {
        "active_games": len(active_engines),
        "by_difficulty": by_difficulty,
    }
