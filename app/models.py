# app/models.py

from pydantic import BaseModel, ConfigDict, Field
from typing import Literal, Optional, Union
from datetime import datetime
from enum import Enum

from app.config import DIFFICULTY_DURATIONS, DIFFICULTY_DESCRIPTIONS


# --- Enumerations ---
class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"
    EXPERT = "Expert"

    @property
    def duration(self) -> int:
        """Seconds allowed per main-mode question."""
        return DIFFICULTY_DURATIONS[self.value]

    @property
    def description(self) -> str:
        return DIFFICULTY_DESCRIPTIONS[self.value]

    @classmethod
    def parse(cls, value: str) -> "Difficulty":
        """Case-insensitive lookup, e.g. 'easy' -> Difficulty.EASY."""
        for member in cls:
            if member.value.lower() == value.strip().lower():
                return member
        raise ValueError(f"Unknown difficulty: {value!r}")


class GameMode(str, Enum):
    MAIN = "main"
    SECOND_CHANCE = "second-chance"


class Outcome(str, Enum):
    CORRECT = "correct"
    WRONG = "wrong"
    TIMEOUT = "timeout"


# --- Puzzle Models ---
class Puzzle(BaseModel):
    prompt: str  # Image URL or a local symbolic row
    solution: int = Field(ge=0)
    reward: int = Field(ge=0)

    model_config = ConfigDict(frozen=True)


class PuzzlePayload(BaseModel):
    """Shape of the remote puzzle provider's JSON body."""
    question: str
    solution: int = Field(ge=0)
    carrots: int = Field(ge=0)

    def to_puzzle(self) -> Puzzle:
        return Puzzle(prompt=self.question, solution=self.solution, reward=self.carrots)


# --- Player / Session Models ---
class Identity(BaseModel):
    id: Optional[str] = None
    username: Optional[str] = None


class Session(BaseModel):
    session_id: str
    user_id: Optional[str] = None
    difficulty: Difficulty
    start_time: datetime
    end_time: Optional[datetime] = None
    status: Literal["active", "completed"] = "active"


# --- Game Logic Models ---
class TimerState(BaseModel):
    remaining: int = Field(ge=0)
    total: int = Field(gt=0)
    mode: GameMode = GameMode.MAIN


class ScoreState(BaseModel):
    score: int = Field(default=0, ge=0)
    streak: int = Field(default=0, ge=0)
    total_questions: int = Field(default=0, ge=0)
    correct_answers: int = Field(default=0, ge=0)
    chances_remaining: int = Field(default=3, ge=0, le=3)


# --- Engine States ---
# Exactly one of these is live at a time; `kind` is the tag.
class LoadingState(BaseModel):
    kind: Literal["loading"] = "loading"
    mode: GameMode

    model_config = ConfigDict(frozen=True)


class FetchFailedState(BaseModel):
    kind: Literal["fetch_failed"] = "fetch_failed"
    mode: GameMode
    message: str

    model_config = ConfigDict(frozen=True)


class PlayingState(BaseModel):
    kind: Literal["playing"] = "playing"
    mode: GameMode
    puzzle: Puzzle
    question_number: int

    model_config = ConfigDict(frozen=True)


class ResolvedState(BaseModel):
    kind: Literal["resolved"] = "resolved"
    mode: GameMode
    outcome: Outcome
    puzzle: Puzzle

    model_config = ConfigDict(frozen=True)


class SecondChanceOfferState(BaseModel):
    kind: Literal["second_chance_offer"] = "second_chance_offer"
    chances_remaining: int

    model_config = ConfigDict(frozen=True)


class GameOverState(BaseModel):
    kind: Literal["game_over"] = "game_over"
    final_score: int
    correct_answers: int
    total_questions: int

    model_config = ConfigDict(frozen=True)


GameState = Union[
    LoadingState,
    FetchFailedState,
    PlayingState,
    ResolvedState,
    SecondChanceOfferState,
    GameOverState,
]


# --- Backend Payloads ---
class SessionCreate(BaseModel):
    userId: Optional[str] = None
    username: Optional[str] = None
    difficulty: Difficulty
    startTime: str
    status: Literal["active"] = "active"


class SessionClose(BaseModel):
    endTime: str
    status: Literal["completed"] = "completed"
    finalScore: int
    correctAnswers: int
    totalQuestions: int


class ScoreRecord(BaseModel):
    userId: Optional[str] = None
    username: Optional[str] = None
    score: int
    difficulty: Difficulty
    status: Literal["active", "completed"]
    correctAnswers: int
    totalQuestions: int
    gameType: GameMode
    sessionId: str
