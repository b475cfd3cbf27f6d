# app/engine/ledger.py

import logging

from app.config import MAX_CHANCES
from app.models import GameMode, ScoreState

logger = logging.getLogger(__name__)


class ScoreLedger:
    """Score, streak, question count and second-chance budget for one playthrough."""

    def __init__(self, max_chances: int = MAX_CHANCES):
        self.max_chances = max_chances
        self.state = ScoreState(chances_remaining=max_chances)

    @property
    def score(self) -> int:
        return self.state.score

    @property
    def streak(self) -> int:
        return self.state.streak

    @property
    def total_questions(self) -> int:
        return self.state.total_questions

    @property
    def correct_answers(self) -> int:
        return self.state.correct_answers

    @property
    def chances_remaining(self) -> int:
        return self.state.chances_remaining

    def count_question(self):
        """Record that a main-mode puzzle was issued."""
        self.state.total_questions += 1

    def apply_correct(self, reward: int, mode: GameMode):
        if reward < 0:
            raise ValueError(f"Reward must be non-negative, got {reward}")
        self.state.score += reward
        self.state.correct_answers += 1
        # Second-chance wins never touch the streak
        if mode == GameMode.MAIN:
            self.state.streak += 1

    def apply_incorrect_or_timeout(self, mode: GameMode):
        if mode == GameMode.MAIN:
            self.state.streak = 0
        else:
            self.state.chances_remaining = max(0, self.state.chances_remaining - 1)
            logger.info(f"Second chance lost, {self.state.chances_remaining} remaining")

    def reset(self):
        self.state = ScoreState(chances_remaining=self.max_chances)

    def snapshot(self) -> ScoreState:
        return self.state.model_copy()
