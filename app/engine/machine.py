# app/engine/machine.py

import asyncio
from asyncio import Task
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, List, Optional, Set, Union
import logging

from app.config import ADVANCE_DELAY, ANSWER_MAX, ANSWER_MIN, SECOND_CHANCE_DURATION, TICK_INTERVAL
from app.errors import InvalidInput, NetworkError
from app.models import (
    Difficulty, FetchFailedState, GameMode, GameOverState, GameState, Identity, LoadingState,
    Outcome, PlayingState, ResolvedState, SecondChanceOfferState, Session, TimerState,
)
from app.engine.ledger import ScoreLedger
from app.engine.puzzles import FallbackPuzzlePool, QuestionSource
from app.engine.reporter import SessionReporter
from app.engine.timer import TimerEngine, classify

logger = logging.getLogger(__name__)

StateListener = Callable[[GameState], Awaitable[None]]
TickListener = Callable[[TimerState, str], Awaitable[None]]


def parse_answer(raw: Union[str, int, None]) -> int:
    """Turn a submitted answer into an int, or raise InvalidInput.

    0 is a real answer; only empty input counts as missing.
    """
    if raw is None or isinstance(raw, bool):
        raise InvalidInput("Please enter an answer.")
    if isinstance(raw, int):
        value = raw
    else:
        text = str(raw).strip()
        if not text:
            raise InvalidInput("Please enter an answer.")
        if not (text.isascii() and text.isdigit()):
            raise InvalidInput(f"'{text}' is not a whole number.")
        value = int(text)

    if not ANSWER_MIN <= value <= ANSWER_MAX:
        raise InvalidInput(f"Answer must be between {ANSWER_MIN} and {ANSWER_MAX}.")
    return value


class GameStateMachine:
    """Drives one playthrough: puzzles, countdown, scoring, second chances and reporting.

    All events (submissions, player actions, timer expiry) are serialized through
    one lock and checked against the current state, so an event that arrives after
    the state has moved on is ignored.
    """

    def __init__(
        self,
        difficulty: Difficulty,
        identity: Optional[Identity] = None,
        source: Optional[QuestionSource] = None,
        pool: Optional[FallbackPuzzlePool] = None,
        reporter: Optional[SessionReporter] = None,
        ledger: Optional[ScoreLedger] = None,
        advance_delay: float = ADVANCE_DELAY,
        tick_interval: float = TICK_INTERVAL,
    ):
        self.difficulty = difficulty
        self.identity = identity or Identity()
        self.source = source or QuestionSource()
        self.pool = pool or FallbackPuzzlePool()
        self.reporter = reporter or SessionReporter()
        self.ledger = ledger or ScoreLedger()
        self.advance_delay = advance_delay
        self.timer = TimerEngine(self._on_tick, self._on_expired, interval=tick_interval)

        self.state: GameState = LoadingState(mode=GameMode.MAIN)
        self.session: Optional[Session] = None
        self.user_answer: Optional[int] = None

        self._lock = asyncio.Lock()
        self._state_listeners: List[StateListener] = []
        self._tick_listeners: List[TickListener] = []
        self._background: Set[Task] = set()
        self._question_number = 0
        self._started = False
        self._shut_down = False
        self._session_closed = False

    # --- Listeners ---

    def subscribe(self, on_state: StateListener, on_tick: Optional[TickListener] = None):
        self._state_listeners.append(on_state)
        if on_tick:
            self._tick_listeners.append(on_tick)

    @property
    def session_id(self) -> Optional[str]:
        return self.session.session_id if self.session else None

    def snapshot(self) -> Dict:
        """Client-facing view of the engine; the solution is hidden while playing."""
        if isinstance(self.state, PlayingState):
            state = self.state.model_dump(mode="json", exclude={"puzzle": {"solution"}})
        else:
            state = self.state.model_dump(mode="json")
        timer = None
        if self.timer.state is not None and isinstance(self.state, PlayingState):
            timer = self.timer.state.model_dump(mode="json")
            timer["level"] = classify(self.timer.state.remaining, self.timer.state.total)
        return {
            "state": state,
            "score": self.ledger.snapshot().model_dump(),
            "timer": timer,
            "difficulty": self.difficulty.value,
            "session_id": self.session_id,
        }

    # --- Player Actions ---

    async def start(self):
        """Open the session and load the first puzzle."""
        async with self._lock:
            if self._started:
                raise RuntimeError("Game already started")
            self._started = True
            logger.info(f"Starting {self.difficulty.value} game for '{self.identity.username}'")
            await self._open_session()
            await self._load(GameMode.MAIN)

    async def submit(self, raw: Union[str, int, None]) -> bool:
        """Judge an answer. Returns False if no question is being played.

        Raises InvalidInput for empty or out-of-range answers; no transition happens then.
        """
        playing = self.state
        if not isinstance(playing, PlayingState):
            logger.debug(f"Ignoring answer in state '{playing.kind}'")
            return False
        answer = parse_answer(raw)

        async with self._lock:
            # Only the question that was on screen when the answer arrived may be judged
            if self.state is not playing:
                logger.debug(f"Ignoring answer for question {playing.question_number}, state is '{self.state.kind}'")
                return False
            self.user_answer = answer
            outcome = Outcome.CORRECT if answer == playing.puzzle.solution else Outcome.WRONG
            await self._resolve(outcome)
            return True

    async def retry(self) -> bool:
        async with self._lock:
            if not isinstance(self.state, FetchFailedState):
                return False
            await self._load(self.state.mode)
            return True

    async def accept_second_chance(self) -> bool:
        async with self._lock:
            if not isinstance(self.state, SecondChanceOfferState):
                return False
            logger.info(f"Second chance accepted ({self.ledger.chances_remaining} left)")
            await self._load(GameMode.SECOND_CHANCE)
            return True

    async def decline_second_chance(self) -> bool:
        async with self._lock:
            if not isinstance(self.state, SecondChanceOfferState):
                return False
            await self._game_over()
            return True

    async def restart(self) -> bool:
        """Only way back to play once the game is over."""
        async with self._lock:
            if not isinstance(self.state, GameOverState):
                return False
            self.ledger.reset()
            self._question_number = 0
            await self._open_session()
            await self._load(GameMode.MAIN)
            return True

    async def drain(self):
        """Wait for outstanding report calls."""
        while self._background:
            results = await asyncio.gather(*list(self._background), return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    logger.error(f"Background report failed: {result!r}")

    async def shutdown(self):
        if self._shut_down:
            return
        self._shut_down = True
        self.timer.stop()
        await self.drain()
        await self.source.aclose()
        await self.reporter.aclose()

    # --- Timer Callbacks ---

    async def _on_tick(self, remaining: int):
        if not isinstance(self.state, PlayingState) or self.timer.state is None:
            return
        level = classify(remaining, self.timer.state.total)
        for listener in list(self._tick_listeners):
            try:
                await listener(self.timer.state.model_copy(), level)
            except Exception as e:
                logger.warning(f"Tick listener failed: {e}")

    async def _on_expired(self):
        async with self._lock:
            if not isinstance(self.state, PlayingState):
                logger.debug(f"Stale expiry ignored in state '{self.state.kind}'")
                return
            await self._resolve(Outcome.TIMEOUT)

    # --- Transitions ---

    async def _set_state(self, state: GameState):
        self.state = state
        logger.debug(f"State -> {state.kind}")
        for listener in list(self._state_listeners):
            try:
                await listener(state)
            except Exception as e:
                logger.warning(f"State listener failed: {e}")

    async def _load(self, mode: GameMode):
        await self._set_state(LoadingState(mode=mode))
        self.user_answer = None

        if mode == GameMode.MAIN:
            try:
                puzzle = await self.source.fetch_next()
            except NetworkError as e:
                logger.error(f"Error fetching question: {e}")
                await self._set_state(FetchFailedState(mode=mode, message=str(e)))
                return
            self.ledger.count_question()
            total = self.difficulty.duration
        else:
            puzzle = self.pool.sample_next()
            total = SECOND_CHANCE_DURATION

        self._question_number += 1
        # Reset the countdown before the new puzzle is published
        self.timer.start(total, mode)
        await self._set_state(PlayingState(mode=mode, puzzle=puzzle, question_number=self._question_number))

    async def _resolve(self, outcome: Outcome):
        # Stop first so a pending expiry cannot produce a second outcome
        self.timer.stop()
        playing = self.state
        mode = playing.mode

        if outcome == Outcome.CORRECT:
            self.ledger.apply_correct(playing.puzzle.reward, mode)
        else:
            self.ledger.apply_incorrect_or_timeout(mode)

        logger.info(
            f"{mode.value} question {playing.question_number}: {outcome.value} "
            f"(score={self.ledger.score}, streak={self.ledger.streak}, chances={self.ledger.chances_remaining})"
        )
        await self._set_state(ResolvedState(mode=mode, outcome=outcome, puzzle=playing.puzzle))
        self._spawn(self.reporter.report_answer(
            self.session_id,
            self.ledger.score,
            outcome,
            self.ledger.correct_answers,
            self.ledger.total_questions,
            mode,
        ))

        if outcome == Outcome.CORRECT:
            if self.advance_delay > 0:
                await asyncio.sleep(self.advance_delay)
            await self._load(GameMode.MAIN)
        elif self.ledger.chances_remaining > 0:
            await self._set_state(SecondChanceOfferState(chances_remaining=self.ledger.chances_remaining))
        else:
            await self._game_over()

    async def _game_over(self):
        self.timer.stop()
        await self._set_state(GameOverState(
            final_score=self.ledger.score,
            correct_answers=self.ledger.correct_answers,
            total_questions=self.ledger.total_questions,
        ))
        if self._session_closed:
            return
        self._session_closed = True

        if self.session:
            self.session.end_time = datetime.now(timezone.utc)
            self.session.status = "completed"
        logger.info(f"Game over for '{self.identity.username}' with score {self.ledger.score}")
        self._spawn(self.reporter.close_session(
            self.session_id,
            self.ledger.score,
            self.ledger.correct_answers,
            self.ledger.total_questions,
        ))

    async def _open_session(self):
        self._session_closed = False
        session_id = await self.reporter.open_session(self.identity, self.difficulty)
        if not session_id:
            logger.warning("Playing without a session id; results will not be saved")
            self.session = None
            return
        self.session = Session(
            session_id=session_id,
            user_id=self.identity.id,
            difficulty=self.difficulty,
            start_time=datetime.now(timezone.utc),
        )

    def _spawn(self, coro: Awaitable):
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
