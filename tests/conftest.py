import pytest

from app.engine.machine import GameStateMachine
from app.engine.puzzles import FallbackPuzzlePool
from app.models import Difficulty, GameMode, Identity, Puzzle


class FakeSource:
    """Hands out queued puzzles; queued exceptions are raised instead."""

    def __init__(self, items=None):
        self.queue = list(items or [])
        self.calls = 0
        self.closed = False

    async def fetch_next(self):
        self.calls += 1
        if not self.queue:
            return Puzzle(prompt="https://puzzles.test/default.png", solution=5, reward=2)
        item = self.queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def aclose(self):
        self.closed = True


class FakeReporter:
    def __init__(self, session_id="session-1"):
        self.session_id = session_id
        self.opened = []
        self.answers = []
        self.closed = []

    async def open_session(self, identity, difficulty):
        self.opened.append((identity, difficulty))
        return self.session_id

    async def report_answer(self, session_id, score, outcome, correct_count, total_questions, mode=GameMode.MAIN):
        self.answers.append({
            "session_id": session_id,
            "score": score,
            "outcome": outcome,
            "correct_count": correct_count,
            "total_questions": total_questions,
            "mode": mode,
        })

    async def close_session(self, session_id, final_score, correct_count, total_questions):
        self.closed.append({
            "session_id": session_id,
            "final_score": final_score,
            "correct_count": correct_count,
            "total_questions": total_questions,
        })

    async def aclose(self):
        pass


class StateRecorder:
    def __init__(self):
        self.states = []

    async def __call__(self, state):
        self.states.append(state)

    @property
    def kinds(self):
        return [s.kind for s in self.states]


def puzzle(solution, reward=3):
    return Puzzle(prompt=f"https://puzzles.test/{solution}.png", solution=solution, reward=reward)


ZERO_POOL = [{"question": "🥕 🥕", "answer": 0, "carrots": 1}]


@pytest.fixture()
async def make_machine():
    """Build engines whose timers only move when a test calls timer.tick()."""
    created = []

    def _make(difficulty=Difficulty.EASY, puzzles=None, catalog=None, reporter=None, identity=None):
        machine = GameStateMachine(
            difficulty,
            identity or Identity(id="u1", username="alice"),
            source=FakeSource(puzzles),
            pool=FallbackPuzzlePool(catalog or ZERO_POOL),
            reporter=reporter or FakeReporter(),
            advance_delay=0,
            tick_interval=3600,
        )
        recorder = StateRecorder()
        machine.subscribe(recorder)
        machine.recorder = recorder
        created.append(machine)
        return machine

    yield _make

    for machine in created:
        await machine.shutdown()
