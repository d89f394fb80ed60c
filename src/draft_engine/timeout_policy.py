"""Per-phase deadlines and the forced action taken when one expires."""

import logging
import random
import threading
import time
from typing import Callable, Optional

from src.draft_engine.draft_rules import NoEligibleChampionsRemaining, eligible_champions
from src.draft_engine.draft_state import DraftState
from src.draft_engine.turn_schedule import Action

logger = logging.getLogger(__name__)


def forced_selection(draft_state: DraftState, rng: random.Random) -> Optional[str]:
    """Selection to submit when the current phase times out.

    Bans are skipped (None). Picks take a uniformly random eligible champion.

    Raises:
        NoEligibleChampionsRemaining: If a pick has nothing eligible to choose.
    """
    turn = draft_state.current_turn()
    if turn.action is Action.BAN:
        return None

    candidates = eligible_champions(draft_state)
    if not candidates:
        raise NoEligibleChampionsRemaining(
            f"No eligible champions left for forced pick at set "
            f"{draft_state.set_number} phase {turn.phase} "
            f"(pool size {len(draft_state.champion_pool)})"
        )
    return rng.choice(candidates)


class TimeoutPolicy:
    """Arms one timer per ban/pick phase.

    Expiry only reports (set_number, phase) to ``on_expire``; the owner must
    re-check the phase under its lock before acting, so a timer that lost the
    race against a manual confirm has no effect.
    """

    def __init__(
        self,
        seconds: float,
        on_expire: Callable[[int, int], object],
        rng: Optional[random.Random] = None,
        timer_factory: Callable = threading.Timer,
        clock: Callable[[], float] = time.monotonic,
    ):
        if seconds <= 0:
            raise ValueError(f"Phase time must be positive (got {seconds})")
        self.seconds = seconds
        self.on_expire = on_expire
        self.rng = rng or random.Random()
        self.timer_factory = timer_factory
        self.clock = clock
        self._timer = None
        self._armed_for: Optional[tuple] = None
        self._deadline: Optional[float] = None

    def arm(self, set_number: int, phase: int):
        """Start the deadline for a phase, replacing any previous one."""
        self.cancel()
        self._armed_for = (set_number, phase)
        self._deadline = self.clock() + self.seconds
        self._timer = self.timer_factory(
            self.seconds, self._fire, args=(set_number, phase)
        )
        self._timer.daemon = True
        self._timer.start()
        logger.debug("Armed %ss timer for set %d phase %d", self.seconds, set_number, phase)

    def cancel(self):
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._armed_for = None
        self._deadline = None

    @property
    def armed_for(self) -> Optional[tuple]:
        """(set_number, phase) the running timer belongs to."""
        return self._armed_for

    def remaining(self) -> Optional[float]:
        """Seconds left before the current deadline, or None when idle."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self.clock())

    def choose(self, draft_state: DraftState) -> Optional[str]:
        return forced_selection(draft_state, self.rng)

    def _fire(self, set_number: int, phase: int):
        logger.info("Timer expired for set %d phase %d", set_number, phase)
        self.on_expire(set_number, phase)
