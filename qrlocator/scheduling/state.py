from __future__ import annotations
from typing import Callable, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from qrlocator.config import SchedulerConfig

MIN_INTERVAL_MS = 1.0


class ScanScheduleState(BaseModel):
    """
    Everything the scan scheduler knows between cycles.
    Immutable: transitions return a new state.
    """
    model_config = ConfigDict(frozen=True)

    interval_ms: float = Field(..., gt=0.0)
    running: bool = False
    # most recent cycle durations in ms, oldest first
    history: Tuple[float, ...] = ()
    over_budget: bool = False


# (state, rolling mean in ms, config) -> next interval in ms
AdjustmentPolicy = Callable[[ScanScheduleState, float, SchedulerConfig], float]


def initial_state(cfg: SchedulerConfig, running: bool = False) -> ScanScheduleState:
    return ScanScheduleState(interval_ms=cfg.interval_ms, running=running)


def record_sample(state: ScanScheduleState, duration_ms: float, history_size: int) -> ScanScheduleState:
    sample = max(0.0, float(duration_ms))
    history = (state.history + (sample,))[-history_size:]
    return state.model_copy(update={"history": history})


def rolling_mean(state: ScanScheduleState, min_samples: int = 5) -> Optional[float]:
    if len(state.history) < min_samples or not state.history:
        return None
    return sum(state.history) / len(state.history)


def hold_interval(state: ScanScheduleState, mean_ms: float, cfg: SchedulerConfig) -> float:
    """Monitor only: overrun is flagged but the interval never changes."""
    return state.interval_ms


def backoff_policy(factor: float = 1.5, relax: float = 0.9) -> AdjustmentPolicy:
    """
    Lengthen the interval by `factor` while the mean is over budget (capped at
    max_interval_ms), shrink it by `relax` back toward the configured interval
    once it is under.
    """
    if factor < 1.0 or not 0.0 < relax <= 1.0:
        raise ValueError("factor must be >= 1 and relax in (0, 1]")

    def policy(state: ScanScheduleState, mean_ms: float, cfg: SchedulerConfig) -> float:
        if mean_ms > cfg.latency_budget_ms:
            return min(cfg.max_interval_ms, state.interval_ms * factor)
        return max(cfg.interval_ms, state.interval_ms * relax)

    return policy


def advance(
    state: ScanScheduleState,
    now: float,
    elapsed_ms: float,
    cfg: SchedulerConfig,
    policy: AdjustmentPolicy = hold_interval,
) -> Tuple[ScanScheduleState, Optional[float]]:
    """
    Cycle-completion transition.

    now: clock reading (seconds) when the cycle finished.
    Returns the new state and the clock time of the next cycle, or None when
    the scheduler is not running.
    """
    if not state.running:
        return state, None

    state = record_sample(state, elapsed_ms, cfg.history_size)
    mean = rolling_mean(state, cfg.min_samples)

    interval = state.interval_ms
    over = False
    if mean is not None:
        over = mean > cfg.latency_budget_ms
        interval = max(MIN_INTERVAL_MS, float(policy(state, mean, cfg)))

    state = state.model_copy(update={"interval_ms": interval, "over_budget": over})
    return state, now + interval / 1000.0
