"""Sustained-presence episode tracking per label."""

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional

from .detection import Detection, present_labels

# Continuous presence required before an episode is recorded
DEFAULT_PRESENCE_THRESHOLD_MS = 3000.0


class EpisodePhase(Enum):
    """Episode state machine phase."""
    IDLE = "idle"
    RISING = "rising"
    COMMITTING = "committing"  # commit requested, waiting for the recorder
    COMMITTED = "committed"


@dataclass(frozen=True)
class EpisodeState:
    """
    State of one label's episode.

    Build instances with the classmethods; each phase only carries the
    fields that are meaningful for it. ``record_id`` is fixed the first
    time an episode is requested and reused by every retry.
    """
    phase: EpisodePhase = EpisodePhase.IDLE
    started_at_ms: Optional[float] = None
    episode: int = 0
    failed_attempts: int = 0
    record_id: Optional[uuid.UUID] = None

    def __post_init__(self):
        idle = self.phase is EpisodePhase.IDLE
        if idle != (self.started_at_ms is None):
            raise ValueError(
                f"{self.phase.value} episode must "
                f"{'not ' if idle else ''}have a start time"
            )
        if idle and (self.failed_attempts or self.record_id is not None):
            raise ValueError("idle episode cannot carry write attempts")
        writing = self.phase in (EpisodePhase.COMMITTING, EpisodePhase.COMMITTED)
        if writing and self.record_id is None:
            raise ValueError(f"{self.phase.value} episode needs a record id")

    @classmethod
    def idle(cls, episode: int = 0) -> "EpisodeState":
        return cls(EpisodePhase.IDLE, None, episode)

    @classmethod
    def rising(
        cls,
        started_at_ms: float,
        episode: int,
        failed_attempts: int = 0,
        record_id: Optional[uuid.UUID] = None,
    ) -> "EpisodeState":
        return cls(EpisodePhase.RISING, started_at_ms, episode, failed_attempts, record_id)

    @classmethod
    def committing(
        cls,
        started_at_ms: float,
        episode: int,
        record_id: uuid.UUID,
        failed_attempts: int = 0,
    ) -> "EpisodeState":
        return cls(
            EpisodePhase.COMMITTING, started_at_ms, episode, failed_attempts, record_id
        )

    @classmethod
    def committed(
        cls, started_at_ms: float, episode: int, record_id: uuid.UUID
    ) -> "EpisodeState":
        return cls(EpisodePhase.COMMITTED, started_at_ms, episode, 0, record_id)

    @property
    def continuously_present(self) -> bool:
        return self.phase is not EpisodePhase.IDLE

    @property
    def is_committed(self) -> bool:
        return self.phase is EpisodePhase.COMMITTED

    def elapsed_ms(self, now_ms: float) -> float:
        if self.started_at_ms is None:
            return 0.0
        return now_ms - self.started_at_ms


@dataclass(frozen=True)
class CommitRequest:
    """
    Request to durably record one episode.

    Retries of the same episode carry the same ``record_id`` so a write
    that landed after its caller gave up is not inserted twice.
    """
    label: str
    occurred_at_ms: float
    episode: int
    record_id: uuid.UUID


class EpisodeTracker:
    """
    Converts per-frame presence into one commit request per episode.

    One state machine per tracked label. Call ``observe`` once per frame
    in arrival order. Report recorder outcomes back through ``acknowledge``
    or ``reject`` before the next frame is observed.

    Transitions (label present / absent in the filtered frame):
    - IDLE + present -> RISING, start time = now
    - RISING + present, elapsed > threshold -> COMMITTING, emit request
    - COMMITTING + acknowledge -> COMMITTED
    - COMMITTING + reject -> RISING (re-requested on the next present frame)
    - any + absent -> IDLE
    """

    def __init__(
        self,
        labels: Iterable[str],
        threshold_ms: float = DEFAULT_PRESENCE_THRESHOLD_MS,
    ):
        self.threshold_ms = threshold_ms
        self._states: Dict[str, EpisodeState] = {
            label: EpisodeState.idle() for label in labels
        }

    @property
    def labels(self) -> List[str]:
        return list(self._states.keys())

    def state(self, label: str) -> EpisodeState:
        """Current state for a tracked label."""
        return self._states[label]

    def observe(
        self,
        detections: Iterable[Detection],
        now_ms: float,
    ) -> List[CommitRequest]:
        """
        Advance every tracked label by one frame.

        Args:
            detections: Filtered detections for this frame
            now_ms: Wall-clock time of this frame in milliseconds

        Returns:
            Commit requests issued on this frame
        """
        present = present_labels(detections)
        requests = []

        for label, state in self._states.items():
            new_state, request = self._transition(
                label, state, label in present, now_ms
            )
            self._states[label] = new_state
            if request:
                requests.append(request)

        return requests

    def _transition(
        self,
        label: str,
        state: EpisodeState,
        present: bool,
        now_ms: float,
    ):
        if not present:
            if state.phase is EpisodePhase.COMMITTING:
                print(
                    f"[TRACKER] {label} left while episode {state.episode} "
                    f"was being recorded"
                )
            elif state.phase is EpisodePhase.RISING and state.failed_attempts:
                print(
                    f"[TRACKER] {label} episode {state.episode} missed after "
                    f"{state.failed_attempts} failed write(s)"
                )
            return EpisodeState.idle(state.episode), None

        if state.phase is EpisodePhase.IDLE:
            return EpisodeState.rising(now_ms, state.episode + 1), None

        if state.phase is EpisodePhase.RISING:
            if state.elapsed_ms(now_ms) > self.threshold_ms:
                record_id = state.record_id or uuid.uuid4()
                request = CommitRequest(
                    label=label,
                    occurred_at_ms=now_ms,
                    episode=state.episode,
                    record_id=record_id,
                )
                return EpisodeState.committing(
                    state.started_at_ms,
                    state.episode,
                    record_id,
                    state.failed_attempts,
                ), request
            return state, None

        # COMMITTING waits for the outcome, COMMITTED never repeats
        return state, None

    def acknowledge(self, request: CommitRequest) -> bool:
        """
        Mark the request's episode as durably recorded.

        Returns:
            False if the episode already ended (stale outcome)
        """
        state = self._states.get(request.label)
        if not self._is_current(state, request):
            return False
        self._states[request.label] = EpisodeState.committed(
            state.started_at_ms, state.episode, state.record_id
        )
        return True

    def reject(self, request: CommitRequest) -> bool:
        """
        Return the request's episode to RISING so it is requested again.

        Returns:
            False if the episode already ended (stale outcome)
        """
        state = self._states.get(request.label)
        if not self._is_current(state, request):
            return False
        self._states[request.label] = EpisodeState.rising(
            state.started_at_ms,
            state.episode,
            state.failed_attempts + 1,
            state.record_id,
        )
        return True

    @staticmethod
    def _is_current(state: Optional[EpisodeState], request: CommitRequest) -> bool:
        return (
            state is not None
            and state.phase is EpisodePhase.COMMITTING
            and state.episode == request.episode
            and state.record_id == request.record_id
        )

    def reset(self) -> None:
        """Return every label to IDLE."""
        for label, state in self._states.items():
            self._states[label] = EpisodeState.idle(state.episode)
