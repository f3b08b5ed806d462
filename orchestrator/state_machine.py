"""State machine implementation for provisioning runs."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from schemas.provision_state import ProvisionState, RunStatus, Stage, StageStatus


class StateTransitionError(Exception):
    """Raised when the runner attempts a transition the machine forbids."""

    def __init__(self, from_stage: Stage, to_stage: Stage) -> None:
        self.from_stage = from_stage
        self.to_stage = to_stage
        super().__init__(f"Invalid transition: {from_stage.value} -> {to_stage.value}")


@dataclass
class Transition:
    """Defines a valid state transition."""

    from_stage: Stage
    to_stage: Stage


# Stages in execution order; each may only advance to the next one.
HAPPY_PATH: list[Stage] = [
    Stage.IDLE,
    Stage.FETCHING,
    Stage.EXTRACTING,
    Stage.SELECTING,
    Stage.ACTIVATING,
    Stage.FINALIZING,
    Stage.DONE,
]

# Stages that can fail; IDLE has not started and DONE is terminal.
WORKING_STAGES: list[Stage] = HAPPY_PATH[1:-1]


class StateMachine:
    """State machine for a provisioning run.

    Transitions happen strictly in order, with no retries. Any working stage
    may move to FAILED.
    """

    TRANSITIONS: list[Transition] = [
        *(Transition(a, b) for a, b in zip(HAPPY_PATH, HAPPY_PATH[1:])),
        *(Transition(stage, Stage.FAILED) for stage in WORKING_STAGES),
    ]

    TERMINAL_STAGES = {Stage.DONE, Stage.FAILED}

    def __init__(self, state: ProvisionState) -> None:
        """Initialize state machine.

        Args:
            state: Initial run state
        """
        self.state = state

        # Build transition map for quick lookup
        self._transition_map: dict[Stage, list[Stage]] = {}
        for t in self.TRANSITIONS:
            self._transition_map.setdefault(t.from_stage, []).append(t.to_stage)

    def can_transition(self, to_stage: Stage) -> bool:
        """Check if transition to target stage is valid."""
        valid_targets = self._transition_map.get(self.state.current_stage, [])
        return to_stage in valid_targets

    def transition(self, to_stage: Stage) -> bool:
        """Attempt to transition to a new stage.

        Args:
            to_stage: Target stage

        Returns:
            True if transition succeeded
        """
        if not self.can_transition(to_stage):
            return False

        from_stage = self.state.current_stage
        if from_stage == Stage.IDLE:
            self.state.status = RunStatus.RUNNING
            self.state.started_at = datetime.now()

        if to_stage in self.TERMINAL_STAGES:
            self.state.current_stage = to_stage
            self.state.completed_at = datetime.now()
            self.state.status = (
                RunStatus.COMPLETED if to_stage == Stage.DONE else RunStatus.FAILED
            )
        else:
            self.state.mark_stage_started(to_stage)

        return True

    def advance(self, to_stage: Stage) -> None:
        """Transition or raise.

        Raises:
            StateTransitionError: If the transition is not allowed.
        """
        from_stage = self.state.current_stage
        if not self.transition(to_stage):
            raise StateTransitionError(from_stage, to_stage)

    def complete_stage(self, summary: str | None = None) -> None:
        """Mark current stage as completed."""
        self.state.mark_stage_completed(self.state.current_stage, summary=summary)

    def fail_stage(self, error: str) -> None:
        """Mark current stage as failed and move to FAILED."""
        if self.state.current_stage in self.TERMINAL_STAGES:
            return
        self.state.mark_stage_failed(self.state.current_stage, error)
        if self.can_transition(Stage.FAILED):
            self.transition(Stage.FAILED)
        else:
            # Failure before the run started
            self.state.current_stage = Stage.FAILED
            self.state.status = RunStatus.FAILED
            self.state.completed_at = datetime.now()

    def get_valid_next_stages(self) -> list[Stage]:
        """Get list of valid next stages from current state."""
        return self._transition_map.get(self.state.current_stage, [])

    def is_completed(self) -> bool:
        """Check if the run reached DONE."""
        return self.state.current_stage == Stage.DONE

    def is_failed(self) -> bool:
        """Check if the run has failed."""
        return self.state.status == RunStatus.FAILED

    def get_progress_summary(self) -> dict[str, Any]:
        """Get a summary of run progress."""
        completed = sum(
            1
            for s in self.state.stages.values()
            if s.status == StageStatus.COMPLETED
        )
        total = len(WORKING_STAGES)

        return {
            "run_id": self.state.run_id,
            "status": self.state.status.value,
            "current_stage": self.state.current_stage.value,
            "progress": f"{completed}/{total}",
            "stages": {
                name: result.status.value for name, result in self.state.stages.items()
            },
        }
