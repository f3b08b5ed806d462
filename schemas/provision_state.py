"""Provisioning run state schema.

State machine representation for one provisioning run. The state lives in
memory only; nothing is persisted between runs.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Feature(str, Enum):
    """Optional capabilities of a provisioned project."""

    VITEST = "vitest"  # Test runner
    TAILWIND = "tailwind"  # Utility-CSS framework


class FeatureSet(BaseModel):
    """Which optional features are enabled for a run.

    Frozen so the flags cannot change once provisioning has started.
    """

    model_config = ConfigDict(frozen=True)

    vitest: bool = Field(False, description="Enable the vitest test runner setup")
    tailwind: bool = Field(False, description="Enable the tailwindcss setup")

    def is_enabled(self, feature: Feature) -> bool:
        """Check whether a feature is enabled."""
        return bool(getattr(self, feature.value))

    def enabled(self) -> list[Feature]:
        """Enabled features, in declaration order."""
        return [feature for feature in Feature if self.is_enabled(feature)]


class RunStatus(str, Enum):
    """Overall provisioning run status."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class Stage(str, Enum):
    """Provisioning stages."""

    IDLE = "idle"
    FETCHING = "fetching"
    EXTRACTING = "extracting"
    SELECTING = "selecting"
    ACTIVATING = "activating"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


class StageStatus(str, Enum):
    """Individual stage status."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class StageResult(BaseModel):
    """Result of a single stage execution."""

    stage: Stage = Field(..., description="Stage name")
    status: StageStatus = Field(..., description="Stage status")
    started_at: datetime | None = Field(None, description="When stage started")
    completed_at: datetime | None = Field(None, description="When stage completed")
    duration_seconds: float | None = Field(None, description="Duration in seconds")
    output_summary: str | None = Field(None, description="Brief summary of output")
    error: str | None = Field(None, description="Error message if failed")


class ProvisionState(BaseModel):
    """Complete state of one provisioning run."""

    # Identity
    run_id: str = Field(..., description="Unique run identifier")
    project_root: str = Field(..., description="Directory being provisioned")
    features: FeatureSet = Field(default_factory=FeatureSet, description="Feature flags")

    # Status
    status: RunStatus = Field(RunStatus.PENDING, description="Overall status")
    current_stage: Stage = Field(Stage.IDLE, description="Current stage")

    # Timing
    started_at: datetime | None = Field(None, description="When run started")
    completed_at: datetime | None = Field(None, description="When run completed")

    # Stage results
    stages: dict[str, StageResult] = Field(
        default_factory=dict,
        description="Results by stage name",
    )

    # Outputs
    workspace_path: str | None = Field(None, description="Ephemeral workspace used by the run")
    files_copied: list[str] = Field(default_factory=list, description="Destination files written")
    files_activated: list[str] = Field(default_factory=list, description="Marker files rewritten")
    dependencies_installed: list[str] = Field(
        default_factory=list,
        description="Dependencies installed, in order",
    )
    fixups_applied: list[str] = Field(default_factory=list, description="Post-copy fixups that ran")

    # Error handling
    last_error: str | None = Field(None, description="Most recent error")

    def get_stage_result(self, stage: Stage) -> StageResult | None:
        """Get result for a specific stage."""
        return self.stages.get(stage.value)

    def mark_stage_started(self, stage: Stage) -> None:
        """Mark a stage as started."""
        self.current_stage = stage
        self.stages[stage.value] = StageResult(
            stage=stage,
            status=StageStatus.RUNNING,
            started_at=datetime.now(),
        )

    def mark_stage_completed(self, stage: Stage, summary: str | None = None) -> None:
        """Mark a stage as completed."""
        result = self.stages.get(stage.value)
        if result:
            result.status = StageStatus.COMPLETED
            result.completed_at = datetime.now()
            if result.started_at:
                result.duration_seconds = (
                    result.completed_at - result.started_at
                ).total_seconds()
            result.output_summary = summary

    def mark_stage_failed(self, stage: Stage, error: str) -> None:
        """Mark a stage as failed."""
        result = self.stages.get(stage.value)
        if result:
            result.status = StageStatus.FAILED
            result.completed_at = datetime.now()
            result.error = error
        self.last_error = error

    def summary(self) -> dict[str, Any]:
        """Short summary for display."""
        return {
            "run_id": self.run_id,
            "status": self.status.value,
            "stage": self.current_stage.value,
            "features": [feature.value for feature in self.features.enabled()],
            "files_copied": len(self.files_copied),
            "files_activated": len(self.files_activated),
            "dependencies_installed": len(self.dependencies_installed),
        }
