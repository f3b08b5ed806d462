"""Schemas module for provisioning run state.

Provides Pydantic models for:
- Feature flags
- Stage results
- Provisioning run state
"""

from .provision_state import (
    Feature,
    FeatureSet,
    ProvisionState,
    RunStatus,
    Stage,
    StageResult,
    StageStatus,
)

__all__ = [
    # Features
    "Feature",
    "FeatureSet",
    # Run state
    "ProvisionState",
    "RunStatus",
    "Stage",
    "StageResult",
    "StageStatus",
]
