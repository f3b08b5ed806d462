"""Orchestrator module for deno-sv.

State machine-based provisioning with:
- Strictly ordered stage transitions
- Ephemeral workspace scoped to one run
- Failure recorded on the run state and re-raised
"""

from .runner import ProvisioningRunner
from .state_machine import StateMachine, StateTransitionError, Transition

__all__ = [
    "ProvisioningRunner",
    "StateMachine",
    "StateTransitionError",
    "Transition",
]
