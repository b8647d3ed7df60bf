"""
Onboarding Orchestration

Runs the provisioning pipeline through a validated state machine.
"""

from .client import OnboardingClient, OnboardingConfig
from .models import (
    InvalidTransitionError,
    OnboardingResult,
    OnboardingState,
    OnboardingTransactions,
    StateTransition,
)
from .state_machine import OnboardingStateMachine

__all__ = [
    "InvalidTransitionError",
    "OnboardingClient",
    "OnboardingConfig",
    "OnboardingResult",
    "OnboardingState",
    "OnboardingStateMachine",
    "OnboardingTransactions",
    "StateTransition",
]
