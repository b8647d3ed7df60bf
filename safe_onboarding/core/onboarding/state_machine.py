"""
Onboarding State Machine

Enforces the provisioning order: the Roles module is only configured after
both the Safe and the module exist on-chain, permission sub-steps advance one
at a time, and the module is only enabled once all six are applied.
"""

from typing import Callable, Dict, List, Optional, Set

from ..observer import NULL_OBSERVER, OnboardingObserver
from ..roles.permissions import PERMISSION_STEP_COUNT
from .models import InvalidTransitionError, OnboardingState, StateTransition


S = OnboardingState


class OnboardingStateMachine:
    """
    Tracks the state of one onboarding run.

    Features:
    - Validates transitions against the allowed transition map
    - Validates permission sub-steps (1..6, strictly incremented)
    - Records transition history
    - Reports every transition to the observer
    - Passes the new step label to ``on_transition`` when given
    """

    TRANSITIONS: Dict[OnboardingState, Set[OnboardingState]] = {
        S.IDLE: {S.WALLET_DEPLOYING, S.FAILED},
        S.WALLET_DEPLOYING: {S.WALLET_DEPLOYED, S.FAILED},
        S.WALLET_DEPLOYED: {S.MODULE_DEPLOYING, S.FAILED},
        S.MODULE_DEPLOYING: {S.MODULE_DEPLOYED, S.FAILED},
        S.MODULE_DEPLOYED: {S.FEE_POLICY_RESOLVING, S.FAILED},
        S.FEE_POLICY_RESOLVING: {S.PROXY_ADDRESS_PREDICTED, S.FAILED},
        S.PROXY_ADDRESS_PREDICTED: {S.PERMISSIONS_CONFIGURING, S.FAILED},
        S.PERMISSIONS_CONFIGURING: {
            S.PERMISSIONS_CONFIGURING,  # Next sub-step
            S.MODULE_ENABLING,          # After the last sub-step
            S.FAILED,
        },
        S.MODULE_ENABLING: {S.COMPLETE, S.FAILED},
        S.COMPLETE: set(),
        S.FAILED: set(),
    }

    def __init__(
        self,
        observer: OnboardingObserver = NULL_OBSERVER,
        on_transition: Optional[Callable[[str], None]] = None,
    ):
        self.observer = observer
        self.on_transition = on_transition
        self.current_state = OnboardingState.IDLE
        self.permission_step = 0
        self._history: List[StateTransition] = []

    @property
    def is_terminal(self) -> bool:
        return self.current_state.is_terminal

    @property
    def history(self) -> List[StateTransition]:
        return list(self._history)

    @property
    def step_label(self) -> str:
        """Current state name, qualified with the permission sub-step when relevant."""
        if self.current_state is OnboardingState.PERMISSIONS_CONFIGURING:
            return f"{self.current_state.value}.{self.permission_step}"
        return self.current_state.value

    def can_transition_to(self, to_state: OnboardingState) -> bool:
        return to_state in self.TRANSITIONS.get(self.current_state, set())

    def transition_to(
        self,
        to_state: OnboardingState,
        *,
        step: Optional[int] = None,
        reason: Optional[str] = None,
    ) -> StateTransition:
        """
        Transition to a new state.

        Args:
            to_state: Target state
            step: Permission sub-step, required when entering PERMISSIONS_CONFIGURING
            reason: Human-readable reason

        Returns:
            StateTransition record

        Raises:
            InvalidTransitionError: If transition is not allowed
        """
        from_state = self.current_state
        if not self.can_transition_to(to_state):
            raise InvalidTransitionError(
                from_state=from_state,
                to_state=to_state,
                message=f"Invalid transition from {from_state.value} to {to_state.value}. "
                        f"Allowed: {sorted(s.value for s in self.TRANSITIONS.get(from_state, set()))}",
            )
        self._check_step(from_state, to_state, step)

        transition = StateTransition(
            from_state=from_state,
            to_state=to_state,
            step=step,
            reason=reason,
        )
        self.current_state = to_state
        if to_state is OnboardingState.PERMISSIONS_CONFIGURING:
            self.permission_step = step
        self._history.append(transition)
        if self.on_transition is not None:
            self.on_transition(self.step_label)

        self.observer.on_event(
            "onboarding.transition",
            from_state=from_state.value,
            to_state=to_state.value,
            step=step,
            reason=reason,
        )
        return transition

    def _check_step(
        self,
        from_state: OnboardingState,
        to_state: OnboardingState,
        step: Optional[int],
    ) -> None:
        if to_state is OnboardingState.PERMISSIONS_CONFIGURING:
            expected = (
                self.permission_step + 1
                if from_state is OnboardingState.PERMISSIONS_CONFIGURING
                else 1
            )
            if step != expected or step > PERMISSION_STEP_COUNT:
                raise InvalidTransitionError(
                    from_state=from_state,
                    to_state=to_state,
                    message=f"Permission step must be {expected} "
                            f"(of {PERMISSION_STEP_COUNT}), got {step}",
                )
        elif step is not None:
            raise InvalidTransitionError(
                from_state=from_state,
                to_state=to_state,
                message=f"{to_state.value} takes no sub-step",
            )

        if (
            to_state is OnboardingState.MODULE_ENABLING
            and self.permission_step != PERMISSION_STEP_COUNT
        ):
            raise InvalidTransitionError(
                from_state=from_state,
                to_state=to_state,
                message=f"Module can only be enabled after all {PERMISSION_STEP_COUNT} "
                        f"permission steps, completed {self.permission_step}",
            )

    def fail(self, reason: Optional[str] = None) -> StateTransition:
        """Move to FAILED from any non-terminal state."""
        return self.transition_to(OnboardingState.FAILED, reason=reason)
