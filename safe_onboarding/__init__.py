"""
Safe onboarding.

Provisions a Safe for a client and scopes a Zodiac Roles module so that a
single executor module can only deposit into, and withdraw from, the client's
yield proxy.

Usage:
    from safe_onboarding import create_onboarding_client_from_env

    async with create_onboarding_client_from_env() as client:
        result = await client.onboard_client()
        print(result.to_dict())
"""

from .core.onboarding.client import OnboardingClient, OnboardingConfig
from .core.onboarding.factory import create_onboarding_client_from_env
from .core.onboarding.models import OnboardingResult

__all__ = [
    "OnboardingClient",
    "OnboardingConfig",
    "OnboardingResult",
    "create_onboarding_client_from_env",
]
