"""Rotating outbound browser identity."""

from .cookies import CookieGenerator
from .fingerprint import FingerprintTokenGenerator, strhash
from .rotator import Identity, IdentityRotator
from .user_agent import UserAgentGenerator, sec_ch_ua, sec_ch_ua_platform

__all__ = [
    "CookieGenerator",
    "FingerprintTokenGenerator",
    "Identity",
    "IdentityRotator",
    "UserAgentGenerator",
    "sec_ch_ua",
    "sec_ch_ua_platform",
    "strhash",
]
