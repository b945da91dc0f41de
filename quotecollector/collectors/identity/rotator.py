"""Identity snapshots and their time-based rotation."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, replace

from quotecollector.core.logging import get_logger

from .cookies import CookieGenerator
from .fingerprint import FingerprintTokenGenerator
from .user_agent import UserAgentGenerator, sec_ch_ua, sec_ch_ua_platform

logger = get_logger(__name__)


@dataclass(frozen=True)
class Identity:
    """浏览器身份快照, 只能整体替换."""

    user_agent: str
    sec_ch_ua: str
    platform: str
    cookie: str
    token: str | None
    rotated_at: float

    def headers(self) -> dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "sec-ch-ua": self.sec_ch_ua,
            "sec-ch-ua-mobile": "?0",
            "sec-ch-ua-platform": self.platform,
        }


class IdentityRotator:
    """发布当前身份并在超过轮换间隔后整体替换.

    读者拿到的总是某一次完整发布的 :class:`Identity`, 不会看到新旧字段混合.
    """

    def __init__(
        self,
        interval: float = 60.0,
        with_token: bool = False,
        user_agents: UserAgentGenerator | None = None,
        cookies: CookieGenerator | None = None,
        clock=time.monotonic,
        owner: str = "collector",
    ):
        self.interval = interval
        self.with_token = with_token
        self.owner = owner
        self._user_agents = user_agents or UserAgentGenerator()
        self._cookies = cookies or CookieGenerator()
        self._clock = clock
        self._lock = threading.Lock()
        self._tokens: FingerprintTokenGenerator | None = None
        self._identity = self._build()

    def _build(self) -> Identity:
        user_agent = self._user_agents.generate()
        token = None
        if self.with_token:
            self._tokens = FingerprintTokenGenerator(user_agent)
            token = self._tokens.update()
        return Identity(
            user_agent=user_agent,
            sec_ch_ua=sec_ch_ua(user_agent),
            platform=sec_ch_ua_platform(user_agent),
            cookie=self._cookies.generate(),
            token=token,
            rotated_at=self._clock(),
        )

    def current(self, refresh_token: bool = False) -> Identity:
        """Return the published identity, rotating it first when it is stale.

        ``refresh_token`` publishes a copy carrying a freshly generated token.
        """
        with self._lock:
            if self._clock() - self._identity.rotated_at > self.interval:
                self._identity = self._build()
                logger.debug(f"{self.owner} rotated identity: {self._identity.user_agent}")
            elif refresh_token and self._tokens is not None:
                self._identity = replace(self._identity, token=self._tokens.update())
            return self._identity

    def force_rotate(self) -> Identity:
        with self._lock:
            identity = self._build()
            self._identity = identity
        logger.info(f"{self.owner} forced identity rotation")
        return identity

    def peek(self) -> Identity:
        """Published identity without triggering rotation."""
        return self._identity
