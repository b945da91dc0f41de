"""令牌桶限流器, 每个采集器独享一个实例."""

from __future__ import annotations

import threading
import time
from typing import Any

from quotecollector.core.exceptions import RateLimitWaitError

from .deadline import Deadline

MIN_RATE = 1


class RateLimiter:
    """线程安全的令牌桶.

    容量为速率的两倍, 按速率每秒补充令牌. 获取令牌采用预约方式: 先扣减
    (可以为负), 再睡眠到欠额补齐, 因此并发等待者按到达顺序放行.
    """

    def __init__(self, rate: int, owner: str = "collector"):
        self.owner = owner
        self._lock = threading.Lock()
        self._rate = max(MIN_RATE, int(rate))
        self._capacity = self._rate * 2
        self._tokens = float(self._capacity)
        self._last_refill = time.monotonic()

    def _refill(self, now: float) -> None:
        elapsed = now - self._last_refill
        if elapsed > 0:
            self._tokens = min(self._capacity, self._tokens + elapsed * self._rate)
            self._last_refill = now

    def acquire(self, deadline: Deadline | None = None) -> float:
        """阻塞直到获得一个令牌, 返回等待的秒数.

        Raises:
            RateLimitWaitError: 截止时间前无法获得令牌或调用被取消
        """
        with self._lock:
            self._refill(time.monotonic())
            self._tokens -= 1
            wait = 0.0 if self._tokens >= 0 else -self._tokens / self._rate
            if deadline is not None:
                remaining = deadline.remaining()
                if deadline.cancelled or (remaining is not None and wait > remaining):
                    self._tokens += 1
                    raise RateLimitWaitError(
                        f"rate limit wait of {wait:.3f}s exceeds deadline",
                        self.owner,
                        waited=0.0,
                        details={"required_wait": round(wait, 3)},
                    )

        if wait <= 0:
            return 0.0

        if deadline is None:
            time.sleep(wait)
            return wait

        started = time.monotonic()
        if not deadline.sleep(wait):
            with self._lock:
                self._tokens += 1
            raise RateLimitWaitError(
                "rate limit wait cancelled",
                self.owner,
                waited=time.monotonic() - started,
            )
        return wait

    def try_acquire(self) -> bool:
        """非阻塞地尝试获取令牌."""
        with self._lock:
            self._refill(time.monotonic())
            if self._tokens >= 1:
                self._tokens -= 1
                return True
            return False

    def set_rate(self, rate: int) -> None:
        """立即生效地调整速率, 非正数按最小速率处理."""
        with self._lock:
            self._refill(time.monotonic())
            self._rate = max(MIN_RATE, int(rate))
            self._capacity = self._rate * 2
            self._tokens = min(self._tokens, self._capacity)

    @property
    def rate(self) -> int:
        return self._rate

    @property
    def burst(self) -> int:
        return self._capacity

    def stats(self) -> dict[str, Any]:
        """当前速率、突发容量、可用令牌与预约欠额. 只读, 不等待令牌.

        预约期间令牌余额为负, 此时 ``tokens`` 报 0, 欠额计入 ``backlog``.
        """
        with self._lock:
            elapsed = max(0.0, time.monotonic() - self._last_refill)
            tokens = min(self._capacity, self._tokens + elapsed * self._rate)
            return {
                "rate_limit": self._rate,
                "current_limit": float(self._rate),
                "burst_size": self._capacity,
                "tokens": round(max(0.0, tokens), 3),
                "backlog": round(max(0.0, -tokens), 3),
            }
