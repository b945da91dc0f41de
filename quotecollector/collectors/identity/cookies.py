"""Synthetic analytics cookie line used to look like a returning visitor."""

from __future__ import annotations

import random
import string
import time
from datetime import datetime, timedelta

HEX_CHARS = "0123456789abcdef"
ALPHANUM_CHARS = string.ascii_letters + string.digits

REFERRER_URLS = (
    "https%3A%2F%2Fdata.eastmoney.com%2Fgphg%2F",
    "https%3A%2F%2Fdata.eastmoney.com%2Fxjllb%2F",
    "https%3A%2F%2Fdata.eastmoney.com%2Fhsgtcg%2F",
    "https%3A%2F%2Fdata.eastmoney.com%2Fbbsj%2F",
    "https%3A%2F%2Fdata.eastmoney.com%2Fzjlx%2F",
)

DAY_SECONDS = 86400


class CookieGenerator:
    """Builds a ``; ``-joined cookie line from independently randomized fields."""

    def __init__(self, rng: random.Random | None = None, clock=time.time):
        self._rng = rng or random.Random()
        self._clock = clock

    def generate(self) -> str:
        fields = [
            f"qgqp_b_id={self._random_string(HEX_CHARS, 32)}",
            f"st_nvi={self._random_string(ALPHANUM_CHARS, 25)}",
            f"nid={self._random_string(HEX_CHARS, 32)}",
            f"nid_create_time={self._recent_millis(30)}",
            f"gvi={self._random_string(ALPHANUM_CHARS, 26)}",
            f"gvi_create_time={self._recent_millis(30)}",
            f"st_si={self._counter()}",
            "fullscreengg=1",
            "fullscreengg2=1",
            f"websitepoptg_api_time={self._recent_millis(7)}",
            "st_asi=delete",
            "wsc_checkuser_ok=1",
            f"st_pvi={self._counter()}",
            f"st_sp={self._recent_visit()}",
            f"st_inirUrl={self._rng.choice(REFERRER_URLS)}",
            f"st_sn={self._rng.randint(50, 549)}",
            f"st_psi={self._page_sequence()}",
        ]
        return "; ".join(fields)

    def _random_string(self, alphabet: str, length: int) -> str:
        return "".join(self._rng.choice(alphabet) for _ in range(length))

    def _recent_millis(self, days: int) -> int:
        now = int(self._clock())
        seconds = now - self._rng.randrange(days * DAY_SECONDS)
        return seconds * 1000 + self._rng.randrange(1000)

    def _counter(self) -> int:
        return self._rng.randint(10_000_000_000_000, 99_999_999_999_999)

    def _recent_visit(self) -> str:
        day = datetime.fromtimestamp(self._clock()) - timedelta(days=self._rng.randrange(7))
        hour, minute, second = self._rng.randrange(24), self._rng.randrange(60), self._rng.randrange(60)
        return f"{day:%Y-%m-%d}%20{hour:02d}%3A{minute:02d}%3A{second:02d}"

    def _page_sequence(self) -> str:
        today = datetime.fromtimestamp(self._clock())
        stamp = (
            f"{today:%Y%m%d}"
            f"{self._rng.randrange(24):02d}{self._rng.randrange(60):02d}{self._rng.randrange(60):02d}"
            f"{self._rng.randrange(1000):03d}"
        )
        suffix = self._rng.randint(1_000_000_000_000, 9_999_999_999_999)
        last = self._rng.randint(1_000_000_000, 9_999_999_999)
        return f"{stamp}-{suffix}-{last}"
