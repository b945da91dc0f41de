"""随机浏览器 User-Agent 与 sec-ch-ua 生成."""

from __future__ import annotations

import random
import re

BROWSERS = ("Chrome", "Firefox", "Safari", "Edge")

CHROME_VERSIONS = tuple(f"{major}.0.0.0" for major in range(120, 140))
FIREFOX_VERSIONS = tuple(f"{major}.0" for major in range(118, 133))
WEBKIT_VERSIONS = ("537.36", "605.1.15", "604.1.38")

OPERATING_SYSTEMS = (
    "Windows NT 10.0; Win64; x64",
    "Windows NT 11.0; Win64; x64",
    "Macintosh; Intel Mac OS X 10_15_7",
    "Macintosh; Intel Mac OS X 11_7_10",
    "Macintosh; Intel Mac OS X 12_7_4",
    "Macintosh; Intel Mac OS X 13_6_6",
    "Macintosh; Intel Mac OS X 14_4_1",
    "X11; Linux x86_64",
    "X11; Ubuntu; Linux x86_64",
)

DEFAULT_CHROME_MAJOR = "139"
DEFAULT_SEC_CH_UA = f'"Not;A=Brand";v="99", "Google Chrome";v="{DEFAULT_CHROME_MAJOR}", "Chromium";v="{DEFAULT_CHROME_MAJOR}"'

_CHROME_MAJOR = re.compile(r"Chrome/(\d+)")


class UserAgentGenerator:
    """按浏览器/系统/版本组合随机生成 User-Agent.

    Safari 只与 Macintosh 平台搭配, 抽到其他平台时退回 Chrome.
    """

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()

    def generate(self) -> str:
        browser = self._rng.choice(BROWSERS)
        os_name = self._rng.choice(OPERATING_SYSTEMS)

        if browser == "Firefox":
            version = self._rng.choice(FIREFOX_VERSIONS)
            return f"Mozilla/5.0 ({os_name}; rv:{version}) Gecko/20100101 Firefox/{version}"

        webkit = self._rng.choice(WEBKIT_VERSIONS)
        if browser == "Safari" and "Macintosh" in os_name:
            safari_version = f"17.{self._rng.randint(1, 5)}"
            return f"Mozilla/5.0 ({os_name}) AppleWebKit/{webkit} (KHTML, like Gecko) Version/{safari_version} Safari/{webkit}"

        version = self._rng.choice(CHROME_VERSIONS)
        user_agent = f"Mozilla/5.0 ({os_name}) AppleWebKit/{webkit} (KHTML, like Gecko) Chrome/{version} Safari/{webkit}"
        if browser == "Edge":
            user_agent += f" Edg/{version}"
        return user_agent


def chrome_major(user_agent: str) -> str:
    match = _CHROME_MAJOR.search(user_agent)
    return match.group(1) if match else DEFAULT_CHROME_MAJOR


def sec_ch_ua(user_agent: str) -> str:
    """Client-hint brand list matching ``user_agent``."""
    if "Edg/" in user_agent:
        major = chrome_major(user_agent)
        return f'"Not;A=Brand";v="99", "Microsoft Edge";v="{major}", "Chromium";v="{major}"'
    if "Chrome/" in user_agent:
        major = chrome_major(user_agent)
        return f'"Not;A=Brand";v="99", "Google Chrome";v="{major}", "Chromium";v="{major}"'
    if "Firefox/" in user_agent:
        return '"Not;A=Brand";v="99", "Firefox";v="130"'
    if "Safari/" in user_agent:
        return '"Not;A=Brand";v="99", "Safari";v="17"'
    return DEFAULT_SEC_CH_UA


def sec_ch_ua_platform(user_agent: str) -> str:
    if "Windows" in user_agent:
        return '"Windows"'
    if "Macintosh" in user_agent or "Mac OS X" in user_agent:
        return '"macOS"'
    if "Linux" in user_agent:
        return '"Linux"'
    return '"Unknown"'
