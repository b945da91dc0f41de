"""Tests for user agents, cookies, fingerprint tokens and identity rotation."""

from __future__ import annotations

import base64
import random
import threading

import pytest

from quotecollector.collectors.identity import CookieGenerator, IdentityRotator, UserAgentGenerator
from quotecollector.collectors.identity.fingerprint import (
    FIELD_WIDTHS,
    TOKEN_LENGTH,
    VERSION_BYTE,
    FingerprintTokenGenerator,
    checksum,
    encode,
    serialize,
    strhash,
)
from quotecollector.collectors.identity.user_agent import sec_ch_ua, sec_ch_ua_platform

CHROME_MAC = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/139.0.0.0 Safari/537.36"
)
EDGE_WIN = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36 Edg/131.0.0.0"
)
FIREFOX_LINUX = "Mozilla/5.0 (X11; Linux x86_64; rv:125.0) Gecko/20100101 Firefox/125.0"


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestUserAgent:
    def test_safari_only_on_mac(self):
        generator = UserAgentGenerator(random.Random(7))

        for _ in range(500):
            user_agent = generator.generate()
            if "Version/" in user_agent:
                assert "Macintosh" in user_agent
                assert "Chrome/" not in user_agent

    def test_generates_every_browser_family(self):
        generator = UserAgentGenerator(random.Random(11))
        agents = [generator.generate() for _ in range(500)]

        assert any("Firefox/" in agent for agent in agents)
        assert any("Edg/" in agent for agent in agents)
        assert any("Version/" in agent for agent in agents)
        assert any("Chrome/" in agent and "Edg/" not in agent for agent in agents)

    def test_sec_ch_ua_tracks_chrome_version(self):
        assert sec_ch_ua(CHROME_MAC) == '"Not;A=Brand";v="99", "Google Chrome";v="139", "Chromium";v="139"'
        assert '"Microsoft Edge";v="131"' in sec_ch_ua(EDGE_WIN)
        assert '"Firefox"' in sec_ch_ua(FIREFOX_LINUX)

    @pytest.mark.parametrize(
        "user_agent,platform",
        [
            (CHROME_MAC, '"macOS"'),
            (EDGE_WIN, '"Windows"'),
            (FIREFOX_LINUX, '"Linux"'),
            ("curl/8.0", '"Unknown"'),
        ],
    )
    def test_platform(self, user_agent, platform):
        assert sec_ch_ua_platform(user_agent) == platform


class TestCookies:
    FIELDS = [
        "qgqp_b_id",
        "st_nvi",
        "nid",
        "nid_create_time",
        "gvi",
        "gvi_create_time",
        "st_si",
        "fullscreengg",
        "fullscreengg2",
        "websitepoptg_api_time",
        "st_asi",
        "wsc_checkuser_ok",
        "st_pvi",
        "st_sp",
        "st_inirUrl",
        "st_sn",
        "st_psi",
    ]

    def test_field_order_and_shape(self):
        cookie = CookieGenerator(random.Random(3), clock=lambda: 1_700_000_000).generate()
        pairs = [part.split("=", 1) for part in cookie.split("; ")]

        assert [name for name, _ in pairs] == self.FIELDS
        values = dict(pairs)
        assert len(values["qgqp_b_id"]) == 32
        assert len(values["st_nvi"]) == 25
        assert len(values["gvi"]) == 26
        assert values["st_asi"] == "delete"
        assert 50 <= int(values["st_sn"]) <= 549

    def test_create_times_are_recent_millis(self):
        now = 1_700_000_000
        values = dict(
            part.split("=", 1)
            for part in CookieGenerator(random.Random(5), clock=lambda: now).generate().split("; ")
        )

        created = int(values["nid_create_time"])
        assert (now - 30 * 86400) * 1000 <= created <= now * 1000 + 999

    def test_cookies_differ(self):
        generator = CookieGenerator()

        assert generator.generate() != generator.generate()


class TestFingerprint:
    def test_strhash(self):
        assert strhash("") == 0
        assert strhash("a") == 97
        assert strhash("ab") == 97 * 31 + 98

    def test_serialize_is_little_endian_and_truncates(self):
        fields = [0] * len(FIELD_WIDTHS)
        fields[0] = 0x01020304
        fields[4] = 0x1FF

        data = serialize(fields)

        assert len(data) == sum(FIELD_WIDTHS)
        assert data[:4] == bytes([4, 3, 2, 1])
        assert data[16] == 0xFF

    def test_serialize_rejects_wrong_field_count(self):
        with pytest.raises(ValueError):
            serialize([1, 2, 3])

    def test_header_layout(self):
        fields = list(range(len(FIELD_WIDTHS)))
        raw = base64.b64decode(encode(fields))
        body = serialize(fields)

        assert raw[0] == VERSION_BYTE
        assert int.from_bytes(raw[1:5], "little") == checksum(body)
        assert raw[5:] == body

    def test_tokens_are_distinct_and_fixed_length(self):
        generator = FingerprintTokenGenerator(CHROME_MAC, server_time=1_700_000_000)
        tokens = [generator.update() for _ in range(20)]

        assert TOKEN_LENGTH == 64
        assert all(len(token) == 64 for token in tokens)
        assert len(set(tokens)) == len(tokens)


class TestIdentityRotator:
    def test_snapshot_fields_match(self):
        identity = IdentityRotator().current()

        assert identity.sec_ch_ua == sec_ch_ua(identity.user_agent)
        assert identity.platform == sec_ch_ua_platform(identity.user_agent)
        assert identity.token is None
        assert identity.headers()["User-Agent"] == identity.user_agent
        assert identity.headers()["sec-ch-ua-mobile"] == "?0"

    def test_stable_within_interval(self):
        clock = FakeClock()
        rotator = IdentityRotator(interval=60, clock=clock)
        first = rotator.current()

        clock.now += 30
        assert rotator.current() is first

    def test_rotates_after_interval(self):
        clock = FakeClock()
        rotator = IdentityRotator(interval=60, clock=clock)
        first = rotator.current()

        clock.now += 61
        second = rotator.current()

        assert second is not first
        assert second.rotated_at == clock.now

    def test_refresh_token_keeps_user_agent(self):
        rotator = IdentityRotator(with_token=True)
        first = rotator.current()
        refreshed = rotator.current(refresh_token=True)

        assert len(first.token) == 64
        assert refreshed.token != first.token
        assert refreshed.user_agent == first.user_agent
        assert refreshed.cookie == first.cookie

    def test_force_rotate(self):
        rotator = IdentityRotator()
        first = rotator.peek()

        rotated = rotator.force_rotate()

        assert rotated is not first
        assert rotator.peek() is rotated

    def test_concurrent_force_rotate_returns_own_snapshot(self):
        rotator = IdentityRotator(with_token=True)
        returned = []
        lock = threading.Lock()

        def rotate():
            identity = rotator.force_rotate()
            with lock:
                returned.append(identity)

        threads = [threading.Thread(target=rotate) for _ in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len({id(identity) for identity in returned}) == 20
        assert any(identity is rotator.peek() for identity in returned)
