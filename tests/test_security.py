"""Tests for HTTP protection helpers.

Tests cover:
- Token masking and domain validation
- Security headers on every response
- Per-client rate limiting window
"""

from __future__ import annotations

import unittest

from fastapi import FastAPI
from fastapi.testclient import TestClient

from core.security import (
    RateLimitMiddleware,
    SecurityHeadersMiddleware,
    is_valid_domain,
    mask_token,
)


def _make_app(calls: int = 2, period: int = 60) -> FastAPI:
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, calls=calls, period=period)
    app.add_middleware(SecurityHeadersMiddleware)

    @app.get("/ping")
    def ping():
        return {"ok": True}

    @app.get("/health")
    def health():
        return {"status": "UP"}

    return app


class TestHelpers(unittest.TestCase):
    def test_mask_token_hides_middle(self):
        masked = mask_token("abcd1234567890wxyz")
        self.assertTrue(masked.startswith("abcd"))
        self.assertTrue(masked.endswith("wxyz"))
        self.assertNotIn("1234567890", masked)

    def test_mask_short_and_empty_tokens(self):
        self.assertEqual(mask_token("short"), "*****")
        self.assertEqual(mask_token(""), "<empty>")
        self.assertEqual(mask_token(None), "<empty>")

    def test_valid_domains(self):
        for domain in ("crm.biplaza.es", "portal.bitrix24.ru", "localhost", "localhost:8080", "b24-59kuce.bitrix24.kz"):
            self.assertTrue(is_valid_domain(domain), domain)

    def test_invalid_domains(self):
        for domain in ("", None, "evil.com/x", "a b.com", "-bad.com", "https://crm.example.com", "crm.example.com?x=1"):
            self.assertFalse(is_valid_domain(domain), domain)


class TestSecurityMiddleware(unittest.TestCase):
    def test_security_headers_present(self):
        with TestClient(_make_app(calls=10)) as client:
            response = client.get("/ping")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["X-Content-Type-Options"], "nosniff")
        self.assertEqual(response.headers["X-Frame-Options"], "SAMEORIGIN")
        self.assertEqual(response.headers["Cross-Origin-Resource-Policy"], "cross-origin")
        self.assertIn("Strict-Transport-Security", response.headers)

    def test_rate_limit_blocks_after_limit(self):
        with TestClient(_make_app(calls=2)) as client:
            first = client.get("/ping")
            second = client.get("/ping")
            third = client.get("/ping")

        self.assertEqual(first.headers["RateLimit-Limit"], "2")
        self.assertEqual(first.headers["RateLimit-Remaining"], "1")
        self.assertEqual(second.headers["RateLimit-Remaining"], "0")
        self.assertEqual(third.status_code, 429)
        self.assertIn("Retry-After", third.headers)

    def test_limited_response_carries_security_headers(self):
        with TestClient(_make_app(calls=1)) as client:
            client.get("/ping")
            limited = client.get("/ping")

        self.assertEqual(limited.status_code, 429)
        self.assertEqual(limited.headers["X-Content-Type-Options"], "nosniff")
        self.assertEqual(limited.headers["X-Frame-Options"], "SAMEORIGIN")
        self.assertIn("Strict-Transport-Security", limited.headers)
        self.assertEqual(limited.headers["Cross-Origin-Resource-Policy"], "cross-origin")

    def test_health_is_not_rate_limited(self):
        with TestClient(_make_app(calls=1)) as client:
            client.get("/ping")
            responses = [client.get("/health") for _ in range(3)]
        self.assertTrue(all(r.status_code == 200 for r in responses))

    def test_zero_calls_disables_limit(self):
        with TestClient(_make_app(calls=0)) as client:
            responses = [client.get("/ping") for _ in range(5)]
        self.assertTrue(all(r.status_code == 200 for r in responses))
        self.assertNotIn("RateLimit-Limit", responses[0].headers)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestRateLimitBookkeeping(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.limiter = RateLimitMiddleware(FastAPI(), calls=5, period=60, clock=self.clock)

    def test_stale_clients_are_dropped_after_window(self):
        for i in range(1000):
            self.limiter.hit(f"10.0.{i // 256}.{i % 256}")
        self.assertEqual(len(self.limiter.clients), 1000)

        self.clock.now += 61
        allowed, _ = self.limiter.hit("192.168.1.1")

        self.assertTrue(allowed)
        self.assertEqual(list(self.limiter.clients), ["192.168.1.1"])

    def test_active_clients_survive_sweep(self):
        self.limiter.hit("10.0.0.1")
        self.clock.now += 30
        self.limiter.hit("10.0.0.2")
        self.clock.now += 31
        self.limiter.hit("10.0.0.3")

        self.assertNotIn("10.0.0.1", self.limiter.clients)
        self.assertIn("10.0.0.2", self.limiter.clients)
        self.assertIn("10.0.0.3", self.limiter.clients)

    def test_window_resets_for_returning_client(self):
        for _ in range(5):
            self.limiter.hit("10.0.0.1")
        allowed, retry_after = self.limiter.hit("10.0.0.1")
        self.assertFalse(allowed)
        self.assertEqual(retry_after, 61)

        self.clock.now += 60
        allowed, remaining = self.limiter.hit("10.0.0.1")
        self.assertTrue(allowed)
        self.assertEqual(remaining, 4)


if __name__ == "__main__":
    unittest.main()
