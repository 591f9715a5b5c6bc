"""
Tests for core helpers: tokens, clock, feature switches, body size limit.
"""

from datetime import datetime, timezone

import jwt
from starlette.testclient import TestClient

from app.core.clock import ensure_utc
from app.core.config import Settings, get_settings
from app.core.features import FeatureCapabilities
from app.core.security import create_access_token, decode_token
from app.main import app


class TestTokens:
    def test_round_trip(self):
        payload = decode_token(create_access_token("C1", "customer", "Alice"))
        assert payload["sub"] == "C1"
        assert payload["role"] == "customer"
        assert payload["name"] == "Alice"

    def test_wrong_secret(self):
        settings = get_settings()
        token = jwt.encode({"sub": "C1", "role": "customer"}, "other-secret", algorithm=settings.JWT_ALGORITHM)
        assert decode_token(token) is None

    def test_expired(self):
        settings = get_settings()
        token = jwt.encode(
            {"sub": "C1", "role": "customer", "exp": datetime(2020, 1, 1, tzinfo=timezone.utc)},
            settings.JWT_SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM,
        )
        assert decode_token(token) is None


def test_ensure_utc():
    naive = datetime(2026, 1, 1, 8, 30)
    assert ensure_utc(naive) == datetime(2026, 1, 1, 8, 30, tzinfo=timezone.utc)
    assert ensure_utc(None) is None


def test_features_from_settings():
    settings = Settings(FEATURE_ANALYTICS_ENABLED=False, FEATURE_CONVERSATION_FALLBACK=False)
    features = FeatureCapabilities.from_settings(settings)
    assert features == FeatureCapabilities(messaging=True, analytics=False, conversation_fallback=False)


def test_oversized_body_rejected():
    client = TestClient(app)
    body = "x" * (get_settings().MAX_REQUEST_BODY_BYTES + 1)
    r = client.post("/api/v1/jobs", content=body, headers={"Content-Type": "application/json"})
    assert r.status_code == 413
