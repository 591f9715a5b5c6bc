"""Feature capabilities handed to routes.

Routes decide whether a surface is available; the job, conversation and
analytics services never look at these switches.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.core.config import Settings, get_settings


@dataclass(frozen=True)
class FeatureCapabilities:
    messaging: bool = True
    analytics: bool = True
    conversation_fallback: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> "FeatureCapabilities":
        return cls(
            messaging=bool(settings.FEATURE_MESSAGING_ENABLED),
            analytics=bool(settings.FEATURE_ANALYTICS_ENABLED),
            conversation_fallback=bool(settings.FEATURE_CONVERSATION_FALLBACK),
        )


def get_features() -> FeatureCapabilities:
    """FastAPI dependency returning the capabilities for this process."""
    return FeatureCapabilities.from_settings(get_settings())
