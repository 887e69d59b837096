"""Cloudinary configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

CLOUDINARY_BASE_URL = "https://api.cloudinary.com/v1_1"
CLOUDINARY_TIMEOUT_SECONDS = 30.0

# 420 is Cloudinary's Admin API rate-limit status
CLOUDINARY_RETRY_STATUSES = frozenset({420, 429, 500, 502, 503, 504})


@dataclass(frozen=True)
class CloudinaryConfig:
    """Holds Cloudinary account credentials and HTTP behaviour."""

    cloud_name: str
    api_key: str
    api_secret: str
    resilience: ResilienceConfig

    def __repr__(self) -> str:
        return f"CloudinaryConfig(cloud_name={self.cloud_name!r}, api_key={self.api_key!r})"


def default_cloudinary_resilience(base_url: str = CLOUDINARY_BASE_URL) -> ResilienceConfig:
    # destroy is a POST and stays out of the retried methods: a failed deletion is
    # reported and picked up again by the next run
    return ResilienceConfig(
        name="cloudinary",
        base_url=base_url,
        timeout_seconds=CLOUDINARY_TIMEOUT_SECONDS,
        retry=RetryPolicy(
            total=3,
            allowed_methods=frozenset({"GET"}),
            status_forcelist=CLOUDINARY_RETRY_STATUSES,
        ),
        ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
    )


def get_cloudinary_config(*, resilience: ResilienceConfig | None = None) -> CloudinaryConfig:
    values = require_env_vars(
        ("CLOUDINARY_CLOUD_NAME", "CLOUDINARY_API_KEY", "CLOUDINARY_API_SECRET")
    )
    base_url = optional_env_var("CLOUDINARY_BASE_URL") or CLOUDINARY_BASE_URL
    return CloudinaryConfig(
        cloud_name=values["CLOUDINARY_CLOUD_NAME"],
        api_key=values["CLOUDINARY_API_KEY"],
        api_secret=values["CLOUDINARY_API_SECRET"],
        resilience=resilience or default_cloudinary_resilience(base_url.rstrip("/")),
    )
