"""Reconciliation run defaults."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_bool, env_int, optional_env_var

DEFAULT_ROOT_FOLDER = "peakmode"
DEFAULT_PAGE_SIZE = 500
MAX_PAGE_SIZE = 500
DEFAULT_CONCURRENCY = 5
MAX_CONCURRENCY = 10


@dataclass(frozen=True, slots=True)
class SweepConfig:
    root_folder: str = DEFAULT_ROOT_FOLDER
    page_size: int = DEFAULT_PAGE_SIZE
    concurrency: int = DEFAULT_CONCURRENCY
    revalidate: bool = True


def get_sweep_config() -> SweepConfig:
    root = optional_env_var("ASSETSWEEP_ROOT_FOLDER") or DEFAULT_ROOT_FOLDER
    return SweepConfig(
        root_folder=root.strip("/"),
        page_size=env_int(
            "ASSETSWEEP_PAGE_SIZE", DEFAULT_PAGE_SIZE, minimum=1, maximum=MAX_PAGE_SIZE
        ),
        concurrency=env_int(
            "ASSETSWEEP_CONCURRENCY", DEFAULT_CONCURRENCY, minimum=1, maximum=MAX_CONCURRENCY
        ),
        revalidate=env_bool("ASSETSWEEP_REVALIDATE", True),  # noqa: FBT003
    )
