"""Configuration helpers for flow-recorder entry points."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from flowrecorder.domains.flow.services import DEFAULT_FLOW_NAME
from flowrecorder.domains.recording.value_objects import PollInterval

logger = logging.getLogger(__name__)

ENV_POLL_INTERVAL = "FLOWREC_POLL_INTERVAL_MS"
ENV_FLOW_NAME = "FLOWREC_FLOW_NAME"
ENV_OUTPUT_DIR = "FLOWREC_OUTPUT_DIR"
ENV_PROVIDER = "FLOWREC_PROVIDER"
ENV_LOG_LEVEL = "FLOWREC_LOG_LEVEL"

_DEFAULT_OUTPUT_DIR = "samples"
_DEFAULT_LOG_LEVEL = "INFO"
_ENV_LOADED = False


@dataclass(frozen=True)
class RecorderConfig:
    """Holds runtime settings for the recorder entry points."""

    poll_interval: PollInterval = PollInterval.default()
    flow_name: str = DEFAULT_FLOW_NAME
    output_dir: Path = Path(_DEFAULT_OUTPUT_DIR)
    provider: Optional[str] = None
    log_level: str = _DEFAULT_LOG_LEVEL

    def with_overrides(
        self,
        *,
        poll_interval_ms: Optional[int] = None,
        flow_name: Optional[str] = None,
        output_dir: Optional[Path] = None,
        provider: Optional[str] = None,
        log_level: Optional[str] = None,
    ) -> "RecorderConfig":
        """Return a copy with the provided overrides applied."""

        cfg = self
        if poll_interval_ms is not None:
            cfg = replace(cfg, poll_interval=PollInterval(poll_interval_ms))
        if flow_name:
            cfg = replace(cfg, flow_name=flow_name)
        if output_dir is not None:
            cfg = replace(cfg, output_dir=Path(output_dir))
        if provider:
            cfg = replace(cfg, provider=provider)
        if log_level:
            cfg = replace(cfg, log_level=log_level.upper())
        return cfg


def load_recorder_config(
    *,
    poll_interval_ms: Optional[int] = None,
    flow_name: Optional[str] = None,
    output_dir: Optional[Path] = None,
    provider: Optional[str] = None,
    log_level: Optional[str] = None,
) -> RecorderConfig:
    """Load configuration from environment variables and overrides.

    Raises:
        ValueError: If FLOWREC_POLL_INTERVAL_MS is not an integer within the
            allowed poll interval range.
    """

    _ensure_env_loaded()

    raw_interval = os.getenv(ENV_POLL_INTERVAL, "").strip()
    if poll_interval_ms is None and raw_interval:
        try:
            poll_interval_ms = int(raw_interval)
        except ValueError:
            raise ValueError(
                f"{ENV_POLL_INTERVAL} must be an integer, got {raw_interval!r}"
            ) from None
    interval = (
        PollInterval(poll_interval_ms)
        if poll_interval_ms is not None
        else PollInterval.default()
    )

    resolved_name = flow_name or os.getenv(ENV_FLOW_NAME, "").strip() or DEFAULT_FLOW_NAME
    resolved_dir = output_dir or Path(
        os.getenv(ENV_OUTPUT_DIR, "").strip() or _DEFAULT_OUTPUT_DIR
    )
    resolved_provider = provider or os.getenv(ENV_PROVIDER, "").strip() or None
    resolved_level = (
        log_level or os.getenv(ENV_LOG_LEVEL, "").strip() or _DEFAULT_LOG_LEVEL
    ).upper()
    if logging.getLevelName(resolved_level) == f"Level {resolved_level}":
        logger.warning(
            "Unknown log level %r, falling back to %s", resolved_level, _DEFAULT_LOG_LEVEL
        )
        resolved_level = _DEFAULT_LOG_LEVEL

    return RecorderConfig(
        poll_interval=interval,
        flow_name=resolved_name,
        output_dir=Path(resolved_dir),
        provider=resolved_provider,
        log_level=resolved_level,
    )


def _ensure_env_loaded() -> None:
    global _ENV_LOADED
    if _ENV_LOADED:
        return
    _ENV_LOADED = True
    dotenv_path = Path.cwd() / ".env"
    if dotenv_path.exists():
        load_dotenv(dotenv_path=dotenv_path)
    else:
        load_dotenv()
