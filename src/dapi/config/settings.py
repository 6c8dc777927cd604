"""Unified settings: init kwargs and environment variables in one object.

Priority chain (highest to lowest):
  1. Init kwargs, passed by the host application
  2. ``DAPI_*`` env vars
  3. Code defaults

Uses Pydantic Settings v2.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings

from dapi.config.logging import configure_logging
from dapi.telemetry import disable_telemetry, enable_telemetry


class DapiSettings(BaseSettings):
    """Settings for logging, telemetry, and plugin loading.

    Attributes:
        verbose: Log the ``dapi`` logger tree at DEBUG.
        log_json: Render log lines as JSON instead of console output.
        telemetry: Record spans for traced facade calls and register the
            built-in tracing plugin in ``PluginManager.from_settings()``.
        plugins_autoload: Discover ``dapi.plugins`` entry points.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "DAPI_",
    }

    verbose: bool = False
    log_json: bool = False
    telemetry: bool = False
    plugins_autoload: bool = False


def apply_settings(settings: DapiSettings | None = None) -> DapiSettings:
    """Configure logging and telemetry from *settings* (default: env vars).

    Returns the settings that were applied.
    """
    if settings is None:
        settings = DapiSettings()

    configure_logging(verbose=settings.verbose, log_json=settings.log_json)
    if settings.telemetry:
        enable_telemetry()
    else:
        disable_telemetry()
    return settings
