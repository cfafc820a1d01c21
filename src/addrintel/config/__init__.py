"""Configuration: settings, logging and response templates."""

from addrintel.config.logging_setup import configure_logging
from addrintel.config.settings import IntelConfig

__all__ = ["IntelConfig", "configure_logging"]
