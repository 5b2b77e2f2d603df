"""Central configuration for the schema_synth generator."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from datetime import date
from pathlib import Path
from typing import Optional, Union

import yaml

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


@dataclass
class SynthConfig:
    """Defaults used by the field and record generators.

    Reads from environment variables with the SYNTH_ prefix, from a YAML
    file, or accepts explicit values.
    """

    # Record generation
    default_record_count: int = 10

    # Unconstrained strings
    string_min_length: int = 5
    string_max_length: int = 10

    # Unconstrained numbers and integers
    number_min: float = 0
    number_max: float = 1000

    # Unconstrained arrays
    array_min_items: int = 1
    array_max_items: int = 5

    # Window for generated date/datetime values
    date_start: str = "2020-01-01"
    date_end: str = "2025-12-31"

    faker_locale: str = "en_US"
    log_level: str = "INFO"

    @property
    def date_window(self) -> tuple[date, date]:
        return date.fromisoformat(str(self.date_start)), date.fromisoformat(str(self.date_end))

    @classmethod
    def from_env(cls) -> SynthConfig:
        """Load configuration from environment variables."""
        return cls(
            default_record_count=int(os.getenv("SYNTH_DEFAULT_RECORD_COUNT", "10")),
            string_min_length=int(os.getenv("SYNTH_STRING_MIN_LENGTH", "5")),
            string_max_length=int(os.getenv("SYNTH_STRING_MAX_LENGTH", "10")),
            number_min=float(os.getenv("SYNTH_NUMBER_MIN", "0")),
            number_max=float(os.getenv("SYNTH_NUMBER_MAX", "1000")),
            array_min_items=int(os.getenv("SYNTH_ARRAY_MIN_ITEMS", "1")),
            array_max_items=int(os.getenv("SYNTH_ARRAY_MAX_ITEMS", "5")),
            date_start=os.getenv("SYNTH_DATE_START", "2020-01-01"),
            date_end=os.getenv("SYNTH_DATE_END", "2025-12-31"),
            faker_locale=os.getenv("SYNTH_FAKER_LOCALE", "en_US"),
            log_level=os.getenv("SYNTH_LOG_LEVEL", "INFO"),
        )

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> SynthConfig:
        """Load configuration from a YAML mapping. Unknown keys are ignored."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        known = {fld.name for fld in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


_config: Optional[SynthConfig] = None


def get_config() -> SynthConfig:
    """Get or create the singleton configuration."""
    global _config
    if _config is None:
        _config = SynthConfig.from_env()
    return _config


def set_config(config: Optional[SynthConfig]) -> None:
    """Override the global configuration. ``None`` resets to the env defaults."""
    global _config
    _config = config


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for scripts and notebooks."""
    level = level or get_config().log_level
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
