"""
This module holds the environment-driven configuration of the stream parser.
It covers the debug logging switch and the JSON keys scanned by the field extractor.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

ENV_DEBUG = "THRIVE_STREAM_DEBUG"
ENV_TITLE_FIELD = "THRIVE_STREAM_TITLE_FIELD"
ENV_DESCRIPTION_FIELD = "THRIVE_STREAM_DESCRIPTION_FIELD"
ENV_STEPS_FIELD = "THRIVE_STREAM_STEPS_FIELD"

_TRUTHY = {"1", "true", "yes", "on"}


def debug_enabled() -> bool:
    """True when THRIVE_STREAM_DEBUG asks for discarded lines and extractions to be logged."""
    return os.getenv(ENV_DEBUG, "").lower() in _TRUTHY


@dataclass(frozen=True, slots=True)
class FieldNames:
    """
    Top-level keys the incremental extractor looks for, in priority order.
    Defaults match the routine documents produced by the assistant.
    """

    title: str = "routineTitle"
    description: str = "routineDescription"
    steps: str = "steps"

    @staticmethod
    def from_env() -> FieldNames:
        """
        Create a FieldNames instance, letting environment variables override each key.

        Returns:
            A FieldNames with THRIVE_STREAM_*_FIELD values applied where set.

        Raises:
            ValueError: If an override is set but blank.
        """
        defaults = FieldNames()
        values: dict[str, str] = {}
        for attr, env_name in (
            ("title", ENV_TITLE_FIELD),
            ("description", ENV_DESCRIPTION_FIELD),
            ("steps", ENV_STEPS_FIELD),
        ):
            raw = os.getenv(env_name)
            if raw is None:
                values[attr] = getattr(defaults, attr)
                continue
            if not raw.strip():
                raise ValueError(f"{env_name} is set but empty")
            values[attr] = raw.strip()
        return FieldNames(**values)


DEFAULT_FIELDS = FieldNames()
