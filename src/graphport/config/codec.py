"""Codec configuration values (wire format knobs)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final

from .errors import ConfigurationError

DEFAULT_ID_PREFIX: Final[str] = "@"
ID_FIELD_SUFFIX: Final[str] = "id"


@dataclass(frozen=True, slots=True)
class CodecConfig:
    """Holds the surrogate id prefix and the reserved record key derived from it."""

    id_prefix: str = DEFAULT_ID_PREFIX

    def __post_init__(self) -> None:
        if not self.id_prefix or self.id_prefix.isdigit():
            raise ConfigurationError(f"Invalid surrogate id prefix: {self.id_prefix!r}")

    @property
    def id_key(self) -> str:
        return f"{self.id_prefix}{ID_FIELD_SUFFIX}"

    def is_surrogate(self, value: object) -> bool:
        return isinstance(value, str) and len(value) > len(self.id_prefix) and (
            value.startswith(self.id_prefix)
        )


def get_codec_config() -> CodecConfig:
    prefix = os.getenv("GRAPHPORT_ID_PREFIX")
    if prefix is None or not prefix.strip():
        return CodecConfig()
    return CodecConfig(id_prefix=prefix.strip())
