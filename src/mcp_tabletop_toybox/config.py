"""Environment-driven settings for the tabletop server.

Only reads ``os.environ`` (or a mapping passed in by tests) and validates the
values; nothing here touches decks or dice.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal, TypeAlias

from .errors import ConfigError


RngKind: TypeAlias = Literal["pseudo", "system"]

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class Settings:
    seed: int | None = None
    rng: RngKind = "pseudo"
    card_image_base: str = "resources/cards"
    tarot_image_base: str = "resources/tarot"
    default_notation: str = "1d20"
    log_level: str = "WARNING"

    @property
    def log_level_value(self) -> int:
        return logging.getLevelName(self.log_level)


def _get(env: Mapping[str, str], name: str) -> str | None:
    value = env.get(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ
    defaults = Settings()

    seed: int | None = None
    raw_seed = _get(env, "TABLETOP_SEED")
    if raw_seed is not None:
        try:
            seed = int(raw_seed)
        except ValueError:
            raise ConfigError(f"TABLETOP_SEED must be an integer, got {raw_seed!r}") from None

    rng = (_get(env, "TABLETOP_RNG") or defaults.rng).lower()
    if rng not in ("pseudo", "system"):
        raise ConfigError(f"TABLETOP_RNG must be 'pseudo' or 'system', got {rng!r}")
    if rng == "system" and seed is not None:
        raise ConfigError("TABLETOP_SEED cannot be combined with TABLETOP_RNG=system")

    log_level = (_get(env, "TABLETOP_LOG_LEVEL") or defaults.log_level).upper()
    if log_level not in _LOG_LEVELS:
        raise ConfigError(f"TABLETOP_LOG_LEVEL must be one of {sorted(_LOG_LEVELS)}, got {log_level!r}")

    return Settings(
        seed=seed,
        rng=rng,  # type: ignore[arg-type]
        card_image_base=(_get(env, "TABLETOP_CARD_IMAGE_BASE") or defaults.card_image_base).rstrip("/"),
        tarot_image_base=(_get(env, "TABLETOP_TAROT_IMAGE_BASE") or defaults.tarot_image_base).rstrip("/"),
        default_notation=_get(env, "TABLETOP_DEFAULT_NOTATION") or defaults.default_notation,
        log_level=log_level,
    )
