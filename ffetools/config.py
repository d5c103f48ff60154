"""Equalizer configuration management.

This module defines the validated set of options recognized by the
equalizer and a process-global configuration context that the entry points
fall back to when no configuration is passed explicitly.
"""

from enum import Enum
from numbers import Integral, Real
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .exceptions import InvalidAlgorithmType, InvalidTapCount


class AlgorithmType(str, Enum):
    """Adaptive algorithm used to train the equalizer weights."""

    LMS = "lms"
    RLS = "rls"


# Learning rate for LMS, forgetting factor for RLS.
DEFAULT_ALPHA = {
    AlgorithmType.LMS: 0.01,
    AlgorithmType.RLS: 0.99,
}


def _parse_alg_type(value: Any) -> AlgorithmType:
    if isinstance(value, AlgorithmType):
        return value
    if isinstance(value, str):
        try:
            return AlgorithmType(value.strip().lower())
        except ValueError:
            pass
    raise InvalidAlgorithmType(f"AlgType must be lms or rls, got {value!r}")


class EqualizerConfig(BaseModel):
    """Options of the feed-forward equalizer.

    The algorithm selector is parsed once into ``AlgorithmType``; the
    training loops dispatch on the enum, never on the raw string.
    """

    model_config = ConfigDict(extra="forbid")

    alg_type: AlgorithmType = Field(
        AlgorithmType.LMS, description="Adaptive algorithm: 'lms' or 'rls'"
    )
    ffe_taps: int = Field(5, description="Number of FFE taps (positive, odd)")
    alpha: Optional[float] = Field(
        None,
        ge=0,
        description="LMS learning rate or RLS forgetting factor; "
        "None selects the algorithm default",
    )
    epoch: int = Field(1, ge=1, description="Number of passes over the signal")

    @field_validator("alg_type", mode="before")
    @classmethod
    def parse_alg_type(cls, value: Any) -> AlgorithmType:
        return _parse_alg_type(value)

    @field_validator("ffe_taps", mode="before")
    @classmethod
    def check_ffe_taps(cls, value: Any) -> int:
        if isinstance(value, bool):
            raise InvalidTapCount(f"FFE taps must be an integer, got {value!r}")
        if not isinstance(value, Integral):
            if isinstance(value, Real) and float(value).is_integer():
                value = int(value)
            else:
                raise InvalidTapCount(f"FFE taps must be an integer, got {value!r}")
        if value <= 0 or value % 2 == 0:
            raise InvalidTapCount(f"FFE taps must be positive and odd, got {value}")
        return int(value)

    @model_validator(mode="after")
    def check_forgetting_factor(self) -> "EqualizerConfig":
        """RLS needs a forgetting factor in (0, 1]."""
        if self.alg_type is AlgorithmType.RLS and self.alpha is not None:
            if not 0 < self.alpha <= 1:
                raise ValueError(
                    f"RLS forgetting factor must lie in (0, 1], got {self.alpha}"
                )
        return self

    @property
    def resolved_alpha(self) -> float:
        """``alpha`` with the per-algorithm default filled in."""
        if self.alpha is None:
            return DEFAULT_ALPHA[self.alg_type]
        return self.alpha

    @classmethod
    def from_yaml(cls, path: str) -> "EqualizerConfig":
        """Load configuration from a YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            EqualizerConfig instance
        """
        import yaml

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    def to_yaml(self, path: str):
        """Save configuration to a YAML file.

        Args:
            path: Path where YAML file will be saved
        """
        import yaml

        data = self.model_dump(mode="json")

        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    def updated(self, **options: Any) -> "EqualizerConfig":
        """Return a validated copy with ``options`` overriding the fields.

        ``alpha`` means a learning rate for LMS and a forgetting factor for
        RLS, so switching ``alg_type`` without passing ``alpha`` falls back
        to the new algorithm's default.
        """
        if not options:
            return self
        data = self.model_dump()
        if "alg_type" in options and "alpha" not in options:
            if _parse_alg_type(options["alg_type"]) is not self.alg_type:
                data["alpha"] = None
        return type(self)(**{**data, **options})


# ============================================================================
# GLOBAL DEFAULT
# ============================================================================
#
# equalize() falls back to this config when called without one.

_global_config: Optional[EqualizerConfig] = None


def set_config(config: Union[EqualizerConfig, Mapping[str, Any], None]):
    """Install the configuration ``equalize`` uses when none is passed.

    A mapping is validated into an ``EqualizerConfig``; ``None`` clears it.
    """
    global _global_config
    if isinstance(config, Mapping):
        config = EqualizerConfig(**config)
    elif config is not None and not isinstance(config, EqualizerConfig):
        raise TypeError(
            f"Expected EqualizerConfig, mapping or None, got {type(config).__name__}"
        )
    _global_config = config


def get_config() -> Optional[EqualizerConfig]:
    """The installed default configuration, or None."""
    return _global_config


def clear_config():
    set_config(None)


def require_config() -> EqualizerConfig:
    """Like ``get_config`` but raises ``RuntimeError`` when nothing is installed."""
    if _global_config is None:
        raise RuntimeError(
            "No equalizer configuration is set. Call set_config() or pass "
            "config to equalize()."
        )
    return _global_config
