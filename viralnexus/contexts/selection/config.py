"""
Selector configuration.

Defaults live in DEFAULT_SELECTOR_CONFIG. A YAML file may override any subset
of them; it is taken from the explicit path argument, or from the
SELECTOR_CONFIG_PATH environment variable (.env is honored).

Example selector.yaml:
    threshold: 0.08
    weights:
      filename: 0.5
    resolution:
      mode: scaled
"""

import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from omegaconf import OmegaConf

from viralnexus.contexts.selection.exceptions import SelectorConfigError
from viralnexus.contexts.selection.scorer import RESOLUTION_MODES, ResolutionPolicy, ScoringWeights

load_dotenv()

CONFIG_PATH_ENV_VAR = "SELECTOR_CONFIG_PATH"

DEFAULT_SELECTOR_CONFIG: Dict[str, Any] = {
    "threshold": 0.05,
    "tie_epsilon": 0.001,
    "use_cache": True,
    "debug_logging": False,
    "weights": {
        "filename": 0.6,
        "alt_caption": 0.3,
        "keyword": 0.4,
        "resolution": 0.1,
    },
    "resolution": {
        "mode": "threshold",
        "min_pixels": 100_000,
        "cap_pixels": 1_000_000,
    },
}


@dataclass(frozen=True)
class SelectorConfig:
    """Tunable settings for ImageSelector."""

    weights: ScoringWeights = field(default_factory=ScoringWeights)
    resolution: ResolutionPolicy = field(default_factory=ResolutionPolicy)
    threshold: float = 0.05
    tie_epsilon: float = 0.001
    use_cache: bool = True
    debug_logging: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SelectorConfig":
        """
        Build a validated config from a complete settings dict.

        Raises:
            SelectorConfigError: On non-numeric, non-finite or negative values, or an unknown resolution mode
        """
        weights = {name: _non_negative(value, f"weights.{name}") for name, value in data["weights"].items()}

        resolution = data["resolution"]
        if resolution["mode"] not in RESOLUTION_MODES:
            raise SelectorConfigError(
                f"Unknown resolution mode '{resolution['mode']}'. Available: {list(RESOLUTION_MODES)}",
                key="resolution.mode",
            )
        cap_pixels = int(_non_negative(resolution["cap_pixels"], "resolution.cap_pixels"))
        if cap_pixels == 0:
            raise SelectorConfigError("cap_pixels must be positive", key="resolution.cap_pixels")

        return cls(
            weights=ScoringWeights(**weights),
            resolution=ResolutionPolicy(
                mode=resolution["mode"],
                min_pixels=int(_non_negative(resolution["min_pixels"], "resolution.min_pixels")),
                cap_pixels=cap_pixels,
            ),
            threshold=_non_negative(data["threshold"], "threshold"),
            tie_epsilon=_non_negative(data["tie_epsilon"], "tie_epsilon"),
            use_cache=bool(data["use_cache"]),
            debug_logging=bool(data["debug_logging"]),
        )


def _non_negative(value: Any, key: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise SelectorConfigError(f"Expected a number, got {value!r}", key=key)
    if not math.isfinite(number):
        raise SelectorConfigError(f"Expected a finite number, got {number}", key=key)
    if number < 0:
        raise SelectorConfigError(f"Expected a non-negative number, got {number}", key=key)
    return number


def _check_known_keys(data: Dict[str, Any], reference: Dict[str, Any], prefix: str = "") -> None:
    """Reject keys that have no default counterpart (catches typos in YAML)."""
    for key, value in data.items():
        dotted = f"{prefix}{key}"
        if key not in reference:
            raise SelectorConfigError(
                f"Unknown selector setting. Available: {sorted(reference)}", key=dotted
            )
        if isinstance(reference[key], dict):
            if not isinstance(value, dict):
                raise SelectorConfigError("Expected a mapping", key=dotted)
            _check_known_keys(value, reference[key], prefix=f"{dotted}.")


def load_selector_config(
    config_path: Optional[Path] = None, overrides: Optional[Dict[str, Any]] = None
) -> SelectorConfig:
    """
    Load selector settings, layering defaults < YAML file < overrides.

    Args:
        config_path: YAML file to merge over the defaults. Defaults to the
                     SELECTOR_CONFIG_PATH environment variable when set.
        overrides: Settings applied last (e.g., from CLI flags)

    Returns:
        Validated SelectorConfig

    Raises:
        FileNotFoundError: If the config file does not exist
        SelectorConfigError: On unknown keys or invalid values
    """
    if config_path is None and os.getenv(CONFIG_PATH_ENV_VAR):
        config_path = Path(os.getenv(CONFIG_PATH_ENV_VAR))

    layers = [OmegaConf.create(DEFAULT_SELECTOR_CONFIG)]

    if config_path is not None:
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Selector config not found: {config_path}")
        file_settings = OmegaConf.to_container(OmegaConf.load(config_path), resolve=True) or {}
        if not isinstance(file_settings, dict):
            raise SelectorConfigError(f"Selector config must be a mapping: {config_path}")
        _check_known_keys(file_settings, DEFAULT_SELECTOR_CONFIG)
        layers.append(OmegaConf.create(file_settings))

    if overrides:
        _check_known_keys(overrides, DEFAULT_SELECTOR_CONFIG)
        layers.append(OmegaConf.create(overrides))

    merged = OmegaConf.to_container(OmegaConf.merge(*layers), resolve=True)
    return SelectorConfig.from_dict(merged)
