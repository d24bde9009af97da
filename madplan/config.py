"""Configuration and settings management for madplan."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

# App directories
APP_NAME = "madplan"
CONFIG_DIR = Path.home() / f".{APP_NAME}"
PANTRY_FILE = CONFIG_DIR / "pantry.json"

# Planning defaults
DEFAULT_COST_CEILING = 200.0
DEFAULT_REAL_STORE_PROBABILITY = 0.7


@dataclass
class PlannerSettings:
    """Tunable knobs for a planning run."""

    data_dir: Path | None = None
    seed: int | None = None
    cost_ceiling: float = DEFAULT_COST_CEILING
    real_store_probability: float = DEFAULT_REAL_STORE_PROBABILITY
    fuzzy_threshold: int | None = None
    exclude_pantry: bool = False


def _env_number(name: str, cast, default):
    """Read a numeric env var, keeping the default on bad input."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        logger.warning("Ignoring invalid %s=%r", name, raw)
        return default


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def get_settings() -> PlannerSettings:
    """Build planner settings from the environment."""
    data_dir = os.getenv("MADPLAN_DATA_DIR")

    probability = _env_number(
        "MADPLAN_REAL_STORE_PROBABILITY", float, DEFAULT_REAL_STORE_PROBABILITY
    )
    if not 0.0 <= probability <= 1.0:
        logger.warning("MADPLAN_REAL_STORE_PROBABILITY out of range: %s", probability)
        probability = DEFAULT_REAL_STORE_PROBABILITY

    return PlannerSettings(
        data_dir=Path(data_dir) if data_dir else None,
        seed=_env_number("MADPLAN_SEED", int, None),
        cost_ceiling=_env_number("MADPLAN_COST_CEILING", float, DEFAULT_COST_CEILING),
        real_store_probability=probability,
        fuzzy_threshold=_env_number("MADPLAN_FUZZY_THRESHOLD", int, None),
        exclude_pantry=_env_flag("MADPLAN_EXCLUDE_PANTRY"),
    )


def ensure_config_dir() -> Path:
    """Create the config directory if needed."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    return CONFIG_DIR
