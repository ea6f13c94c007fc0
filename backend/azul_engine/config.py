"""
Environment-driven settings for the tile-drafting engine.
"""
import os
import random
from typing import Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# "development" or "production"; selects the log renderer and level
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

# Optional integer seed for replayable deals
SHUFFLE_SEED_ENV = "AZUL_SHUFFLE_SEED"


def get_shuffle_seed() -> Optional[int]:
    """Read the configured shuffle seed, or None when shuffles are ambient."""
    raw = os.getenv(SHUFFLE_SEED_ENV, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{SHUFFLE_SEED_ENV} must be an integer, got {raw!r}")


def default_random_source() -> random.Random:
    """
    Random source used when a caller does not inject one.

    Seeded from AZUL_SHUFFLE_SEED when it is set, so a whole match can be
    replayed; otherwise seeded from the OS like the module-level generator.
    """
    seed = get_shuffle_seed()
    if seed is None:
        return random.Random()
    return random.Random(seed)
