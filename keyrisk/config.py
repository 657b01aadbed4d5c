"""
keyrisk Configuration

Central settings loaded from environment variables.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _optional_int(value: Optional[str]) -> Optional[int]:
    if value is None or value.strip() == "":
        return None
    return int(value)


@dataclass(frozen=True)
class Settings:
    """Immutable engine settings."""

    # --- Core Versioning ---
    CORE_VERSION: str = "1.0.0"

    # --- Keyspace ---
    # Realistic bitting combinations per keyway after manufacturing tolerance
    EFFECTIVE_COMBINATIONS: int = int(
        os.getenv("KEYRISK_EFFECTIVE_COMBINATIONS", "60000")
    )
    MACS_LIMIT: int = int(os.getenv("KEYRISK_MACS_LIMIT", "7"))
    MIN_DEPTH: int = 0
    MAX_DEPTH: int = 9

    # --- Scoring ---
    # Score/certainty assigned to every component of a MACS-invalid key
    INVALID_KEY_FLOOR: float = float(os.getenv("KEYRISK_INVALID_KEY_FLOOR", "5"))

    # --- Geography ---
    DEFAULT_POSTAL_CODE: str = os.getenv("KEYRISK_DEFAULT_POSTAL_CODE", "00000")

    # --- Jitter ---
    JITTER_SEED: Optional[int] = _optional_int(os.getenv("KEYRISK_JITTER_SEED"))


settings = Settings()
