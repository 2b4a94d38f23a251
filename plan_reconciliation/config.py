"""Configuration management for the plan reconciliation engine."""

import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration."""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./plan_reconciliation.db")

    # Application
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Supplement placement
    SUPPLEMENT_LOOKAHEAD_WEEKS: int = int(os.getenv("SUPPLEMENT_LOOKAHEAD_WEEKS", "4"))
    SUPPLEMENT_MIN_SCORE: float = float(os.getenv("SUPPLEMENT_MIN_SCORE", "30"))

    # Activity matching
    MATCH_MIN_SCORE: float = float(os.getenv("MATCH_MIN_SCORE", "40"))
    MATCH_DATE_TOLERANCE_DAYS: int = int(os.getenv("MATCH_DATE_TOLERANCE_DAYS", "1"))

    # Workouts longer than this (endurance category) count as long rides
    LONG_RIDE_MIN_MINUTES: int = int(os.getenv("LONG_RIDE_MIN_MINUTES", "120"))

    # Workout catalog cache
    CATALOG_CACHE_TTL_SECONDS: float = float(os.getenv("CATALOG_CACHE_TTL_SECONDS", "300"))

    # Training load (exponentially weighted averages, days)
    CTL_TIME_CONSTANT: float = float(os.getenv("CTL_TIME_CONSTANT", "42"))
    ATL_TIME_CONSTANT: float = float(os.getenv("ATL_TIME_CONSTANT", "7"))

    # Redistribution scoring policy constants. These are product-tuned
    # values, not derived ones.
    SCORE_BASE: float = float(os.getenv("SCORE_BASE", "50"))
    SCORE_PREFERRED_DAY: float = float(os.getenv("SCORE_PREFERRED_DAY", "15"))
    SCORE_DOUBLE_HARD_DAY: float = float(os.getenv("SCORE_DOUBLE_HARD_DAY", "-50"))
    SCORE_REPLACE_REST_DAY: float = float(os.getenv("SCORE_REPLACE_REST_DAY", "10"))
    SCORE_OCCUPIED_DAY: float = float(os.getenv("SCORE_OCCUPIED_DAY", "-20"))
    SCORE_EMPTY_DAY: float = float(os.getenv("SCORE_EMPTY_DAY", "10"))
    SCORE_BACK_TO_BACK_HARD: float = float(os.getenv("SCORE_BACK_TO_BACK_HARD", "-30"))
    SCORE_HEAVY_RECOVERY_WINDOW: float = float(os.getenv("SCORE_HEAVY_RECOVERY_WINDOW", "-20"))
    SCORE_WEEKEND_LONG_RIDE: float = float(os.getenv("SCORE_WEEKEND_LONG_RIDE", "20"))
    SCORE_PER_DAY_OFFSET: float = float(os.getenv("SCORE_PER_DAY_OFFSET", "-2"))
    SCORE_EXCEEDS_MAX_DURATION: float = float(os.getenv("SCORE_EXCEEDS_MAX_DURATION", "-40"))

    # Supplement scoring policy constants
    SUPPLEMENT_SCORE_BASE: float = float(os.getenv("SUPPLEMENT_SCORE_BASE", "50"))
    SUPPLEMENT_SCORE_PREFERRED_DAY: float = float(os.getenv("SUPPLEMENT_SCORE_PREFERRED_DAY", "20"))
    SUPPLEMENT_SCORE_REST_DAY: float = float(os.getenv("SUPPLEMENT_SCORE_REST_DAY", "10"))
    SUPPLEMENT_SCORE_DAY_BEFORE_HARD: float = float(os.getenv("SUPPLEMENT_SCORE_DAY_BEFORE_HARD", "-40"))
    SUPPLEMENT_SCORE_HARD_IN_WINDOW: float = float(os.getenv("SUPPLEMENT_SCORE_HARD_IN_WINDOW", "-20"))

    @classmethod
    def validate(cls) -> bool:
        """Validate configuration values."""
        if cls.SUPPLEMENT_LOOKAHEAD_WEEKS <= 0:
            raise ValueError("SUPPLEMENT_LOOKAHEAD_WEEKS must be positive")
        if cls.MATCH_DATE_TOLERANCE_DAYS < 0:
            raise ValueError("MATCH_DATE_TOLERANCE_DAYS cannot be negative")
        if cls.CTL_TIME_CONSTANT <= 0 or cls.ATL_TIME_CONSTANT <= 0:
            raise ValueError("CTL_TIME_CONSTANT and ATL_TIME_CONSTANT must be positive")
        if cls.CATALOG_CACHE_TTL_SECONDS < 0:
            raise ValueError("CATALOG_CACHE_TTL_SECONDS cannot be negative")
        return True

    @classmethod
    def get_log_level(cls) -> str:
        """Get the configured log level name, upper-cased."""
        return cls.LOG_LEVEL.upper()


config = Config()
