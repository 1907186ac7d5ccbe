import os
import logging
from dataclasses import dataclass, field
from typing import List, Optional
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:3001",
    "https://satguru.indusanalytics.co.in",
    "https://satguru-reels.vercel.app",
]


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={raw!r}, using {default}")
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={raw!r}, using {default}")
        return default


@dataclass
class Settings:
    """Runtime settings for label and packing slip generation."""
    mill_name: str = "Satguru Papers Pvt. Ltd."
    mill_tagline: str = "Kraft paper Mill"
    plant_address: str = "Address - Pithampur Dhar(M.P.)"
    logo_url: Optional[str] = None
    header_image_url: Optional[str] = None
    asset_timeout_seconds: float = 10.0
    # Physical packing slip sheets always carry at least this many rows per table
    packing_slip_min_rows: int = 23
    scan_history_limit: int = 50
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        cors_origins = list(DEFAULT_CORS_ORIGINS)
        env_origins = os.getenv("CORS_ORIGINS", "")
        if env_origins:
            cors_origins.extend([origin.strip() for origin in env_origins.split(",") if origin.strip()])

        settings = cls(
            mill_name=os.getenv("MILL_NAME", cls.mill_name),
            mill_tagline=os.getenv("MILL_TAGLINE", cls.mill_tagline),
            plant_address=os.getenv("PLANT_ADDRESS", cls.plant_address),
            logo_url=os.getenv("LOGO_URL") or None,
            header_image_url=os.getenv("HEADER_IMAGE_URL") or None,
            asset_timeout_seconds=_float_env("ASSET_TIMEOUT_SECONDS", cls.asset_timeout_seconds),
            packing_slip_min_rows=max(1, _int_env("PACKING_SLIP_MIN_ROWS", cls.packing_slip_min_rows)),
            scan_history_limit=max(1, _int_env("SCAN_HISTORY_LIMIT", cls.scan_history_limit)),
            cors_origins=cors_origins,
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
        )
        return settings


settings = Settings.from_env()
