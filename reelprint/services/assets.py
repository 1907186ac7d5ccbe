import io
import logging
import os
from dataclasses import dataclass
from typing import Optional

import requests
from PIL import Image

from ..config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


@dataclass
class BrandingAssets:
    """Logo and header banner; either may be None when it failed to load."""
    logo: Optional[Image.Image] = None
    header: Optional[Image.Image] = None


def load_image(source: Optional[str], timeout_seconds: float = 10.0) -> Optional[Image.Image]:
    """
    Load an image from an http(s) URL or a local path.

    Returns None instead of raising; a missing logo must never block a label.
    """
    if not source:
        return None
    try:
        if source.startswith(("http://", "https://")):
            resp = requests.get(source, timeout=timeout_seconds)
            resp.raise_for_status()
            image = Image.open(io.BytesIO(resp.content))
        else:
            if not os.path.exists(source):
                logger.warning(f"Image asset not found: {source}")
                return None
            image = Image.open(source)
        image.load()
        # Flatten transparency onto white so it prints the same everywhere
        if image.mode in ("RGBA", "LA", "P"):
            rgba = image.convert("RGBA")
            background = Image.new("RGB", rgba.size, "white")
            background.paste(rgba, mask=rgba.split()[-1])
            return background
        return image.convert("RGB")
    except Exception as e:
        logger.warning(f"Could not load image asset {source}: {e}")
        return None


def load_branding_assets(settings: Optional[Settings] = None) -> BrandingAssets:
    """Load every asset up front, before any drawing starts."""
    settings = settings or default_settings
    return BrandingAssets(
        logo=load_image(settings.logo_url, settings.asset_timeout_seconds),
        header=load_image(settings.header_image_url, settings.asset_timeout_seconds),
    )
