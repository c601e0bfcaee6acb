"""
Image loading for exports.

Remote images are fetched with httpx, local ones read from the upload
directory. A failed image is logged and replaced by a blank placeholder;
it never fails the export.
"""
import asyncio
import base64
import io
import logging
from pathlib import Path
from typing import Dict, Iterable, Optional

import httpx
from PIL import Image

from arbati.core.config import settings

logger = logging.getLogger(__name__)

PLACEHOLDER_SIZE = (64, 64)


def placeholder_png() -> bytes:
    """A blank white square, used where an image could not be loaded."""
    buffer = io.BytesIO()
    Image.new("RGB", PLACEHOLDER_SIZE, "white").save(buffer, format="PNG")
    return buffer.getvalue()


def normalize_image(data: bytes) -> bytes:
    """Re-encode as PNG so every consumer (HTML, reportlab) gets one format."""
    with Image.open(io.BytesIO(data)) as img:
        img = img.convert("RGBA") if img.mode in ("P", "LA") else img
        if img.mode not in ("RGB", "RGBA"):
            img = img.convert("RGB")
        buffer = io.BytesIO()
        img.save(buffer, format="PNG")
        return buffer.getvalue()


def to_data_uri(data: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(data).decode("ascii")


def _local_path(source: str) -> Path:
    upload_dir = Path(settings.UPLOAD_DIR).resolve()
    path = (upload_dir / source.lstrip("/").removeprefix("uploads/")).resolve()
    if upload_dir not in path.parents and path != upload_dir:
        raise ValueError(f"Image path outside upload directory: {source}")
    return path


async def load_image(client: httpx.AsyncClient, source: str) -> bytes:
    """Load and normalise one image. Errors propagate to the caller."""
    if source.startswith("data:"):
        raw = base64.b64decode(source.split(",", 1)[1])
    elif source.startswith(("http://", "https://")):
        response = await client.get(source)
        response.raise_for_status()
        raw = response.content
    else:
        raw = await asyncio.to_thread(_local_path(source).read_bytes)
    return await asyncio.to_thread(normalize_image, raw)


async def load_images(sources: Iterable[Optional[str]], client: httpx.AsyncClient | None = None) -> Dict[str, bytes]:
    """
    Load every distinct non-empty source concurrently.

    Returns PNG bytes per source; failed sources map to the placeholder.
    """
    unique = list(dict.fromkeys(s for s in sources if s))
    if not unique:
        return {}

    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=settings.IMAGE_FETCH_TIMEOUT, follow_redirects=True)
    try:
        results = await asyncio.gather(*(load_image(client, s) for s in unique), return_exceptions=True)
    finally:
        if owns_client:
            await client.aclose()

    images: Dict[str, bytes] = {}
    placeholder = None
    for source, result in zip(unique, results):
        if isinstance(result, Exception):
            logger.warning(f"Could not load image {source}: {result}")
            placeholder = placeholder or placeholder_png()
            images[source] = placeholder
        else:
            images[source] = result
    return images
