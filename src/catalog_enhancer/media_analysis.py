# Media asset analysis
# Probes a media URL for pixel dimensions and byte size. Every failure is
# folded into the result; nothing here raises to the caller.

import asyncio
import io
import logging
import math
from dataclasses import dataclass
from typing import Optional

import httpx

from catalog_enhancer.config_loader import IMAGE_PROBE_TIMEOUT_SECONDS, PDF_ASPECT_RATIO

logger = logging.getLogger(__name__)

NO_DATA_ERROR = "CORS restriction or network error prevented analysis"
PDF_ERROR = "Unable to analyze PDF file"
UNKNOWN_ASPECT_RATIO = "Unknown"


@dataclass
class Dimensions:
    width: int
    height: int


@dataclass
class MediaAnalysis:
    dimensions: Optional[Dimensions] = None
    file_size: Optional[int] = None  # bytes
    aspect_ratio: Optional[str] = None
    error: Optional[str] = None

    @property
    def has_data(self) -> bool:
        return self.dimensions is not None or bool(self.file_size)


def aspect_ratio(width: int, height: int) -> str:
    """Reduce width:height by their GCD, e.g. (1920, 1080) -> "16:9"."""
    divisor = math.gcd(width, height)
    if divisor == 0:
        return f"{width}:{height}"
    return f"{width // divisor}:{height // divisor}"


def to_kb(file_size: int) -> int:
    # Round half up
    return math.floor(file_size / 1024 + 0.5)


async def _fetch_dimensions(client: httpx.AsyncClient, url: str) -> Dimensions:
    from PIL import Image  # noqa: PLC0415

    response = await client.get(url)
    response.raise_for_status()
    with Image.open(io.BytesIO(response.content)) as img:
        width, height = img.size
    return Dimensions(width=width, height=height)


async def _fetch_file_size(client: httpx.AsyncClient, url: str) -> Optional[int]:
    response = await client.head(url)
    content_length = response.headers.get("content-length")
    if content_length:
        return int(content_length)
    return None


async def analyze_media_asset(
    url: str,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = IMAGE_PROBE_TIMEOUT_SECONDS,
) -> MediaAnalysis:
    """Probe ``url`` for dimensions, file size and aspect ratio.

    PDFs only get a size probe. For images both probes run concurrently and
    independently; either may fail without affecting the other. When neither
    yields data the result carries an error string instead.
    """
    if not url:
        return MediaAnalysis(error=NO_DATA_ERROR)

    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(timeout=timeout, follow_redirects=True)
    try:
        if url.lower().endswith(".pdf"):
            try:
                size = await asyncio.wait_for(_fetch_file_size(client, url), timeout)
            except (httpx.HTTPError, asyncio.TimeoutError, ValueError) as e:
                logger.warning("PDF size probe failed for %s: %s", url, e)
                return MediaAnalysis(error=PDF_ERROR)
            return MediaAnalysis(file_size=size, aspect_ratio=PDF_ASPECT_RATIO)

        dims_result, size_result = await asyncio.gather(
            asyncio.wait_for(_fetch_dimensions(client, url), timeout),
            asyncio.wait_for(_fetch_file_size(client, url), timeout),
            return_exceptions=True,
        )
    finally:
        if owns_client:
            await client.aclose()

    dimensions = dims_result if isinstance(dims_result, Dimensions) else None
    if isinstance(dims_result, BaseException):
        logger.debug("Dimension probe failed for %s: %r", url, dims_result)
    file_size = size_result if isinstance(size_result, int) else None
    if isinstance(size_result, BaseException):
        logger.debug("Size probe failed for %s: %r", url, size_result)

    result = MediaAnalysis(
        dimensions=dimensions,
        file_size=file_size,
        aspect_ratio=aspect_ratio(dimensions.width, dimensions.height) if dimensions else UNKNOWN_ASPECT_RATIO,
    )
    if not result.has_data:
        result.error = NO_DATA_ERROR
    return result


# ===== Constraint checks =====


def validate_dimensions(
    dimensions: Dimensions,
    min_width: Optional[int] = None,
    max_width: Optional[int] = None,
    min_height: Optional[int] = None,
    max_height: Optional[int] = None,
) -> list[str]:
    issues = []
    if min_width and dimensions.width < min_width:
        issues.append(f"Width {dimensions.width}px is below minimum {min_width}px")
    if max_width and dimensions.width > max_width:
        issues.append(f"Width {dimensions.width}px exceeds maximum {max_width}px")
    if min_height and dimensions.height < min_height:
        issues.append(f"Height {dimensions.height}px is below minimum {min_height}px")
    if max_height and dimensions.height > max_height:
        issues.append(f"Height {dimensions.height}px exceeds maximum {max_height}px")
    return issues


def validate_file_size(
    file_size: int,
    min_file_size: Optional[int] = None,
    max_file_size: Optional[int] = None,
) -> list[str]:
    """Check a byte count against KB bounds."""
    issues = []
    kb = to_kb(file_size)
    if min_file_size and kb < min_file_size:
        issues.append(f"File size {kb}KB is below minimum {min_file_size}KB")
    if max_file_size and kb > max_file_size:
        issues.append(f"File size {kb}KB exceeds maximum {max_file_size}KB")
    return issues


def validate_aspect_ratio(
    dimensions: Dimensions,
    required: Optional[str] = None,
    allowed: Optional[list[str]] = None,
) -> list[str]:
    issues = []
    actual = aspect_ratio(dimensions.width, dimensions.height)
    if required and actual != required:
        issues.append(f"Aspect ratio {actual} does not match required {required}")
    if allowed and actual not in allowed:
        issues.append(f"Aspect ratio {actual} is not in allowed list: {', '.join(allowed)}")
    return issues
