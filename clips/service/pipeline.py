"""
Main trim service entrypoint.

Provides a single function to trim a video range and publish the clip,
used by both the CLI and the web app.
"""

from dataclasses import dataclass
from typing import Optional

from clips.service.cache import get_cache
from clips.service.config import (
    get_max_duration,
    get_signing_secret,
    get_signing_window,
    get_trim_timeout,
)
from clips.service.constants import DEFAULT_SOURCE_EXTENSION
from clips.service.exceptions import SigningError
from clips.service.formats import (
    Rendition,
    TimeRange,
    clamp_range,
    enforce_duration_limit,
    normalize_range,
    select_rendition,
)
from clips.service.publish import upload_buffer
from clips.service.resolve import extract_source_id, fetch_source_info
from clips.service.signing import sign_url
from clips.service.trim import trim_to_buffer


@dataclass
class TrimRequest:
    """One trim request as it moves through the pipeline"""

    url: str
    requested_start: float
    requested_end: float
    source_id: Optional[str] = None
    rendition: Optional[Rendition] = None
    time_range: Optional[TimeRange] = None


@dataclass
class TrimResult:
    """Result from a trim operation"""

    url: str
    signed: bool
    key: str
    source_id: str
    time_range: TimeRange
    file_size: int
    cache_hit: bool


def trim_and_publish(url, duration, cache=None, logger=None):
    """
    Trim a range out of a YouTube video and publish the clip.

    This is the main entrypoint for the trim service. It handles:
    - Source URL validation and metadata fetch
    - Rendition selection and range clamping
    - Source caching
    - Trimming
    - Upload and optional URL signing

    Args:
        url: YouTube video URL
        duration: (min_second, max_second) pair
        cache: Optional ContentCache (defaults to the process-wide cache)
        logger: Optional callable(str) for logging

    Returns:
        TrimResult with the final URL

    Raises:
        TrimcastError subclasses for each failing stage. A cached source is
        kept even when a later stage fails.
    """

    def log(message):
        if logger:
            logger(message)

    cache = cache or get_cache()
    request = TrimRequest(url=url, requested_start=duration[0], requested_end=duration[1])

    # Step 1: Validate the reference and correct the range before any I/O
    request.source_id = extract_source_id(url)
    requested = normalize_range(request.requested_start, request.requested_end)
    log(f'Processing {request.source_id}, requested range {requested.start}-{requested.end}s')

    # Step 2: Fetch metadata and choose the rendition
    info = fetch_source_info(url, logger=log)
    request.rendition = select_rendition(info.renditions)
    log(f'Selected rendition: {request.rendition.quality} ({request.rendition.format_id})')

    # Step 3: Clamp the range to the source duration
    source_duration = request.rendition.duration_seconds
    if source_duration is None and info.duration_seconds:
        source_duration = round(info.duration_seconds)
    request.time_range = clamp_range(requested, source_duration)
    enforce_duration_limit(request.time_range, get_max_duration())
    log(f'Clamped range: {request.time_range.start}-{request.time_range.end}s')

    # Step 4: Make sure the source is on disk
    entry = cache.ensure_local(
        request.source_id,
        request.rendition.url,
        ext=request.rendition.ext or DEFAULT_SOURCE_EXTENSION,
        headers=request.rendition.http_headers,
        log=log,
    )

    # Step 5: Trim into memory
    clip = trim_to_buffer(entry.file_path, request.time_range, timeout=get_trim_timeout(), logger=log)

    # Step 6: Upload
    upload = upload_buffer(clip, logger=log)

    # Step 7: Sign when a pull zone token secret is configured
    final_url = upload.url
    secret = get_signing_secret()
    if secret:
        final_url = sign_url(upload.url, secret, window=get_signing_window())
        if not isinstance(final_url, str):
            raise SigningError('unable to sign trimmed file URL from the backend.')

    return TrimResult(
        url=final_url,
        signed=bool(secret),
        key=upload.key,
        source_id=request.source_id,
        time_range=request.time_range,
        file_size=upload.file_size,
        cache_hit=entry.cache_hit,
    )
