"""
Source URL validation and metadata extraction.

Validates YouTube references, extracts their source identifier and turns
the yt-dlp format list into renditions.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import parse_qs, urlparse

import yt_dlp

from clips.service.config import get_ytdlp_options
from clips.service.constants import ITAG_QUALITY, QUALITY_BY_HEIGHT
from clips.service.exceptions import InvalidSourceURLError, UpstreamFetchError
from clips.service.formats import Rendition

VIDEO_ID_PATTERN = re.compile(r'^[A-Za-z0-9_-]{11}$')

FORMAT_NOTE_PATTERN = re.compile(r'^(\d+)p')

YOUTUBE_HOSTS = (
    'youtube.com',
    'www.youtube.com',
    'm.youtube.com',
    'music.youtube.com',
    'gaming.youtube.com',
    'youtube-nocookie.com',
    'www.youtube-nocookie.com',
)

SHORT_HOSTS = ('youtu.be', 'www.youtu.be')

# Path prefixes carrying the video id as the next segment
ID_PATH_PREFIXES = ('embed', 'v', 'shorts', 'live', 'e')


@dataclass
class SourceInfo:
    """Metadata for one source video"""

    source_id: str
    title: Optional[str] = None
    webpage_url: Optional[str] = None
    duration_seconds: Optional[float] = None
    is_live: bool = False
    renditions: List[Rendition] = field(default_factory=list)


def extract_source_id(url):
    """
    Extract the video id from a YouTube URL.

    Args:
        url: Watch, short, embed, shorts or live URL

    Returns:
        str: 11-character video id

    Raises:
        InvalidSourceURLError: If the URL is not a YouTube video URL
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidSourceURLError('invalid youtube url.')

    parsed = urlparse(url.strip())
    if parsed.scheme not in ('http', 'https'):
        raise InvalidSourceURLError('invalid youtube url.')

    host = (parsed.hostname or '').lower()
    video_id = None

    if host in SHORT_HOSTS:
        video_id = parsed.path.lstrip('/').split('/')[0]
    elif host in YOUTUBE_HOSTS:
        segments = [s for s in parsed.path.split('/') if s]
        if segments and segments[0] == 'watch':
            video_id = parse_qs(parsed.query).get('v', [None])[0]
        elif len(segments) >= 2 and segments[0] in ID_PATH_PREFIXES:
            video_id = segments[1]

    if not video_id or not VIDEO_ID_PATTERN.match(video_id):
        raise InvalidSourceURLError('invalid youtube url.')

    return video_id


def is_valid_source_url(url):
    """Check if a URL points at a single YouTube video."""
    try:
        extract_source_id(url)
    except InvalidSourceURLError:
        return False
    return True


def quality_label(height, width=None):
    """
    Map a frame size onto the YouTube quality ladder.

    The ladder is defined for 16:9 landscape frames, so vertical and
    letterboxed frames are measured by the height a 16:9 frame of the same
    size would have.
    """
    if not height:
        return None
    height = int(height)
    if width:
        short_side, long_side = sorted((height, int(width)))
        height = max(short_side, round(long_side * 9 / 16))
    return QUALITY_BY_HEIGHT.get(height)


def format_quality(fmt):
    """Quality label for a yt-dlp format dict, or None if it has none"""
    label = ITAG_QUALITY.get(str(fmt.get('format_id') or ''))
    if label:
        return label

    label = quality_label(fmt.get('height'), fmt.get('width'))
    if label:
        return label

    # format_note carries e.g. "360p" or "720p60"
    match = FORMAT_NOTE_PATTERN.match(fmt.get('format_note') or '')
    if match:
        return QUALITY_BY_HEIGHT.get(int(match.group(1)))
    return None


def rendition_from_format(fmt, info):
    """
    Build a Rendition from one yt-dlp format dict.

    Args:
        fmt: Entry of info['formats']
        info: The enclosing info dict (for duration and live status)

    Returns:
        Rendition
    """
    protocol = (fmt.get('protocol') or '').lower()
    duration = info.get('duration')

    return Rendition(
        url=fmt.get('url'),
        quality=format_quality(fmt),
        has_audio=fmt.get('acodec') not in (None, 'none'),
        has_video=fmt.get('vcodec') not in (None, 'none'),
        is_live=bool(info.get('is_live')),
        is_hls='m3u8' in protocol,
        is_segmented='dash' in protocol or bool(fmt.get('fragments')),
        approx_duration_ms=int(duration * 1000) if duration else None,
        ext=fmt.get('ext'),
        mime_type=f"video/{fmt['ext']}" if fmt.get('ext') else None,
        format_id=fmt.get('format_id'),
        http_headers=dict(fmt.get('http_headers') or {}),
    )


def fetch_source_info(url, logger=None):
    """
    Fetch metadata for a YouTube video without downloading it.

    Args:
        url: YouTube video URL
        logger: Optional callable(str) for logging

    Returns:
        SourceInfo

    Raises:
        InvalidSourceURLError: If the URL is not a YouTube video URL
        UpstreamFetchError: If yt-dlp cannot extract the metadata
    """

    def log(message):
        if logger:
            logger(message)

    source_id = extract_source_id(url)

    ydl_opts = get_ytdlp_options(
        {
            'quiet': True,
            'no_warnings': True,
            'noplaylist': True,
            'extract_flat': False,
        }
    )

    log(f'Fetching metadata with yt-dlp: {url}')

    try:
        with yt_dlp.YoutubeDL(ydl_opts) as ydl:
            info = ydl.extract_info(url, download=False)
    except yt_dlp.utils.YoutubeDLError as e:
        raise UpstreamFetchError(
            f'unable to fetch the data of the current youtube url: {e}'
        ) from e

    if not info:
        raise UpstreamFetchError('unable to fetch the data of the current youtube url.')

    renditions = [rendition_from_format(fmt, info) for fmt in info.get('formats') or []]
    log(f'Found {len(renditions)} renditions for {source_id}')

    return SourceInfo(
        source_id=source_id,
        title=info.get('title'),
        webpage_url=info.get('webpage_url') or url,
        duration_seconds=info.get('duration'),
        is_live=bool(info.get('is_live')),
        renditions=renditions,
    )
