"""
Rendition selection and time range clamping.

Picks the source rendition to trim from and keeps the requested range
inside [0, duration] with start < end at every step.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from clips.service.constants import PREFERRED_QUALITIES
from clips.service.exceptions import DurationLimitExceeded, NoSuitableFormatError


@dataclass
class Rendition:
    """One encoded variant of a source video"""

    url: Optional[str]
    quality: Optional[str]
    has_audio: bool
    has_video: bool
    is_live: bool = False
    is_hls: bool = False
    is_segmented: bool = False
    approx_duration_ms: Optional[int] = None
    ext: Optional[str] = None
    mime_type: Optional[str] = None
    format_id: Optional[str] = None
    http_headers: Dict[str, str] = field(default_factory=dict)

    @property
    def duration_seconds(self):
        """Rounded duration in seconds, or None if unknown"""
        if self.approx_duration_ms is None:
            return None
        return round(self.approx_duration_ms / 1000)


@dataclass(frozen=True)
class TimeRange:
    """Whole-second [start, end) range with 0 <= start < end"""

    start: int
    end: int

    def __post_init__(self):
        if self.start < 0:
            raise ValueError(f'Start time cannot be negative: {self.start}')
        if self.end <= self.start:
            raise ValueError(f'End time ({self.end}) must be greater than start time ({self.start})')

    @property
    def duration(self):
        return self.end - self.start


def filter_playable(renditions: List[Rendition]) -> List[Rendition]:
    """Keep progressive renditions carrying both audio and video"""
    return [
        r
        for r in renditions
        if r.has_audio and r.has_video and not r.is_live and not r.is_hls and not r.is_segmented
    ]


def select_rendition(renditions: List[Rendition]) -> Rendition:
    """
    Choose the rendition to trim from.

    hd720 is the highest quality YouTube still serves with audio and video
    muxed together, so it is preferred over medium.

    Raises:
        NoSuitableFormatError: If no accepted rendition exists
    """
    playable = [r for r in filter_playable(renditions) if r.quality in PREFERRED_QUALITIES]

    for quality in PREFERRED_QUALITIES:
        chosen = next((r for r in playable if r.quality == quality), None)
        if chosen is not None:
            break
    else:
        raise NoSuitableFormatError('no video available after search.')

    if not chosen.url:
        raise NoSuitableFormatError('unable to fetch video after filter.')

    return chosen


def normalize_range(min_second, max_second) -> TimeRange:
    """
    Turn a requested [min, max) pair into a valid range before the duration is known.

    Reversed or degenerate input is corrected instead of rejected:
    [50, 10] becomes [9, 10) and [0, 0] becomes [0, 1).
    """
    start = max(0, math.floor(min_second))
    end = max(0, math.ceil(max_second))

    if start >= end:
        start = max(0, end - 1)
    if end <= start:
        end = start + 1

    return TimeRange(start, end)


def clamp_range(time_range: TimeRange, duration_seconds) -> TimeRange:
    """
    Clamp a range to the source duration.

    An unknown or sub-second duration leaves the range untouched.
    """
    if not duration_seconds or duration_seconds < 1:
        return time_range

    start, end = time_range.start, time_range.end
    if end > duration_seconds:
        end = int(duration_seconds)
    if start >= end:
        start = max(0, end - 1)

    return TimeRange(start, end)


def enforce_duration_limit(time_range: TimeRange, limit):
    """
    Reject ranges longer than the configured cap.

    Raises:
        DurationLimitExceeded: If limit is set and the range is longer
    """
    if limit and time_range.duration > limit:
        raise DurationLimitExceeded(
            f'requested clip is {time_range.duration}s long, the limit is {limit}s.',
            duration=time_range.duration,
            limit=limit,
        )
    return time_range
