"""
Trim service using ffmpeg.

Cuts a time range out of a cached source and returns the clip as bytes.
The video stream is copied, audio is re-encoded to AAC, and the output is a
fragmented MP4 written to stdout so it never touches the disk.
"""

import subprocess
from pathlib import Path

from clips.service.config import get_ffmpeg_binary
from clips.service.exceptions import TranscodeError

# moov box first, fragment per keyframe; faststart needs a seekable output
MOVFLAGS = 'frag_keyframe+empty_moov+default_base_moof'


def build_trim_command(input_path, time_range, ffmpeg_binary=None):
    """
    Build the ffmpeg command for a trim.

    Args:
        input_path: Path to the cached source
        time_range: TimeRange in whole seconds
        ffmpeg_binary: Optional ffmpeg executable (defaults to settings)

    Returns:
        list: ffmpeg argv
    """
    return [
        ffmpeg_binary or get_ffmpeg_binary(),
        '-hide_banner',
        '-loglevel', 'error',
        '-ss', str(time_range.start),
        '-i', str(input_path),
        '-t', str(time_range.duration),
        '-map', '0:v:0?',
        '-map', '0:a:0?',
        '-c:v', 'copy',
        '-c:a', 'aac',
        '-f', 'mp4',
        '-movflags', MOVFLAGS,
        'pipe:1',
    ]


def trim_to_buffer(input_path, time_range, ffmpeg_binary=None, timeout=None, logger=None):
    """
    Trim a local file into an in-memory MP4.

    Args:
        input_path: Path to the cached source
        time_range: TimeRange in whole seconds
        ffmpeg_binary: Optional ffmpeg executable (defaults to settings)
        timeout: Optional wall-clock limit in seconds
        logger: Optional callable(str) for logging

    Returns:
        bytes: The trimmed clip

    Raises:
        TranscodeError: If ffmpeg fails, times out or writes nothing
    """

    def log(message):
        if logger:
            logger(message)

    input_path = Path(input_path)
    if not input_path.is_file():
        raise TranscodeError(f'source file not found: {input_path}')

    cmd = build_trim_command(input_path, time_range, ffmpeg_binary)
    log(f"Running: {' '.join(cmd)}")

    try:
        result = subprocess.run(cmd, capture_output=True, timeout=timeout)
    except FileNotFoundError as e:
        raise TranscodeError(f'ffmpeg executable not found: {cmd[0]}') from e
    except subprocess.TimeoutExpired as e:
        stderr = (e.stderr or b'').decode('utf-8', errors='replace')
        raise TranscodeError(f'ffmpeg timed out after {timeout}s', stderr=stderr) from e

    stderr = (result.stderr or b'').decode('utf-8', errors='replace')

    if result.returncode != 0:
        log(f'ffmpeg stderr: {stderr}')
        raise TranscodeError(f'ffmpeg failed with code {result.returncode}', stderr=stderr)

    if not result.stdout:
        raise TranscodeError('no content presented after trim (empty output).', stderr=stderr)

    log(f'Trim complete: {len(result.stdout)} bytes')
    return result.stdout
