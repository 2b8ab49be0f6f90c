import hmac
import json
import logging
import math

from django.core.exceptions import RequestDataTooBig
from django.http import HttpResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from clips.service.config import get_api_key, validate_config
from clips.service.exceptions import (
    DurationLimitExceeded,
    InvalidSourceURLError,
    TrimcastError,
    UnauthorizedError,
    UnexpectedError,
    ValidationError,
)
from clips.service.pipeline import trim_and_publish

logger = logging.getLogger(__name__)

# Anything not listed here is a server-side failure
ERROR_STATUS = {
    ValidationError: 400,
    InvalidSourceURLError: 400,
    UnauthorizedError: 403,
    DurationLimitExceeded: 413,
}


def _text(body, status=200):
    return HttpResponse(body, status=status, content_type='text/plain; charset=utf-8')


def status_for(error):
    """HTTP status for a pipeline error"""
    for error_class, status in ERROR_STATUS.items():
        if isinstance(error, error_class):
            return status
    return 500


def check_authorization(header_value):
    """
    Compare the Authorization header with the shared secret.

    Raises:
        UnauthorizedError: If the header is missing or does not match
    """
    expected = get_api_key()
    if not header_value or not expected:
        raise UnauthorizedError('Forbidden')
    if not hmac.compare_digest(header_value.encode('utf-8'), expected.encode('utf-8')):
        raise UnauthorizedError('Forbidden')


def _parse_second(value):
    if isinstance(value, bool) or value is None:
        raise ValidationError('invalid duration.')
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError('invalid duration.') from None
    if not math.isfinite(number):
        raise ValidationError('invalid duration.')
    return number


def parse_trim_body(body):
    """
    Validate a /trim request body.

    Args:
        body: Raw request body bytes

    Returns:
        tuple: (url, (min_second, max_second))

    Raises:
        ValidationError: If url or duration is missing or malformed
    """
    try:
        payload = json.loads(body or b'{}')
    except (ValueError, UnicodeDecodeError):
        raise ValidationError('request body must be JSON.') from None

    if not isinstance(payload, dict):
        raise ValidationError('request body must be a JSON object.')

    url = payload.get('url')
    if not url or not isinstance(url, str):
        raise ValidationError('youtube url is required.')

    # { ..., "duration": [0, 60] }
    duration = payload.get('duration')
    if not isinstance(duration, list) or len(duration) != 2:
        raise ValidationError('duration is required.')

    return url, (_parse_second(duration[0]), _parse_second(duration[1]))


@require_http_methods(['GET', 'HEAD'])
def health_view(request):
    """Health check, answers with an empty 200"""
    return HttpResponse(status=200)


@csrf_exempt
@require_http_methods(['POST'])
def trim_view(request):
    """
    Trim a range out of a YouTube video and publish it.

    Headers:
        Authorization (required): Shared secret

    Body (JSON):
        url (required): YouTube video URL
        duration (required): [min_second, max_second]

    Returns:
        Plain-text clip URL (signed when token authentication is configured),
        or a plain-text error with status 400, 403, 413 or 500
    """
    try:
        check_authorization(request.headers.get('Authorization'))
        url, duration = parse_trim_body(request.body)
    except RequestDataTooBig:
        return _text('request body is too large.', status=413)
    except TrimcastError as e:
        logger.warning('Rejected trim request: %s', e)
        return _text(str(e), status=status_for(e))

    validation = validate_config()
    if not validation.is_valid:
        logger.error('Trim refused, configuration invalid: %s', '; '.join(validation.errors))
        return _text('storage is not configured on the backend server.', status=500)

    try:
        result = trim_and_publish(url, duration, logger=logger.info)
    except TrimcastError as e:
        logger.error('Trim failed for %s: %s', url, e, exc_info=True)
        stderr = getattr(e, 'stderr', '')
        if stderr:
            logger.error('ffmpeg stderr: %s', stderr)
        return _text(str(e), status=status_for(e))
    except Exception:
        logger.exception('Unexpected error while trimming %s', url)
        error = UnexpectedError('an unexpected error occurred from the backend server.')
        return _text(str(error), status=status_for(error))

    logger.info(
        'Published %s (%s-%ss of %s, cache %s)',
        result.key,
        result.time_range.start,
        result.time_range.end,
        result.source_id,
        'hit' if result.cache_hit else 'miss',
    )
    return _text(result.url)
