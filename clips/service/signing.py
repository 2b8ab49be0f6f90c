"""
Signed URLs for the CDN pull zone.

Implements BunnyCDN token authentication: a sha256 digest over
secret + path + expiry, base64url encoded, appended as `token` and
`expires` query parameters.
"""

import base64
import hashlib
import hmac
import math
import time
from datetime import timedelta
from urllib.parse import parse_qsl, unquote, urlencode, urlsplit, urlunsplit

DEFAULT_WINDOW = timedelta(hours=3)


def compute_token(secret, path, expires):
    """
    Compute the token for a URL path.

    Args:
        secret: Pull zone token authentication key
        path: URL path, percent-decoded before hashing
        expires: Expiry as epoch seconds

    Returns:
        str: base64url digest without padding
    """
    hashable = f'{secret}{unquote(path)}{expires}'
    digest = hashlib.sha256(hashable.encode('utf-8')).digest()
    return base64.urlsafe_b64encode(digest).decode('ascii').rstrip('=')


def sign_url(url, secret, expires=None, window=DEFAULT_WINDOW, now=None):
    """
    Sign a URL so it stops working after the expiry window.

    Args:
        url: Public URL to sign
        secret: Pull zone token secret; empty or None disables signing
        expires: Optional explicit expiry (epoch seconds)
        window: Time the URL stays valid when expires is not given
        now: Optional current time (epoch seconds), defaults to time.time()

    Returns:
        str: URL with token and expires appended, or None without a secret
    """
    if not secret:
        return None

    if expires is None:
        if now is None:
            now = time.time()
        expires = math.floor(now + window.total_seconds())

    parts = urlsplit(url)
    # Pull zones hash the bare host as '/'
    path = parts.path or '/'
    token = compute_token(secret, path, expires)

    query = parse_qsl(parts.query, keep_blank_values=True)
    query.extend([('token', token), ('expires', str(expires))])

    return urlunsplit((parts.scheme, parts.netloc, path, urlencode(query), parts.fragment))


def verify_signed_url(url, secret, now=None):
    """
    Check the token and expiry of a signed URL.

    Returns:
        bool: True if the token matches and the URL has not expired
    """
    if not secret:
        return False

    parts = urlsplit(url)
    # Pull zones hash the bare host as '/'
    path = parts.path or '/'
    query = dict(parse_qsl(parts.query, keep_blank_values=True))
    token = query.get('token')
    expires = query.get('expires')
    if not token or not expires or not expires.isdigit():
        return False

    if now is None:
        now = time.time()
    if int(expires) < now:
        return False

    expected = compute_token(secret, path, expires)
    return hmac.compare_digest(expected, token)
