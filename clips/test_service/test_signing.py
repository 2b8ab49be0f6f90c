"""
Tests for service/signing.py
"""

import base64
import hashlib
from datetime import timedelta
from urllib.parse import parse_qs, urlsplit

from django.test import SimpleTestCase

from clips.service.signing import compute_token, sign_url, verify_signed_url

URL = 'https://clips.b-cdn.net/abc123/1700000000000.mp4'
SECRET = 'pull-zone-secret'


class SignUrlTest(SimpleTestCase):
    """Tests for pull zone token signing"""

    def test_token_matches_reference_digest(self):
        """Test sha256(secret + path + expires), base64url without padding"""
        expires = 1700010800
        raw = hashlib.sha256(f'{SECRET}/abc123/1700000000000.mp4{expires}'.encode()).digest()
        expected = base64.b64encode(raw).decode().replace('+', '-').replace('/', '_').replace('=', '')

        self.assertEqual(compute_token(SECRET, '/abc123/1700000000000.mp4', expires), expected)

    def test_query_parameters_appended(self):
        signed = sign_url(URL, SECRET, expires=1700010800)
        parts = urlsplit(signed)
        query = parse_qs(parts.query)

        self.assertEqual(parts.path, '/abc123/1700000000000.mp4')
        self.assertEqual(query['expires'], ['1700010800'])
        self.assertEqual(query['token'], [compute_token(SECRET, parts.path, 1700010800)])

    def test_deterministic(self):
        """Test that fixed (url, secret, expires) always yields the same URL"""
        first = sign_url(URL, SECRET, expires=1700010800)
        second = sign_url(URL, SECRET, expires=1700010800)
        self.assertEqual(first, second)

    def test_token_changes_with_each_input(self):
        base = compute_token(SECRET, '/a/1.mp4', 100)
        self.assertNotEqual(base, compute_token(SECRET, '/b/1.mp4', 100))
        self.assertNotEqual(base, compute_token('other-secret', '/a/1.mp4', 100))
        self.assertNotEqual(base, compute_token(SECRET, '/a/1.mp4', 101))

    def test_token_is_url_safe(self):
        for expires in range(1000, 1050):
            token = compute_token(SECRET, '/a/1.mp4', expires)
            self.assertNotIn('+', token)
            self.assertNotIn('/', token)
            self.assertNotIn('=', token)

    def test_path_is_percent_decoded(self):
        self.assertEqual(
            compute_token(SECRET, '/my%20clip/1.mp4', 100),
            compute_token(SECRET, '/my clip/1.mp4', 100),
        )

    def test_expiry_from_window(self):
        """Test expires = floor(now + window) in epoch seconds"""
        signed = sign_url(URL, SECRET, window=timedelta(hours=3), now=1000.9)
        query = parse_qs(urlsplit(signed).query)
        self.assertEqual(query['expires'], [str(1000 + 3 * 60 * 60)])

    def test_existing_query_preserved(self):
        signed = sign_url(URL + '?download=1', SECRET, expires=100)
        query = parse_qs(urlsplit(signed).query)
        self.assertEqual(query['download'], ['1'])
        self.assertIn('token', query)

    def test_bare_host_signed_as_root_path(self):
        signed = sign_url('https://clips.b-cdn.net', SECRET, expires=100)
        parts = urlsplit(signed)

        self.assertEqual(parts.path, '/')
        self.assertEqual(parse_qs(parts.query)['token'], [compute_token(SECRET, '/', 100)])
        self.assertTrue(verify_signed_url(signed, SECRET, now=50))

    def test_no_secret_returns_none(self):
        """Test the failure sentinel instead of a half-signed URL"""
        self.assertIsNone(sign_url(URL, None))
        self.assertIsNone(sign_url(URL, ''))


class VerifySignedUrlTest(SimpleTestCase):
    def test_valid_url(self):
        signed = sign_url(URL, SECRET, expires=2000)
        self.assertTrue(verify_signed_url(signed, SECRET, now=1000))

    def test_expired_url(self):
        signed = sign_url(URL, SECRET, expires=2000)
        self.assertFalse(verify_signed_url(signed, SECRET, now=2001))

    def test_tampered_expiry(self):
        signed = sign_url(URL, SECRET, expires=2000)
        self.assertFalse(verify_signed_url(signed.replace('expires=2000', 'expires=9000'), SECRET, now=1000))

    def test_wrong_secret(self):
        signed = sign_url(URL, SECRET, expires=2000)
        self.assertFalse(verify_signed_url(signed, 'other', now=1000))

    def test_unsigned_url(self):
        self.assertFalse(verify_signed_url(URL, SECRET, now=1000))
