"""
Tests for service/resolve.py
"""

from unittest.mock import MagicMock, patch

import yt_dlp
from django.test import SimpleTestCase, override_settings

from clips.service.exceptions import InvalidSourceURLError, NoSuitableFormatError, UpstreamFetchError
from clips.service.formats import select_rendition
from clips.service.resolve import (
    extract_source_id,
    fetch_source_info,
    format_quality,
    is_valid_source_url,
    quality_label,
    rendition_from_format,
)

VIDEO_URL = 'https://www.youtube.com/watch?v=dQw4w9WgXcQ'


def ytdlp_info(**overrides):
    info = {
        'id': 'dQw4w9WgXcQ',
        'title': 'Test Video',
        'webpage_url': VIDEO_URL,
        'duration': 90,
        'is_live': False,
        'formats': [
            {
                'format_id': '18',
                'url': 'https://rr1.googlevideo.com/videoplayback?itag=18',
                'ext': 'mp4',
                'height': 360,
                'acodec': 'mp4a.40.2',
                'vcodec': 'avc1.42001E',
                'protocol': 'https',
                'http_headers': {'User-Agent': 'Mozilla/5.0'},
            },
            {
                'format_id': '136',
                'url': 'https://rr1.googlevideo.com/videoplayback?itag=136',
                'ext': 'mp4',
                'height': 720,
                'acodec': 'none',
                'vcodec': 'avc1.4d401f',
                'protocol': 'https',
            },
            {
                'format_id': '95',
                'url': 'https://manifest.googlevideo.com/index.m3u8',
                'ext': 'mp4',
                'height': 720,
                'acodec': 'mp4a.40.2',
                'vcodec': 'avc1.4d401f',
                'protocol': 'm3u8_native',
            },
        ],
    }
    info.update(overrides)
    return info


class ExtractSourceIdTest(SimpleTestCase):
    """Tests for YouTube URL validation"""

    def test_watch_url(self):
        self.assertEqual(extract_source_id(VIDEO_URL), 'dQw4w9WgXcQ')

    def test_watch_url_with_extra_params(self):
        url = 'https://youtube.com/watch?feature=share&v=dQw4w9WgXcQ&t=42'
        self.assertEqual(extract_source_id(url), 'dQw4w9WgXcQ')

    def test_short_url(self):
        self.assertEqual(extract_source_id('https://youtu.be/dQw4w9WgXcQ?si=abc'), 'dQw4w9WgXcQ')

    def test_embed_and_shorts_urls(self):
        self.assertEqual(extract_source_id('https://www.youtube.com/embed/dQw4w9WgXcQ'), 'dQw4w9WgXcQ')
        self.assertEqual(extract_source_id('https://www.youtube.com/shorts/dQw4w9WgXcQ'), 'dQw4w9WgXcQ')
        self.assertEqual(extract_source_id('https://m.youtube.com/live/dQw4w9WgXcQ'), 'dQw4w9WgXcQ')

    def test_rejects_other_hosts(self):
        with self.assertRaises(InvalidSourceURLError):
            extract_source_id('https://vimeo.com/123456')

    def test_rejects_channel_urls(self):
        with self.assertRaises(InvalidSourceURLError):
            extract_source_id('https://www.youtube.com/@somechannel')

    def test_rejects_malformed_ids(self):
        with self.assertRaises(InvalidSourceURLError):
            extract_source_id('https://www.youtube.com/watch?v=short')
        with self.assertRaises(InvalidSourceURLError):
            extract_source_id('https://youtu.be/../../etc/pas')

    def test_rejects_non_http(self):
        with self.assertRaises(InvalidSourceURLError):
            extract_source_id('file:///etc/passwd')
        with self.assertRaises(InvalidSourceURLError):
            extract_source_id('')

    def test_is_valid_source_url(self):
        self.assertTrue(is_valid_source_url(VIDEO_URL))
        self.assertFalse(is_valid_source_url('not a url'))


class RenditionFromFormatTest(SimpleTestCase):
    """Tests for mapping yt-dlp formats onto renditions"""

    def test_muxed_progressive_format(self):
        info = ytdlp_info()
        rendition = rendition_from_format(info['formats'][0], info)

        self.assertEqual(rendition.quality, 'medium')
        self.assertTrue(rendition.has_audio)
        self.assertTrue(rendition.has_video)
        self.assertFalse(rendition.is_hls)
        self.assertFalse(rendition.is_segmented)
        self.assertEqual(rendition.approx_duration_ms, 90_000)
        self.assertEqual(rendition.ext, 'mp4')
        self.assertEqual(rendition.http_headers, {'User-Agent': 'Mozilla/5.0'})

    def test_video_only_format(self):
        info = ytdlp_info()
        rendition = rendition_from_format(info['formats'][1], info)
        self.assertEqual(rendition.quality, 'hd720')
        self.assertFalse(rendition.has_audio)

    def test_hls_format(self):
        info = ytdlp_info()
        rendition = rendition_from_format(info['formats'][2], info)
        self.assertTrue(rendition.is_hls)

    def test_dash_format_is_segmented(self):
        info = ytdlp_info()
        fmt = dict(info['formats'][0], protocol='http_dash_segments')
        self.assertTrue(rendition_from_format(fmt, info).is_segmented)

    def test_live_info(self):
        info = ytdlp_info(is_live=True, duration=None)
        rendition = rendition_from_format(info['formats'][0], info)
        self.assertTrue(rendition.is_live)
        self.assertIsNone(rendition.approx_duration_ms)

    def test_quality_label(self):
        self.assertEqual(quality_label(720), 'hd720')
        self.assertEqual(quality_label(360), 'medium')
        self.assertIsNone(quality_label(None))
        self.assertIsNone(quality_label(719))
        self.assertEqual(quality_label(268, width=640), 'medium')

    def test_vertical_short_is_medium(self):
        """Test that a 360x640 itag 18 stays selectable"""
        info = ytdlp_info(duration=30)
        fmt = dict(info['formats'][0], width=360, height=640)
        rendition = rendition_from_format(fmt, info)

        self.assertEqual(rendition.quality, 'medium')
        self.assertIs(select_rendition([rendition]), rendition)

    def test_widescreen_is_medium(self):
        """Test that a letterboxed 640x268 itag 18 stays selectable"""
        info = ytdlp_info()
        fmt = dict(info['formats'][0], width=640, height=268)
        rendition = rendition_from_format(fmt, info)

        self.assertEqual(rendition.quality, 'medium')
        self.assertIs(select_rendition([rendition]), rendition)

    def test_unknown_itag_uses_frame_shape(self):
        self.assertEqual(format_quality({'format_id': '999', 'width': 720, 'height': 1280}), 'hd720')
        self.assertEqual(format_quality({'format_id': '999', 'width': 1280, 'height': 536}), 'hd720')
        self.assertEqual(format_quality({'format_id': '999', 'width': 640, 'height': 480}), 'large')

    def test_format_note_fallback(self):
        self.assertEqual(format_quality({'format_id': '999', 'format_note': '720p60'}), 'hd720')
        self.assertIsNone(format_quality({'format_id': '999', 'format_note': 'DASH audio'}))

    def test_no_medium_or_hd720_still_rejected(self):
        info = ytdlp_info()
        fmt = dict(info['formats'][0], format_id='999', width=1920, height=1080)
        with self.assertRaises(NoSuitableFormatError):
            select_rendition([rendition_from_format(fmt, info)])


class FetchSourceInfoTest(SimpleTestCase):
    """Tests for metadata extraction"""

    @patch('clips.service.resolve.yt_dlp.YoutubeDL')
    def test_fetch_source_info(self, mock_ytdlp_class):
        mock_ydl = MagicMock()
        mock_ydl.extract_info.return_value = ytdlp_info()
        mock_ytdlp_class.return_value.__enter__.return_value = mock_ydl

        info = fetch_source_info(VIDEO_URL)

        mock_ydl.extract_info.assert_called_once_with(VIDEO_URL, download=False)
        self.assertEqual(info.source_id, 'dQw4w9WgXcQ')
        self.assertEqual(info.title, 'Test Video')
        self.assertEqual(info.duration_seconds, 90)
        self.assertEqual(len(info.renditions), 3)

    @patch('clips.service.resolve.yt_dlp.YoutubeDL')
    def test_invalid_url_skips_ytdlp(self, mock_ytdlp_class):
        with self.assertRaises(InvalidSourceURLError):
            fetch_source_info('https://example.com/video')
        mock_ytdlp_class.assert_not_called()

    @patch('clips.service.resolve.yt_dlp.YoutubeDL')
    def test_ytdlp_error_becomes_upstream_error(self, mock_ytdlp_class):
        mock_ydl = MagicMock()
        mock_ydl.extract_info.side_effect = yt_dlp.utils.DownloadError('Video unavailable')
        mock_ytdlp_class.return_value.__enter__.return_value = mock_ydl

        with self.assertRaises(UpstreamFetchError):
            fetch_source_info(VIDEO_URL)

    @patch('clips.service.resolve.yt_dlp.YoutubeDL')
    def test_empty_info_becomes_upstream_error(self, mock_ytdlp_class):
        mock_ydl = MagicMock()
        mock_ydl.extract_info.return_value = None
        mock_ytdlp_class.return_value.__enter__.return_value = mock_ydl

        with self.assertRaises(UpstreamFetchError):
            fetch_source_info(VIDEO_URL)

    @override_settings(TRIMCAST_YTDLP_PROXY='http://proxy:3128', TRIMCAST_YTDLP_COOKIE='CONSENT=YES+1')
    @patch('clips.service.resolve.yt_dlp.YoutubeDL')
    def test_proxy_and_cookie_applied(self, mock_ytdlp_class):
        mock_ydl = MagicMock()
        mock_ydl.extract_info.return_value = ytdlp_info()
        mock_ytdlp_class.return_value.__enter__.return_value = mock_ydl

        fetch_source_info(VIDEO_URL)

        opts = mock_ytdlp_class.call_args[0][0]
        self.assertEqual(opts['proxy'], 'http://proxy:3128')
        self.assertEqual(opts['http_headers']['Cookie'], 'CONSENT=YES+1')

    @patch('clips.service.resolve.yt_dlp.YoutubeDL')
    def test_logger_called(self, mock_ytdlp_class):
        mock_ydl = MagicMock()
        mock_ydl.extract_info.return_value = ytdlp_info()
        mock_ytdlp_class.return_value.__enter__.return_value = mock_ydl

        logs = []
        fetch_source_info(VIDEO_URL, logger=logs.append)
        self.assertTrue(any('yt-dlp' in log for log in logs))
