"""
Tests for YouTube URL validation and filename helpers.
"""

import pytest
from services.youtube_utils import format_duration, is_valid_youtube_url, sanitize_filename


class TestIsValidYoutubeUrl:
    """Test cases for is_valid_youtube_url()"""

    @pytest.mark.parametrize("url", [
        "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        "http://youtube.com/watch?v=dQw4w9WgXcQ",
        "youtube.com/watch?v=dQw4w9WgXcQ&t=42s",
        "https://www.youtube.com/embed/dQw4w9WgXcQ",
        "https://www.youtube.com/v/dQw4w9WgXcQ",
        "https://youtu.be/dQw4w9WgXcQ",
        "youtu.be/a-b_c",
    ])
    def test_accepts_known_shapes(self, url):
        assert is_valid_youtube_url(url) is True

    @pytest.mark.parametrize("url", [
        "",
        None,
        "not a url",
        "https://example.com/video",
        "https://www.youtube.com/watch?v=",
        "https://youtu.be/",
        "https://www.youtube.com/embed/",
        "https://vimeo.com/123456",
        "ftp://youtube.com/watch?v=dQw4w9WgXcQ",
    ])
    def test_rejects_everything_else(self, url):
        assert is_valid_youtube_url(url) is False


class TestSanitizeFilename:
    """Test cases for sanitize_filename()"""

    def test_keeps_word_characters_spaces_and_hyphens(self):
        assert sanitize_filename("Artist - Song_Title 2024") == "Artist - Song_Title 2024"

    def test_strips_punctuation(self):
        assert sanitize_filename('Song (Official Video) [HD] "Live"!') == "Song Official Video HD Live"

    def test_collapses_newlines(self):
        assert sanitize_filename("Line one\r\nLine two") == "Line one Line two"

    def test_strips_non_ascii(self):
        assert sanitize_filename("Café del Mar ♪") == "Caf del Mar"

    def test_empty_result_falls_back(self):
        assert sanitize_filename("♪♪♪") == "audio"
        assert sanitize_filename("") == "audio"


class TestFormatDuration:
    """Test cases for format_duration()"""

    def test_minutes_and_seconds(self):
        assert format_duration(212) == "3:32"

    def test_pads_seconds(self):
        assert format_duration(65) == "1:05"

    def test_zero(self):
        assert format_duration(0) == "0:00"

    def test_hours(self):
        assert format_duration(3725) == "1:02:05"
