"""
Configuration for pytest tests.
"""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from config import config
from core.download import VideoInfo

TEST_VIDEO_ID = "dQw4w9WgXcQ"
TEST_VIDEO_URL = f"https://www.youtube.com/watch?v={TEST_VIDEO_ID}"

SAMPLE_VTT = """WEBVTT
Kind: captions
Language: en

NOTE
This block is a comment and should not appear.

1
00:00:00.000 --> 00:00:02.500 align:start position:0%
Hello <c>and</c> welcome

2
00:00:02.500 --> 00:00:05.000
Hello and welcome

3
00:00:05.000 --> 00:00:08.000
[Music] to the show &amp; more
"""

TIMING_ONLY_VTT = """WEBVTT

00:00:00.000 --> 00:00:02.000

00:00:02.000 --> 00:00:04.000
<c> </c>
"""


@pytest.fixture(autouse=True)
def isolated_workspace(tmp_path, monkeypatch):
    """Point every directory at tmp_path and give each service a fake key"""
    monkeypatch.setattr(config, "work_dir", str(tmp_path / "transcripts"))
    monkeypatch.setattr(config, "output_dir", str(tmp_path / "outputs"))
    monkeypatch.setattr(config, "debug", False)
    monkeypatch.setattr(config.download, "cookies_file", None)
    monkeypatch.setattr(config.transcription, "deepgram_api_key", "test-deepgram-key")
    monkeypatch.setattr(config.summary, "provider", "gemini")
    monkeypatch.setattr(config.summary, "gemini_api_key", "test-gemini-key")
    monkeypatch.setattr(config.summary, "openai_api_key", "test-openai-key")
    return tmp_path


@pytest.fixture
def work_dir(tmp_path) -> Path:
    directory = tmp_path / "transcripts"
    directory.mkdir(parents=True, exist_ok=True)
    return directory


@pytest.fixture
def video_url():
    return TEST_VIDEO_URL


@pytest.fixture
def video_id():
    return TEST_VIDEO_ID


@pytest.fixture
def audio_format():
    return {"format_id": "140", "ext": "m4a", "vcodec": "none", "acodec": "mp4a.40.2", "abr": 129.5}


@pytest.fixture
def video_info(audio_format):
    return VideoInfo(
        video_id=TEST_VIDEO_ID,
        title="Test Video",
        uploader="Test Channel",
        url=TEST_VIDEO_URL,
        duration=212,
        formats=[
            {"format_id": "18", "ext": "mp4", "vcodec": "avc1", "acodec": "mp4a.40.2", "tbr": 500},
            {"format_id": "139", "ext": "m4a", "vcodec": "none", "acodec": "mp4a.40.5", "abr": 48.8},
            audio_format,
        ]
    )


@pytest.fixture
def deepgram_payload():
    return {
        "results": {
            "channels": [
                {"alternatives": [{"transcript": "Hello from the audio track.", "confidence": 0.93}]}
            ],
            "utterances": [
                {"speaker": 0, "transcript": "Hello"},
                {"speaker": 1, "transcript": "from the"},
                {"speaker": 0, "transcript": "audio track."},
            ]
        }
    }


def make_fake_ydl(on_download=None, info=None, error=None):
    """Factory for a yt_dlp.YoutubeDL stand-in that sees the options it was built with"""

    def factory(opts):
        ydl = MagicMock()
        ydl.__enter__.return_value = ydl
        ydl.__exit__.return_value = False

        if error is not None:
            ydl.extract_info.side_effect = error
            ydl.download.side_effect = error
        else:
            ydl.extract_info.return_value = info

        if on_download is not None:
            ydl.download.side_effect = lambda urls: on_download(opts, urls)

        return ydl

    return factory
