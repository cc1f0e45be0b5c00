"""
Tests for caption download and WebVTT cleaning.
"""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from core.captions import clean_vtt_text, fetch_caption_transcript, subtitle_file_path
from tests.conftest import SAMPLE_VTT, TEST_VIDEO_ID, TEST_VIDEO_URL, TIMING_ONLY_VTT


def completed(returncode=0, stderr=""):
    return MagicMock(returncode=returncode, stdout="", stderr=stderr)


def writes_subtitle(work_dir, content):
    """subprocess.run stand-in that leaves a subtitle file behind like yt-dlp does"""

    def run(cmd, **kwargs):
        (work_dir / f"{TEST_VIDEO_ID}.en.vtt").write_text(content, encoding="utf-8")
        return completed()

    return run


def test_clean_vtt_text_flattens_and_dedupes():
    assert clean_vtt_text(SAMPLE_VTT) == "Hello and welcome to the show & more"


def test_clean_vtt_text_drops_note_blocks():
    content = "WEBVTT\n\nNOTE generated by a tool\nsecond line\n\n00:00.000 --> 00:01.000\nkept\n"
    assert clean_vtt_text(content) == "kept"


def test_clean_vtt_text_keeps_keyword_lines_inside_cues():
    content = (
        "WEBVTT\n\n"
        "00:00.000 --> 00:01.000\nNOTE THE DATE\nIT IS TOMORROW\n\n"
        "00:01.000 --> 00:02.000\nSTYLE IS EVERYTHING\n\n"
        "00:02.000 --> 00:03.000\nREGION 7 WINS\n42\nLanguage: it matters\n"
    )
    assert clean_vtt_text(content) == (
        "NOTE THE DATE IT IS TOMORROW STYLE IS EVERYTHING REGION 7 WINS 42 Language: it matters"
    )


def test_clean_vtt_text_drops_style_and_region_blocks():
    content = (
        "WEBVTT\n\n"
        "STYLE\n::cue { color: yellow }\n\n"
        "REGION\nid:fred width:40%\n\n"
        "00:00.000 --> 00:01.000\nspoken words\n"
    )
    assert clean_vtt_text(content) == "spoken words"


def test_clean_vtt_text_keeps_first_seen_order():
    content = "WEBVTT\n\n00:00.000 --> 00:01.000\nb\n\n00:01.000 --> 00:02.000\na\n\n00:02.000 --> 00:03.000\nb\n"
    assert clean_vtt_text(content) == "b a"


def test_clean_vtt_text_timing_only_is_empty():
    assert clean_vtt_text(TIMING_ONLY_VTT) == ""


def test_subtitle_file_path(work_dir):
    assert subtitle_file_path(TEST_VIDEO_ID, str(work_dir)) == work_dir / f"{TEST_VIDEO_ID}.en.vtt"


def test_fetch_caption_transcript_success(work_dir):
    with patch("core.captions.subprocess.run", side_effect=writes_subtitle(work_dir, SAMPLE_VTT)) as mock_run:
        attempt = fetch_caption_transcript(TEST_VIDEO_URL, TEST_VIDEO_ID, str(work_dir))

    assert attempt.succeeded
    assert attempt.text == "Hello and welcome to the show & more"
    assert attempt.failure_reason is None

    cmd = mock_run.call_args.args[0]
    assert cmd[0] == "yt-dlp"
    assert "--skip-download" in cmd
    assert cmd[-1] == TEST_VIDEO_URL

    # Subtitle file is removed after reading
    assert list(work_dir.iterdir()) == []


def test_fetch_caption_transcript_empty_track(work_dir):
    with patch("core.captions.subprocess.run", side_effect=writes_subtitle(work_dir, TIMING_ONLY_VTT)):
        attempt = fetch_caption_transcript(TEST_VIDEO_URL, TEST_VIDEO_ID, str(work_dir))

    assert not attempt.succeeded
    assert attempt.failure_reason == "empty"
    assert list(work_dir.iterdir()) == []


def test_fetch_caption_transcript_no_subtitle_written(work_dir):
    with patch("core.captions.subprocess.run", return_value=completed()):
        attempt = fetch_caption_transcript(TEST_VIDEO_URL, TEST_VIDEO_ID, str(work_dir))

    assert attempt.text is None
    assert attempt.failure_reason == "subtitle_missing"


def test_fetch_caption_transcript_tool_missing(work_dir):
    with patch("core.captions.subprocess.run", side_effect=FileNotFoundError("yt-dlp")):
        attempt = fetch_caption_transcript(TEST_VIDEO_URL, TEST_VIDEO_ID, str(work_dir))

    assert attempt.failure_reason == "tool_unavailable"


@pytest.mark.parametrize("returncode,stderr", [
    (127, "sh: yt-dlp: command not found"),
    (1, "bash: yt-dlp: command not found"),
])
def test_fetch_caption_transcript_tool_missing_from_shell(work_dir, returncode, stderr):
    with patch("core.captions.subprocess.run", return_value=completed(returncode, stderr)):
        attempt = fetch_caption_transcript(TEST_VIDEO_URL, TEST_VIDEO_ID, str(work_dir))

    assert attempt.failure_reason == "tool_unavailable"


def test_fetch_caption_transcript_download_failure(work_dir):
    with patch("core.captions.subprocess.run", return_value=completed(1, "ERROR: Video unavailable")):
        attempt = fetch_caption_transcript(TEST_VIDEO_URL, TEST_VIDEO_ID, str(work_dir))

    assert attempt.failure_reason == "download_failed"


def test_fetch_caption_transcript_timeout(work_dir):
    with patch("core.captions.subprocess.run", side_effect=subprocess.TimeoutExpired("yt-dlp", 120)):
        attempt = fetch_caption_transcript(TEST_VIDEO_URL, TEST_VIDEO_ID, str(work_dir))

    assert attempt.failure_reason == "download_failed"
