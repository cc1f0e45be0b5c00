"""
Tests for the YouTube download module.
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from core.download import (
    DownloadError,
    DownloadTimeoutError,
    InvalidVideoReferenceError,
    MissingInputError,
    NetworkError,
    YouTubeError,
    audio_file_path,
    choose_audio_format,
    download_audio,
    extract_video_id,
    fetch_video_info,
    remove_partial_downloads,
    require_video_reference,
    safe_delete_file,
)
from core.transcribe import troubleshooting_hints
from tests.conftest import TEST_VIDEO_ID, TEST_VIDEO_URL, make_fake_ydl


@pytest.mark.parametrize("url", [
    f"https://www.youtube.com/watch?v={TEST_VIDEO_ID}",
    f"https://youtube.com/watch?v={TEST_VIDEO_ID}&t=42s",
    f"https://m.youtube.com/watch?v={TEST_VIDEO_ID}",
    f"https://youtu.be/{TEST_VIDEO_ID}",
    f"https://youtu.be/{TEST_VIDEO_ID}?si=abc",
    f"https://www.youtube.com/embed/{TEST_VIDEO_ID}",
    f"https://www.youtube.com/shorts/{TEST_VIDEO_ID}",
    f"  https://www.youtube.com/v/{TEST_VIDEO_ID}  ",
])
def test_extract_video_id_known_shapes(url):
    assert extract_video_id(url) == TEST_VIDEO_ID


@pytest.mark.parametrize("url", [
    "",
    None,
    "not a url",
    "https://example.com/watch?v=dQw4w9WgXcQ",
    "https://www.youtube.com/watch?v=short",
    "https://www.youtube.com/channel/UC123",
    "https://youtu.be/",
])
def test_extract_video_id_rejects_unknown_shapes(url):
    assert extract_video_id(url) is None


def test_require_video_reference_errors():
    with pytest.raises(MissingInputError):
        require_video_reference("")
    with pytest.raises(MissingInputError):
        require_video_reference("   ")
    with pytest.raises(InvalidVideoReferenceError):
        require_video_reference("https://vimeo.com/12345")


def test_require_video_reference_returns_id():
    assert require_video_reference(TEST_VIDEO_URL) == TEST_VIDEO_ID


def test_choose_audio_format_prefers_highest_bitrate(video_info, audio_format):
    assert choose_audio_format(video_info.formats) == audio_format


def test_choose_audio_format_without_audio_only_streams():
    formats = [
        {"format_id": "18", "vcodec": "avc1", "acodec": "mp4a.40.2"},
        {"format_id": "137", "vcodec": "avc1", "acodec": "none"},
    ]
    assert choose_audio_format(formats) is None
    assert choose_audio_format([]) is None


def test_fetch_video_info_maps_fields():
    info = {
        "title": "A Video",
        "uploader": None,
        "channel": "A Channel",
        "duration": 61.0,
        "formats": [{"format_id": "140", "vcodec": "none", "acodec": "mp4a"}],
    }
    with patch("core.download.yt_dlp.YoutubeDL", side_effect=make_fake_ydl(info=info)):
        video_info = fetch_video_info(TEST_VIDEO_URL)

    assert video_info.video_id == TEST_VIDEO_ID
    assert video_info.uploader == "A Channel"
    assert video_info.duration == 61
    assert video_info.to_metadata().author == "A Channel"


def test_fetch_video_info_bot_protection():
    error = Exception("ERROR: Sign in to confirm you're not a bot")
    with patch("core.download.yt_dlp.YoutubeDL", side_effect=make_fake_ydl(error=error)):
        with pytest.raises(YouTubeError):
            fetch_video_info(TEST_VIDEO_URL)


def test_fetch_video_info_network_failure():
    error = Exception("Unable to download webpage: timed out")
    with patch("core.download.yt_dlp.YoutubeDL", side_effect=make_fake_ydl(error=error)):
        with pytest.raises(NetworkError):
            fetch_video_info(TEST_VIDEO_URL)


def test_fetch_video_info_rejects_invalid_url_without_network():
    with patch("core.download.yt_dlp.YoutubeDL") as mock_ydl:
        with pytest.raises(InvalidVideoReferenceError):
            fetch_video_info("https://example.com/video")
    mock_ydl.assert_not_called()


def test_download_audio_success(video_info, audio_format, work_dir):
    def write_audio(opts, urls):
        Path(opts["outtmpl"]).write_bytes(b"\x00" * 2048)

    with patch("core.download.yt_dlp.YoutubeDL", side_effect=make_fake_ydl(on_download=write_audio)):
        audio_file = download_audio(video_info, audio_format, work_dir=str(work_dir), timeout=60)

    assert audio_file.filepath == str(work_dir / f"{TEST_VIDEO_ID}.m4a")
    assert audio_file.size_bytes == 2048
    assert audio_file.format_id == "140"


def test_download_audio_timeout_leaves_no_files(video_info, audio_format, work_dir):
    def stalled_download(opts, urls):
        Path(opts["outtmpl"] + ".part").write_bytes(b"partial")
        for hook in opts["progress_hooks"]:
            hook({"status": "downloading", "downloaded_bytes": 7})

    with patch("core.download.yt_dlp.YoutubeDL", side_effect=make_fake_ydl(on_download=stalled_download)):
        with pytest.raises(DownloadTimeoutError):
            download_audio(video_info, audio_format, work_dir=str(work_dir), timeout=0)

    assert list(work_dir.iterdir()) == []


def test_download_audio_empty_file(video_info, audio_format, work_dir):
    def write_empty(opts, urls):
        Path(opts["outtmpl"]).write_bytes(b"")

    with patch("core.download.yt_dlp.YoutubeDL", side_effect=make_fake_ydl(on_download=write_empty)):
        with pytest.raises(DownloadError):
            download_audio(video_info, audio_format, work_dir=str(work_dir), timeout=60)

    assert list(work_dir.iterdir()) == []


def test_download_audio_network_error(video_info, audio_format, work_dir):
    error = Exception("HTTP Error 403: Forbidden")
    with patch("core.download.yt_dlp.YoutubeDL", side_effect=make_fake_ydl(error=error)):
        with pytest.raises(NetworkError):
            download_audio(video_info, audio_format, work_dir=str(work_dir), timeout=60)


def test_download_audio_words_containing_bot_are_network_errors(video_info, audio_format, work_dir):
    error = Exception("HTTP Error 429: Too Many Requests (both retries hit a bottleneck)")
    with patch("core.download.yt_dlp.YoutubeDL", side_effect=make_fake_ydl(error=error)):
        with pytest.raises(NetworkError) as exc_info:
            download_audio(video_info, audio_format, work_dir=str(work_dir), timeout=60)

    assert "429" in str(exc_info.value)
    assert troubleshooting_hints(str(exc_info.value))


def test_download_audio_bot_protection_keeps_message(video_info, audio_format, work_dir):
    error = Exception("ERROR: [youtube] dQw4w9WgXcQ: Sign in to confirm you're not a bot")
    with patch("core.download.yt_dlp.YoutubeDL", side_effect=make_fake_ydl(error=error)):
        with pytest.raises(YouTubeError) as exc_info:
            download_audio(video_info, audio_format, work_dir=str(work_dir), timeout=60)

    assert "Sign in to confirm" in str(exc_info.value)
    assert "YTS_DOWNLOAD_COOKIES_FILE" in str(exc_info.value)


def test_safe_delete_file(tmp_path):
    target = tmp_path / "leftover.m4a"
    target.write_bytes(b"x")

    assert safe_delete_file(target) is True
    assert not target.exists()
    assert safe_delete_file(target) is False


def test_safe_delete_file_logs_instead_of_raising(tmp_path):
    target = tmp_path / "locked.m4a"
    target.write_bytes(b"x")

    with patch("core.download.os.remove", side_effect=PermissionError("locked")):
        assert safe_delete_file(target) is False


def test_remove_partial_downloads(audio_format, work_dir):
    output_path = audio_file_path(TEST_VIDEO_ID, audio_format, str(work_dir))
    for suffix in ("", ".part", ".ytdl"):
        Path(f"{output_path}{suffix}").write_bytes(b"x")

    remove_partial_downloads(output_path)

    assert list(work_dir.iterdir()) == []
