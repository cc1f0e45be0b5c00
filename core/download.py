"""
YouTube Download Module

Single responsibility: YouTube URL → video metadata and a local audio file
Uses yt-dlp for metadata and audio, pydantic for validation.
"""

import os
import re
import time
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse, parse_qs
from pathlib import Path

import yt_dlp
from yt_dlp.utils import DownloadCancelled
import structlog
from pydantic import BaseModel, Field, field_validator

from config import config

# Configure structured logger
logger = structlog.get_logger(__name__)

VIDEO_ID_PATTERN = re.compile(r'^[A-Za-z0-9_-]{11}$')

YOUTUBE_HOSTS = ['www.youtube.com', 'youtube.com', 'm.youtube.com', 'music.youtube.com']
SHORT_HOSTS = ['youtu.be', 'www.youtu.be']


class VideoMetadata(BaseModel):
    """Title, author and duration reported alongside a transcript"""

    title: Optional[str] = None
    author: Optional[str] = None
    duration: Optional[int] = Field(None, description="Duration in seconds", ge=0)


class VideoInfo(BaseModel):
    """Validated video information model"""

    video_id: str = Field(description="YouTube video ID")
    title: str = Field(description="Video title")
    uploader: str = Field(description="Channel/uploader name")
    url: str = Field(description="Original YouTube URL")
    duration: Optional[int] = Field(None, description="Duration in seconds")
    formats: List[Dict[str, Any]] = Field(default_factory=list, description="Formats reported by yt-dlp")

    @field_validator('video_id')
    @classmethod
    def validate_video_id(cls, v):
        if not v or not VIDEO_ID_PATTERN.match(v):
            raise ValueError("Invalid YouTube video ID")
        return v

    def to_metadata(self) -> VideoMetadata:
        return VideoMetadata(title=self.title, author=self.uploader, duration=self.duration)


class AudioFile(BaseModel):
    """Validated audio file model"""

    filepath: str = Field(description="Path to audio file")
    size_bytes: int = Field(description="File size in bytes", ge=1)
    format_id: Optional[str] = Field(None, description="yt-dlp format the file was downloaded from")

    @field_validator('filepath')
    @classmethod
    def validate_filepath(cls, v):
        if not os.path.exists(v):
            raise ValueError(f"Audio file does not exist: {v}")
        return v


class MissingInputError(ValueError):
    """A required video URL or video ID was not supplied"""
    pass


class InvalidVideoReferenceError(ValueError):
    """The URL does not match any known YouTube URL shape"""
    pass


class DownloadError(Exception):
    """Custom exception for download failures"""
    pass


class NetworkError(DownloadError):
    """Network-related download errors"""
    pass


class YouTubeError(DownloadError):
    """YouTube-specific errors (bot protection, etc.)"""
    pass


class NoAudioFormatError(DownloadError):
    """The video exposes no audio-only stream"""
    pass


class DownloadTimeoutError(DownloadError):
    """The audio download did not finish before its deadline"""
    pass


def extract_video_id(url: str) -> Optional[str]:
    """Extract YouTube video ID from various URL formats"""
    if not url:
        return None

    try:
        parsed_url = urlparse(url.strip())
    except ValueError:
        return None

    video_id = None
    if parsed_url.hostname in YOUTUBE_HOSTS:
        if parsed_url.path == '/watch':
            video_id = parse_qs(parsed_url.query).get('v', [None])[0]
        elif parsed_url.path.startswith(('/embed/', '/v/', '/shorts/')):
            parts = parsed_url.path.split('/')
            video_id = parts[2] if len(parts) > 2 else None
    elif parsed_url.hostname in SHORT_HOSTS:
        video_id = parsed_url.path[1:].split('/')[0]

    if video_id and VIDEO_ID_PATTERN.match(video_id):
        return video_id
    return None


def require_video_reference(url: Optional[str]) -> str:
    """Validate a user-supplied URL and return its video ID, before any network access"""
    if not url or not url.strip():
        raise MissingInputError("A YouTube video URL is required")

    video_id = extract_video_id(url)
    if not video_id:
        raise InvalidVideoReferenceError(f"Unrecognized YouTube URL: {url}")
    return video_id


def _base_ydl_opts() -> Dict[str, Any]:
    ydl_opts = {
        'quiet': True,
        'no_warnings': True,
        'socket_timeout': config.download.socket_timeout,
    }

    # Check for manual cookies
    cookies_file = config.download.cookies_file
    if cookies_file and os.path.exists(cookies_file):
        ydl_opts['cookiefile'] = cookies_file
        logger.debug("Using manual cookies", cookies_file=cookies_file)

    return ydl_opts


def fetch_video_info(url: str) -> VideoInfo:
    """Fetch title, uploader, duration and available formats using yt-dlp"""

    video_id = extract_video_id(url)
    if not video_id:
        raise InvalidVideoReferenceError(f"Unrecognized YouTube URL: {url}")

    logger.debug("Fetching video metadata with yt-dlp", video_id=video_id)

    try:
        with yt_dlp.YoutubeDL(_base_ydl_opts()) as ydl:
            info = ydl.extract_info(url, download=False)
    except Exception as e:
        error_msg = str(e)
        logger.error("Failed to fetch video metadata", video_id=video_id, error=error_msg)
        if "Sign in to confirm" in error_msg:
            raise YouTubeError(f"YouTube bot protection detected: {error_msg}") from e
        raise NetworkError(f"Could not fetch video metadata: {error_msg}") from e

    if not info:
        raise NetworkError("yt-dlp returned no video information")

    duration = info.get('duration')

    video_info = VideoInfo(
        video_id=video_id,
        title=info.get('title') or 'Unknown',
        uploader=info.get('uploader') or info.get('channel') or 'Unknown',
        url=url,
        duration=int(duration) if duration else None,
        formats=info.get('formats') or []
    )

    logger.info("Successfully fetched video metadata",
               video_id=video_id,
               title=video_info.title[:50],
               format_count=len(video_info.formats))

    return video_info


def choose_audio_format(formats: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Pick the highest bitrate audio-only format, or None if the video has none"""

    audio_formats = [
        f for f in formats
        if f.get('vcodec') == 'none' and f.get('acodec') not in (None, 'none')
    ]

    if not audio_formats:
        return None

    return max(audio_formats, key=lambda f: (f.get('abr') or f.get('tbr') or 0))


def audio_file_path(video_id: str, audio_format: Dict[str, Any], work_dir: Optional[str] = None) -> Path:
    """Local path the audio for a video is staged at"""
    ext = audio_format.get('ext') or 'm4a'
    return Path(work_dir or config.work_dir) / f"{video_id}.{ext}"


def download_audio(
    video_info: VideoInfo,
    audio_format: Dict[str, Any],
    work_dir: Optional[str] = None,
    timeout: Optional[int] = None
) -> AudioFile:
    """Download the chosen audio format, cancelling the transfer once the deadline passes"""

    timeout = config.download.timeout if timeout is None else timeout
    output_path = audio_file_path(video_info.video_id, audio_format, work_dir)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    logger.info("Starting audio download",
                video_id=video_info.video_id,
                format_id=audio_format.get('format_id'),
                timeout_seconds=timeout)

    deadline = time.monotonic() + timeout
    timed_out = False

    def deadline_hook(d):
        nonlocal timed_out
        if d.get('status') == 'downloading' and time.monotonic() >= deadline:
            timed_out = True
            raise DownloadCancelled(f"Download timeout after {timeout} seconds")

    ydl_opts = _base_ydl_opts()
    ydl_opts.update({
        'format': audio_format.get('format_id') or 'bestaudio',
        'outtmpl': str(output_path),
        'progress_hooks': [deadline_hook],
        'noprogress': True,
    })

    try:
        with yt_dlp.YoutubeDL(ydl_opts) as ydl:
            ydl.download([video_info.url])
    except Exception as e:
        remove_partial_downloads(output_path)
        if timed_out:
            logger.error("Audio download timed out",
                        video_id=video_info.video_id, timeout_seconds=timeout)
            raise DownloadTimeoutError(f"Download timeout after {timeout} seconds") from e

        error_msg = str(e)
        if "Sign in to confirm" in error_msg or "not a bot" in error_msg.lower():
            logger.error("YouTube bot protection detected", video_id=video_info.video_id)
            raise YouTubeError(
                f"YouTube bot protection detected: {error_msg}. "
                "Export cookies from your browser and set YTS_DOWNLOAD_COOKIES_FILE"
            ) from e
        logger.error("Download failed", video_id=video_info.video_id, error=error_msg)
        raise NetworkError(f"Download failed: {error_msg}") from e

    if not output_path.exists() or output_path.stat().st_size == 0:
        remove_partial_downloads(output_path)
        raise DownloadError("Downloaded audio file not found or is empty")

    size_bytes = output_path.stat().st_size
    logger.info("Audio download verified",
               video_id=video_info.video_id,
               filepath=str(output_path),
               size_mb=size_bytes / 1024 / 1024)

    return AudioFile(
        filepath=str(output_path),
        size_bytes=size_bytes,
        format_id=audio_format.get('format_id')
    )


def safe_delete_file(file_path) -> bool:
    """Delete a file if it exists; failures are logged, never raised"""
    try:
        if os.path.exists(file_path):
            os.remove(file_path)
            logger.debug("Cleaned up temporary file", filepath=str(file_path))
            return True
    except OSError as e:
        logger.warning("Could not delete temporary file", filepath=str(file_path), error=str(e))
    return False


def remove_partial_downloads(output_path: Path) -> None:
    """Remove the audio file and the .part/.ytdl leftovers yt-dlp writes next to it"""
    for suffix in ('', '.part', '.ytdl'):
        safe_delete_file(f"{output_path}{suffix}")
