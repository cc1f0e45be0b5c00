"""
Caption Module

Single responsibility: YouTube URL → cleaned caption text
Runs the yt-dlp executable to fetch the subtitle track and flattens the
WebVTT cues into one paragraph.
"""

import html
import re
import subprocess
from pathlib import Path
from typing import List, Optional

import structlog
from pydantic import BaseModel, Field

from config import config
from core.download import safe_delete_file

# Configure structured logger
logger = structlog.get_logger(__name__)

TAG_RE = re.compile(r'<[^>]*>')
ANNOTATION_RE = re.compile(r'\[.*?\]')
CUE_INDEX_RE = re.compile(r'^\d+$')
METADATA_BLOCK_RE = re.compile(r'^(NOTE|STYLE|REGION)(\s|$)')
HEADER_PREFIXES = ('WEBVTT', 'Kind:', 'Language:')


class CaptionError(Exception):
    """Custom exception for caption download failures"""
    pass


class SubtitleToolUnavailableError(CaptionError):
    """The subtitle downloader executable is not installed or not on PATH"""
    pass


class CaptionAttempt(BaseModel):
    """Outcome of the caption stage: text, or the reason it produced none"""

    text: Optional[str] = Field(None, description="Cleaned caption paragraph")
    failure_reason: Optional[str] = Field(None, description="Why no caption text was produced")

    @property
    def succeeded(self) -> bool:
        return bool(self.text)


def subtitle_file_path(video_id: str, work_dir: Optional[str] = None) -> Path:
    """Path yt-dlp writes the subtitle track to"""
    captions = config.captions
    return Path(work_dir or config.work_dir) / f"{video_id}.{captions.language}.{captions.subtitle_format}"


def clean_vtt_text(content: str) -> str:
    """Flatten WebVTT content into one paragraph of distinct caption lines"""

    text_lines: List[str] = []
    in_header = True
    block_start = True
    in_metadata_block = False

    for line in content.splitlines():
        stripped = line.strip()

        if not stripped:
            in_header = False
            block_start = True
            in_metadata_block = False
            continue

        opens_block = block_start
        block_start = False

        # A timing line makes the block a cue, so the rest of it is caption text
        if '-->' in stripped:
            in_header = False
            in_metadata_block = False
            continue

        if in_metadata_block:
            continue

        if in_header and stripped.startswith(HEADER_PREFIXES):
            continue

        if opens_block and CUE_INDEX_RE.match(stripped):
            continue

        if opens_block and METADATA_BLOCK_RE.match(stripped):
            in_metadata_block = True
            continue

        clean_line = ANNOTATION_RE.sub('', TAG_RE.sub('', stripped))
        clean_line = ' '.join(html.unescape(clean_line).split())

        if clean_line:
            text_lines.append(clean_line)

    # Auto-generated captions repeat each line across rolling cues
    return ' '.join(dict.fromkeys(text_lines))


def download_subtitles(url: str, video_id: str, work_dir: Optional[str] = None) -> Path:
    """Run the subtitle downloader and return the path of the subtitle file it wrote"""

    captions = config.captions
    subtitle_path = subtitle_file_path(video_id, work_dir)
    subtitle_path.parent.mkdir(parents=True, exist_ok=True)
    output_template = str(subtitle_path.parent / f"{video_id}.%(ext)s")

    cmd = [
        captions.tool,
        '--write-auto-sub', '--write-sub',
        '--sub-lang', captions.language,
        '--sub-format', captions.subtitle_format,
        '--skip-download',
        '-o', output_template,
        url
    ]

    logger.info("Starting subtitle download", video_id=video_id, tool=captions.tool)

    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=captions.timeout)
    except FileNotFoundError as e:
        raise SubtitleToolUnavailableError(
            f"{captions.tool} is not installed or not in PATH"
        ) from e
    except subprocess.TimeoutExpired as e:
        raise CaptionError(f"Subtitle download timed out after {captions.timeout} seconds") from e

    if result.returncode != 0:
        stderr = (result.stderr or '').strip()
        if result.returncode == 127 or 'command not found' in stderr:
            raise SubtitleToolUnavailableError(f"{captions.tool} is not installed or not in PATH")
        raise CaptionError(f"Subtitle download failed (exit {result.returncode}): {stderr[-500:]}")

    logger.debug("Subtitle download command finished", video_id=video_id)
    return subtitle_path


def fetch_caption_transcript(url: str, video_id: str, work_dir: Optional[str] = None) -> CaptionAttempt:
    """Try to produce a transcript from the platform's captions.

    Never raises for caption problems: every failure is reported through
    ``CaptionAttempt.failure_reason`` so the caller can fall back to audio.
    The subtitle file is removed before returning.
    """

    subtitle_path = subtitle_file_path(video_id, work_dir)

    try:
        download_subtitles(url, video_id, work_dir)

        if not subtitle_path.exists():
            logger.info("No subtitle track was written", video_id=video_id)
            return CaptionAttempt(failure_reason="subtitle_missing")

        logger.debug("Reading and cleaning subtitle file", filepath=str(subtitle_path))
        content = subtitle_path.read_text(encoding='utf-8')
        paragraph = clean_vtt_text(content)

        if not paragraph:
            logger.info("Subtitle track was empty after cleaning", video_id=video_id)
            return CaptionAttempt(failure_reason="empty")

        logger.info("Successfully extracted caption transcript",
                   video_id=video_id, char_count=len(paragraph))
        return CaptionAttempt(text=paragraph)

    except SubtitleToolUnavailableError as e:
        logger.warning("Subtitle tool unavailable", error=str(e))
        return CaptionAttempt(failure_reason="tool_unavailable")
    except CaptionError as e:
        logger.warning("Subtitle download failed", video_id=video_id, error=str(e))
        return CaptionAttempt(failure_reason="download_failed")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Subtitle file unreadable", filepath=str(subtitle_path), error=str(e))
        return CaptionAttempt(failure_reason="unreadable")
    finally:
        safe_delete_file(subtitle_path)
