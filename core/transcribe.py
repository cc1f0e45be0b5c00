"""
Transcript Acquisition Module

Single responsibility: YouTube URL → transcript text
Captions are tried first; when they are unavailable the audio is downloaded
and transcribed with Deepgram. Temporary files never outlive the call.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

import structlog
from deepgram import DeepgramClient, PrerecordedOptions
from pydantic import BaseModel, Field

from config import config, ConfigurationError
from core.captions import fetch_caption_transcript
from core.download import (
    AudioFile,
    DownloadError,
    DownloadTimeoutError,
    InvalidVideoReferenceError,
    MissingInputError,
    NoAudioFormatError,
    VideoMetadata,
    YouTubeError,
    audio_file_path,
    choose_audio_format,
    download_audio,
    fetch_video_info,
    remove_partial_downloads,
)

# Configure structured logger
logger = structlog.get_logger(__name__)

SENTINEL_SPEAKERS = {"undefined", "null"}


class TranscriptMethod(str, Enum):
    """How a transcript was obtained"""
    CAPTIONS = "captions"
    SPEECH_TO_TEXT = "speech-to-text"
    MANUAL = "manual"


class TranscriptResult(BaseModel):
    """Transcript with the method used and whatever metadata came with it"""

    transcript: Optional[str] = Field(None, description="Transcript text, None when every method failed")
    method: TranscriptMethod = Field(description="Acquisition method used")
    confidence: Optional[float] = Field(None, description="Speech-to-text confidence", ge=0, le=1)
    speakers: Optional[List[str]] = Field(None, description="Distinct diarized speaker labels")
    metadata: Optional[VideoMetadata] = Field(None, description="Video title, author and duration")
    fallback_reason: Optional[str] = Field(None, description="Why captions were not used")
    error_kind: Optional[str] = Field(None, description="Failure category of the audio path")
    error: Optional[str] = Field(None, description="Failure message of the audio path")

    @property
    def succeeded(self) -> bool:
        return bool(self.transcript)


class SpeechToTextResult(BaseModel):
    """Fields pulled out of a Deepgram pre-recorded response"""

    transcript: Optional[str] = None
    confidence: Optional[float] = None
    speakers: Optional[List[str]] = None


class TranscriptionError(Exception):
    """Custom exception for speech-to-text failures"""
    pass


def extract_speakers(utterances: Optional[List[Any]]) -> Optional[List[str]]:
    """Distinct speaker labels in first-seen order, or None when there are none"""

    labels = []
    for utterance in utterances or []:
        if isinstance(utterance, dict):
            speaker = utterance.get('speaker')
        else:
            speaker = getattr(utterance, 'speaker', None)

        if speaker is None:
            continue

        label = str(speaker)
        if label in SENTINEL_SPEAKERS:
            continue
        labels.append(label)

    unique_labels = list(dict.fromkeys(labels))
    return unique_labels or None


def parse_deepgram_response(payload: Dict[str, Any]) -> SpeechToTextResult:
    """Read transcript, confidence and speakers from a Deepgram response dict"""

    results = payload.get('results') or {}
    channels = results.get('channels') or [{}]
    alternatives = channels[0].get('alternatives') or [{}]
    best = alternatives[0]

    return SpeechToTextResult(
        transcript=best.get('transcript'),
        confidence=best.get('confidence'),
        speakers=extract_speakers(results.get('utterances'))
    )


def transcribe_with_deepgram(audio_file: AudioFile, api_key: str) -> SpeechToTextResult:
    """Submit a local audio file to Deepgram's pre-recorded API"""

    settings = config.transcription

    logger.info("Starting Deepgram transcription",
               filepath=audio_file.filepath,
               file_size_mb=audio_file.size_bytes / 1024 / 1024,
               model=settings.model)

    client = DeepgramClient(api_key)
    options = PrerecordedOptions(
        model=settings.model,
        language=settings.language,
        punctuate=True,
        paragraphs=True,
        utterances=True,
        diarize=True,
        filler_words=True,
    )

    with open(audio_file.filepath, 'rb') as f:
        buffer_data = f.read()

    try:
        response = client.listen.rest.v("1").transcribe_file({"buffer": buffer_data}, options)
    except Exception as e:
        logger.error("Deepgram request failed", error=str(e))
        raise TranscriptionError(f"Deepgram API error: {e}") from e

    payload = response if isinstance(response, dict) else response.to_dict()
    result = parse_deepgram_response(payload)

    logger.info("Deepgram transcription completed",
               char_count=len(result.transcript or ''),
               confidence=result.confidence,
               speaker_count=len(result.speakers or []))

    return result


def fetch_metadata_best_effort(video_url: str) -> Optional[VideoMetadata]:
    """Metadata for the caption path; any failure just means no metadata"""
    try:
        return fetch_video_info(video_url).to_metadata()
    except Exception as e:
        logger.warning("Could not fetch video metadata", error=str(e))
        return None


def classify_error(error: Exception) -> str:
    if isinstance(error, NoAudioFormatError):
        return "no_audio_format"
    if isinstance(error, DownloadTimeoutError):
        return "download_timeout"
    if isinstance(error, YouTubeError):
        return "platform_error"
    if isinstance(error, DownloadError):
        return "network_error"
    if isinstance(error, TranscriptionError):
        return "transcription_error"
    return "unexpected"


def troubleshooting_hints(message: Optional[str]) -> List[str]:
    """Hints for well-known failure signatures"""

    if not message:
        return []

    hints = []
    lowered = message.lower()

    if 'could not extract functions' in lowered or 'video unavailable' in lowered:
        hints.append("This error suggests YouTube changed something on its side. Try:")
        hints.append("   1. Updating yt-dlp to the latest version (pip install -U yt-dlp)")
        hints.append("   2. Checking if the video is publicly accessible")

    if '403' in lowered or '429' in lowered or 'rate limit' in lowered:
        hints.append("Rate limiting detected. Consider:")
        hints.append("   1. Waiting a while before processing the next video")
        hints.append("   2. Using a proxy or VPN")
        hints.append("   3. Exporting browser cookies and setting YTS_DOWNLOAD_COOKIES_FILE")

    if 'sign in to confirm' in lowered or 'bot protection' in lowered:
        hints.append("YouTube bot protection detected. Export cookies from a logged-in browser")
        hints.append("   and set YTS_DOWNLOAD_COOKIES_FILE to the Netscape cookies file.")

    if 'not installed or not in path' in lowered or 'command not found' in lowered:
        hints.append("It seems `yt-dlp` is not installed or not in your PATH.")
        hints.append("   Install it (pip install yt-dlp) to use the caption method.")

    return hints


def acquire_transcript(video_url: str, video_id: str, work_dir: Optional[str] = None) -> TranscriptResult:
    """Obtain a transcript for one video, captions first, Deepgram second.

    Raises MissingInputError for empty arguments and ConfigurationError when
    the audio fallback is needed but DEEPGRAM_API_KEY is unset. Every other
    audio-path failure is returned as a result with ``transcript=None``.
    """

    if not video_url or not video_id:
        raise MissingInputError("Both video_url and video_id are required")

    # METHOD 1: platform captions via yt-dlp
    caption = fetch_caption_transcript(video_url, video_id, work_dir)

    if caption.succeeded:
        return TranscriptResult(
            transcript=caption.text,
            method=TranscriptMethod.CAPTIONS,
            metadata=fetch_metadata_best_effort(video_url),
        )

    # METHOD 2: audio download + Deepgram
    logger.info("Captions unavailable, falling back to Deepgram transcription",
               video_id=video_id, reason=caption.failure_reason)

    api_key = config.transcription.deepgram_api_key
    if not api_key:
        raise ConfigurationError("DEEPGRAM_API_KEY is not set in environment variables.")

    audio_path = None
    try:
        video_info = fetch_video_info(video_url)
        metadata = video_info.to_metadata()

        audio_format = choose_audio_format(video_info.formats)
        if not audio_format:
            raise NoAudioFormatError("No suitable audio format found for the video.")

        audio_path = audio_file_path(video_info.video_id, audio_format, work_dir)
        audio_file = download_audio(video_info, audio_format, work_dir)

        stt = transcribe_with_deepgram(audio_file, api_key)

        result = TranscriptResult(
            transcript=stt.transcript or None,
            method=TranscriptMethod.SPEECH_TO_TEXT,
            confidence=stt.confidence,
            speakers=stt.speakers,
            metadata=metadata,
            fallback_reason=caption.failure_reason,
        )
        if not result.transcript:
            result.error_kind = "empty_transcript"
            result.error = "Deepgram returned an empty transcript"
        return result

    except (MissingInputError, InvalidVideoReferenceError):
        raise

    except Exception as e:
        error_kind = classify_error(e)
        logger.error("Audio transcription failed",
                    video_id=video_id, error_kind=error_kind, error=str(e))
        for hint in troubleshooting_hints(str(e)):
            logger.warning("Troubleshooting hint", hint=hint)

        return TranscriptResult(
            transcript=None,
            method=TranscriptMethod.SPEECH_TO_TEXT,
            fallback_reason=caption.failure_reason,
            error_kind=error_kind,
            error=str(e),
        )

    finally:
        if audio_path is not None:
            remove_partial_downloads(audio_path)
