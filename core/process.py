"""
AI Summary Module

Single responsibility: Transcript text → bullet-point summary
Gemini is the default provider; OpenAI is the alternative.
"""

import time
from typing import Optional

import structlog
from google import genai
from openai import OpenAI
from openai.types.chat import ChatCompletion

from config import config, ConfigurationError
from core.download import VideoMetadata

# Configure structured logger
logger = structlog.get_logger(__name__)

SUMMARY_INSTRUCTIONS = """You are a helpful assistant for summarizing YouTube video transcripts. Please provide a concise summary of the following video transcript. The video is titled "{title}" by "{author}".

**Instructions for the summary:**
- Start with a single sentence that captures the main idea.
- Follow with a bulleted list of 5-7 key takeaways or main points.
- Do not include any introductory or concluding remarks (e.g., "Here is a summary...")."""


class SummaryError(Exception):
    """Custom exception for summary generation failures"""
    pass


class APIError(SummaryError):
    """LLM API related errors"""
    pass


def build_instructions(video_metadata: Optional[VideoMetadata]) -> str:
    title = (video_metadata.title if video_metadata else None) or "Unknown"
    author = (video_metadata.author if video_metadata else None) or "Unknown"
    return SUMMARY_INSTRUCTIONS.format(title=title, author=author)


def truncate_transcript(transcript: str) -> str:
    """Cut the transcript to the configured maximum length"""
    limit = config.summary.max_transcript_length
    if len(transcript) <= limit:
        return transcript

    logger.warning("Transcript exceeds maximum length, truncating",
                  char_count=len(transcript), max_length=limit)
    return transcript[:limit]


def build_summary_prompt(transcript: str, video_metadata: Optional[VideoMetadata]) -> str:
    """Single prompt used by providers without a separate system message"""
    return (
        f"{build_instructions(video_metadata)}\n\n"
        f"**Video Transcript:**\n{truncate_transcript(transcript)}\n"
    )


def summarize_with_gemini(transcript: str, video_metadata: Optional[VideoMetadata], api_key: str) -> str:
    """Generate the summary with Google Gemini"""

    model = config.summary.gemini_model
    logger.info("Requesting summary from Gemini", model=model)

    client = genai.Client(api_key=api_key)

    try:
        response = client.models.generate_content(
            model=model,
            contents=build_summary_prompt(transcript, video_metadata)
        )
    except Exception as e:
        raise APIError(f"Gemini API error: {e}") from e

    summary = response.text
    if not summary:
        raise APIError("Gemini returned an empty response")
    return summary


def summarize_with_openai(transcript: str, video_metadata: Optional[VideoMetadata], api_key: str) -> str:
    """Generate the summary with OpenAI chat completions"""

    model = config.summary.openai_model
    logger.info("Requesting summary from OpenAI", model=model)

    client = OpenAI(api_key=api_key, timeout=config.summary.api_timeout)

    try:
        response: ChatCompletion = client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": build_instructions(video_metadata)},
                {"role": "user", "content": truncate_transcript(transcript)}
            ],
            temperature=0.3
        )
    except Exception as e:
        raise APIError(f"OpenAI API error: {e}") from e

    summary = response.choices[0].message.content
    if not summary:
        raise APIError("OpenAI returned an empty response")

    usage = response.usage
    if usage:
        logger.debug("OpenAI token usage",
                    input_tokens=usage.prompt_tokens,
                    output_tokens=usage.completion_tokens)
    return summary


def generate_summary(
    transcript: str,
    video_metadata: Optional[VideoMetadata],
    provider: Optional[str] = None
) -> Optional[str]:
    """Summarize a transcript into one headline sentence plus 5-7 bullets.

    Raises ConfigurationError when the provider's API key is missing.
    Returns None when the provider call fails.
    """

    provider = (provider or config.summary.provider).lower()

    if provider == "gemini":
        api_key = config.summary.gemini_api_key
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY is not set in environment variables.")
        summarize = summarize_with_gemini
    elif provider == "openai":
        api_key = config.summary.openai_api_key
        if not api_key:
            raise ConfigurationError("OPENAI_API_KEY is not set in environment variables.")
        summarize = summarize_with_openai
    else:
        raise ConfigurationError(f"Unknown summary provider: {provider}")

    logger.info("Starting summary generation",
               provider=provider, char_count=len(transcript))
    start_time = time.monotonic()

    try:
        summary = summarize(transcript, video_metadata, api_key)
    except SummaryError as e:
        logger.error("Failed to generate summary", provider=provider, error=str(e))
        return None

    logger.info("Summary generation completed",
               provider=provider,
               summary_length=len(summary),
               processing_time=round(time.monotonic() - start_time, 2))
    return summary
