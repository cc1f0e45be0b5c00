"""
Configuration management for YouTube Summarizer

Using pydantic-settings for type-safe configuration with environment variable support.
All settings can be overridden via environment variables with the YTS_ prefix.
The plain API key names (DEEPGRAM_API_KEY, GEMINI_API_KEY, OPENAI_API_KEY) are
accepted as well so an existing .env keeps working.
"""

from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when a required setting (usually an API key) is missing"""
    pass


class CaptionConfig(BaseSettings):
    """Configuration for the yt-dlp subtitle download stage"""

    model_config = SettingsConfigDict(
        env_prefix='YTS_CAPTIONS_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'
    )

    tool: str = Field(
        default="yt-dlp",
        description="Subtitle downloader executable"
    )

    language: str = Field(
        default="en",
        description="Subtitle language code requested from the platform"
    )

    subtitle_format: str = Field(
        default="vtt",
        description="Subtitle file format written by the downloader"
    )

    timeout: int = Field(
        default=120,
        description="Subtitle download timeout in seconds",
        ge=10,
        le=900
    )


class DownloadConfig(BaseSettings):
    """Configuration for metadata lookup and audio download"""

    model_config = SettingsConfigDict(
        env_prefix='YTS_DOWNLOAD_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'
    )

    timeout: int = Field(
        default=300,
        description="Total audio download deadline in seconds (5 minutes)",
        ge=1,
        le=3600
    )

    socket_timeout: int = Field(
        default=30,
        description="Socket inactivity timeout handed to yt-dlp",
        ge=1,
        le=600
    )

    cookies_file: Optional[str] = Field(
        default=None,
        description="Netscape cookies file for bot-protected videos"
    )


class TranscriptionConfig(BaseSettings):
    """Configuration for Deepgram speech-to-text"""

    model_config = SettingsConfigDict(
        env_prefix='YTS_TRANSCRIPTION_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'
    )

    deepgram_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices('YTS_TRANSCRIPTION_DEEPGRAM_API_KEY', 'DEEPGRAM_API_KEY'),
        description="Deepgram API key, required only for the audio fallback"
    )

    model: str = Field(
        default="nova-2",
        description="Deepgram model"
    )

    language: str = Field(
        default="en-US",
        description="Spoken language passed to Deepgram"
    )

    @field_validator('deepgram_api_key', mode='before')
    @classmethod
    def drop_placeholder_key(cls, v):
        """Treat the .env template placeholder as unset"""
        if isinstance(v, str) and (not v.strip() or v.startswith('your_')):
            return None
        return v


class SummaryConfig(BaseSettings):
    """Configuration for LLM summarization"""

    model_config = SettingsConfigDict(
        env_prefix='YTS_SUMMARY_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'
    )

    provider: str = Field(
        default="gemini",
        description="Summarization provider: gemini or openai"
    )

    gemini_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices('YTS_SUMMARY_GEMINI_API_KEY', 'GEMINI_API_KEY'),
        description="Google Gemini API key"
    )

    gemini_model: str = Field(
        default="gemini-2.0-flash",
        description="Gemini model used for summaries"
    )

    openai_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices('YTS_SUMMARY_OPENAI_API_KEY', 'OPENAI_API_KEY'),
        description="OpenAI API key for the alternative provider"
    )

    openai_model: str = Field(
        default="gpt-4o-mini",
        validation_alias=AliasChoices('YTS_SUMMARY_OPENAI_MODEL', 'OPENAI_MODEL'),
        description="OpenAI model used for summaries"
    )

    api_timeout: int = Field(
        default=120,
        description="LLM API timeout in seconds",
        ge=10,
        le=600
    )

    max_transcript_length: int = Field(
        default=50000,
        validation_alias=AliasChoices('YTS_SUMMARY_MAX_TRANSCRIPT_LENGTH', 'MAX_TRANSCRIPT_LENGTH'),
        description="Transcript characters sent to the model; the rest is cut",
        ge=1000
    )

    @field_validator('provider')
    @classmethod
    def validate_provider(cls, v):
        valid_providers = ["gemini", "openai"]
        v = v.lower()
        if v not in valid_providers:
            raise ValueError(f"Summary provider must be one of {valid_providers}")
        return v

    @field_validator('gemini_api_key', 'openai_api_key', mode='before')
    @classmethod
    def drop_placeholder_key(cls, v):
        """Treat the .env template placeholders as unset"""
        if isinstance(v, str) and (not v.strip() or v.startswith('your_')):
            return None
        return v


class AppConfig(BaseSettings):
    """Main application configuration"""

    model_config = SettingsConfigDict(
        env_prefix='YTS_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'  # Ignore unknown environment variables
    )

    # Sub-configurations
    captions: CaptionConfig = Field(default_factory=CaptionConfig)
    download: DownloadConfig = Field(default_factory=DownloadConfig)
    transcription: TranscriptionConfig = Field(default_factory=TranscriptionConfig)
    summary: SummaryConfig = Field(default_factory=SummaryConfig)

    # Global settings
    debug: bool = Field(
        default=False,
        description="Enable debug logging"
    )

    work_dir: str = Field(
        default="transcripts",
        description="Staging directory for subtitle/audio files and manual transcripts"
    )

    output_dir: str = Field(
        default="outputs",
        description="Root directory for saved transcripts, summaries and reports"
    )


# Global configuration instance
config = AppConfig()
