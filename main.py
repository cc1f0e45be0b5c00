#!/usr/bin/env python3
"""
YouTube Summarizer - Main Orchestrator

Entry point that runs one video through the pipeline:
URL → manual transcript or captions or Deepgram → transcript file → summary → job report
"""

import json
import logging
import sys
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog
from pydantic import BaseModel, Field
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from config import config, ConfigurationError
from core.download import (
    DownloadError,
    InvalidVideoReferenceError,
    MissingInputError,
    VideoMetadata,
    require_video_reference,
)
from core.transcribe import (
    TranscriptMethod,
    TranscriptResult,
    TranscriptionError,
    acquire_transcript,
    fetch_metadata_best_effort,
    troubleshooting_hints,
)
from core.process import SummaryError, generate_summary
from manual_transcript_helper import find_manual_transcript, read_manual_transcript

logger = structlog.get_logger(__name__)

TOOL_NAME = "youtube-summarizer"


def configure_logging(debug: bool = False):
    """Configure structured logging once per process"""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=logging.DEBUG if debug else logging.WARNING,
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.dev.ConsoleRenderer(colors=True)
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class ProcessingJob(BaseModel):
    """One run of the pipeline with its results and timings"""

    # Job identification
    job_id: str = Field(description="Unique job identifier")
    video_id: str = Field(description="YouTube video ID")
    url: str = Field(description="Video URL as given")
    start_time: datetime = Field(default_factory=datetime.now)
    end_time: Optional[datetime] = None
    status: str = Field(default="running", description="Job status")
    error_message: Optional[str] = None

    # Core objects
    transcript: Optional[TranscriptResult] = Field(None, description="Acquired transcript")
    summary: Optional[str] = Field(None, description="Generated summary")
    summary_provider: Optional[str] = None

    # Timing metrics
    acquisition_start_time: Optional[datetime] = None
    acquisition_end_time: Optional[datetime] = None
    summary_start_time: Optional[datetime] = None
    summary_end_time: Optional[datetime] = None

    # Output files
    transcript_file: Optional[str] = None
    summary_file: Optional[str] = None

    def duration_seconds(self) -> float:
        """Calculate job duration in seconds"""
        end = self.end_time or datetime.now()
        return (end - self.start_time).total_seconds()

    def acquisition_duration_seconds(self) -> Optional[float]:
        if self.acquisition_start_time and self.acquisition_end_time:
            return (self.acquisition_end_time - self.acquisition_start_time).total_seconds()
        return None

    def summary_duration_seconds(self) -> Optional[float]:
        if self.summary_start_time and self.summary_end_time:
            return (self.summary_end_time - self.summary_start_time).total_seconds()
        return None

    def mark_acquisition_start(self):
        self.acquisition_start_time = datetime.now()

    def mark_acquisition_end(self):
        self.acquisition_end_time = datetime.now()

    def mark_summary_start(self):
        self.summary_start_time = datetime.now()

    def mark_summary_end(self):
        self.summary_end_time = datetime.now()

    def mark_completed(self):
        """Mark job as completed successfully"""
        self.end_time = datetime.now()
        self.status = "completed"

    def mark_failed(self, error: str):
        """Mark job as failed with error message"""
        self.end_time = datetime.now()
        self.status = "failed"
        self.error_message = error

    @property
    def metadata(self) -> Optional[VideoMetadata]:
        return self.transcript.metadata if self.transcript else None

    def to_report(self) -> Dict[str, Any]:
        """Flat job summary written to the JSON report"""
        transcript_text = self.transcript.transcript if self.transcript else None
        metadata = self.metadata

        def rounded(seconds: Optional[float]) -> Optional[float]:
            return round(seconds, 2) if seconds is not None else None

        return {
            'job_id': self.job_id,
            'tool': TOOL_NAME,
            'video_id': self.video_id,
            'url': self.url,
            'status': self.status,
            'error_message': self.error_message,
            'job_start_time': self.start_time.isoformat(),
            'job_end_time': self.end_time.isoformat() if self.end_time else None,
            'total_processing_seconds': rounded(self.duration_seconds()),
            'acquisition_seconds': rounded(self.acquisition_duration_seconds()),
            'summary_seconds': rounded(self.summary_duration_seconds()),
            'video_title': metadata.title if metadata else None,
            'creator_name': metadata.author if metadata else None,
            'video_duration_seconds': metadata.duration if metadata else None,
            'transcript_method': self.transcript.method.value if self.transcript else None,
            'fallback_reason': self.transcript.fallback_reason if self.transcript else None,
            'error_kind': self.transcript.error_kind if self.transcript else None,
            'confidence': self.transcript.confidence if self.transcript else None,
            'speakers': self.transcript.speakers if self.transcript else None,
            'transcript_character_count': len(transcript_text) if transcript_text else 0,
            'transcript_word_count': len(transcript_text.split()) if transcript_text else 0,
            'summary_provider': self.summary_provider,
            'summary_character_count': len(self.summary) if self.summary else 0,
            'transcript_file': self.transcript_file,
            'summary_file': self.summary_file,
        }


class ProgressTracker:
    """Progress output for the console plus structured log events"""

    def __init__(self, skip_summary: bool = False):
        self.step_names = [
            "🔍 Checking for manual transcript",
            "📝 Acquiring transcript",
            "💾 Saving transcript",
        ]
        if not skip_summary:
            self.step_names.append("🤖 Generating summary")
        self.total_steps = len(self.step_names)

    def start_step(self, step_index: int):
        """Start a processing step"""
        step_name = self.step_names[step_index]
        progress = (step_index / self.total_steps) * 100

        print(f"\n[{progress:.0f}%] {step_name}")
        logger.info("Processing step started",
                   step=step_name,
                   step_index=step_index,
                   progress_percent=progress)

    def complete_step(self, step_index: int):
        """Complete a processing step"""
        progress = ((step_index + 1) / self.total_steps) * 100
        step_name = self.step_names[step_index]

        print(f"[{progress:.0f}%] ✅ {step_name}")
        logger.info("Processing step completed",
                   step=step_name,
                   step_index=step_index,
                   progress_percent=progress)

    def show_final_summary(self, job: ProcessingJob):
        """Show final job summary"""
        print(f"\n{'='*60}")
        print("🎉 Processing Complete!" if job.status == "completed" else "⚠️  Processing Finished With Errors")
        print(f"{'='*60}")

        metadata = job.metadata
        if metadata and metadata.title:
            print(f"📹 Video: {metadata.title[:50]}")
        if metadata and metadata.author:
            print(f"👤 Creator: {metadata.author}")
        print(f"⏱️  Total Time: {job.duration_seconds():.1f}s")
        print(f"📊 Status: {job.status}")

        if job.transcript and job.transcript.transcript:
            print(f"📝 Transcript: {len(job.transcript.transcript):,} characters")
            print(f"🎵 Method: {job.transcript.method.value}")
            if job.transcript.speakers:
                print(f"🗣️  Speakers: {len(job.transcript.speakers)}")

        if job.summary:
            print(f"🤖 Summary: {len(job.summary):,} characters ({job.summary_provider})")


def generate_job_id() -> str:
    """Generate a unique job ID with UUID suffix for uniqueness"""
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    unique_suffix = str(uuid.uuid4())[:8]
    return f"{timestamp}_{unique_suffix}"


def file_timestamp() -> str:
    return datetime.now().strftime('%Y-%m-%dT%H-%M-%S')


def format_duration(seconds: Optional[int]) -> Optional[str]:
    if seconds is None:
        return None
    hours, remainder = divmod(int(seconds), 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def output_subdir(name: str) -> Path:
    directory = Path(config.output_dir) / name
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def save_transcript_file(job: ProcessingJob) -> Path:
    """Save transcript to outputs/transcripts with a metadata header"""

    result = job.transcript
    metadata = result.metadata or VideoMetadata()

    logger.info("Saving transcript file", job_id=job.job_id)

    header = "===== VIDEO METADATA =====\n"
    header += f"Title: {metadata.title or 'Unknown'}\n"
    header += f"Creator: {metadata.author or 'Unknown'}\n"
    header += f"Video ID: {job.video_id}\n"
    header += f"URL: {job.url}\n"
    if metadata.duration:
        header += f"Duration: {format_duration(metadata.duration)}\n"
    header += "="*50 + "\n"
    header += f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n"
    header += f"Job ID: {job.job_id}\n"
    header += f"Tool: {TOOL_NAME}\n"
    header += f"Transcription Method: {result.method.value}\n"
    if result.fallback_reason:
        header += f"Caption Fallback Reason: {result.fallback_reason}\n"
    if result.confidence is not None:
        header += f"Confidence: {result.confidence:.2%}\n"
    if result.speakers:
        header += f"Speakers: {', '.join(result.speakers)}\n"
    header += "="*50 + "\n\n"

    filepath = output_subdir('transcripts') / f"{job.video_id}_transcript_{file_timestamp()}.txt"
    filepath.write_text(header + result.transcript, encoding='utf-8')

    file_size = filepath.stat().st_size
    logger.info("Transcript file saved", filepath=str(filepath), size_kb=file_size / 1024)

    print(f"📄 Transcript saved: {filepath}")
    print(f"📏 File size: {file_size/1024:.1f} KB")

    return filepath


def save_summary_file(job: ProcessingJob) -> Path:
    """Save the summary as markdown to outputs/summaries"""

    metadata = job.metadata or VideoMetadata()

    logger.info("Saving summary file", job_id=job.job_id)

    content = f"# {metadata.title or job.video_id}\n\n"
    content += f"- **Creator:** {metadata.author or 'Unknown'}\n"
    content += f"- **Video:** {job.url}\n"
    if metadata.duration:
        content += f"- **Duration:** {format_duration(metadata.duration)}\n"
    content += f"- **Transcript Method:** {job.transcript.method.value}\n"
    content += f"- **Summary Provider:** {job.summary_provider}\n"
    content += f"- **Generated:** {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n"
    content += f"- **Job ID:** {job.job_id}\n\n"
    content += "---\n\n"
    content += job.summary.strip() + "\n"

    filepath = output_subdir('summaries') / f"{job.video_id}_summary_{file_timestamp()}.md"
    filepath.write_text(content, encoding='utf-8')

    logger.info("Summary file saved", filepath=str(filepath))
    print(f"📋 Summary saved: {filepath}")

    return filepath


def save_job_report(job: ProcessingJob) -> Optional[Path]:
    """Write the JSON job report; a failure here is logged and does not change the job status"""

    filepath = output_subdir('reports') / f"{job.video_id}_report_{file_timestamp()}.json"
    try:
        filepath.write_text(json.dumps(job.to_report(), indent=2, ensure_ascii=False), encoding='utf-8')
    except OSError as e:
        logger.error("Failed to save job report", filepath=str(filepath), error=str(e))
        return None

    logger.info("Job report saved", job_id=job.job_id, filepath=str(filepath), status=job.status)
    print(f"📊 Report saved: {filepath}")
    return filepath


def load_manual_transcript(video_url: str, video_id: str) -> Optional[TranscriptResult]:
    """Use a transcript from the manual helper when one exists for this video"""

    manual_path = find_manual_transcript(video_id, config.work_dir)
    if not manual_path:
        return None

    try:
        text = read_manual_transcript(manual_path)
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Manual transcript unreadable, ignoring it",
                      filepath=str(manual_path), error=str(e))
        print(f"⚠️  Could not read manual transcript {manual_path}, continuing without it")
        return None

    if not text:
        logger.warning("Manual transcript is empty, ignoring it", filepath=str(manual_path))
        return None

    print(f"✍️  Using manual transcript: {manual_path}")
    logger.info("Manual transcript found", filepath=str(manual_path), char_count=len(text))

    return TranscriptResult(
        transcript=text,
        method=TranscriptMethod.MANUAL,
        metadata=fetch_metadata_best_effort(video_url),
    )


def print_failure_details(result: TranscriptResult):
    print("\n❌ All transcript methods exhausted")
    if result.fallback_reason:
        print(f"   Captions: {result.fallback_reason}")
    if result.error:
        print(f"   Audio transcription ({result.error_kind}): {result.error}")

    hints = troubleshooting_hints(result.error)
    if hints:
        print("\n💡 Troubleshooting:")
        for hint in hints:
            print(f"   {hint}")

    print("\n✍️  You can add a transcript by hand with: python manual_transcript_helper.py")


def process_youtube_video(
    url: str,
    video_id: str,
    skip_summary: bool = False,
    ignore_manual: bool = False
) -> ProcessingJob:
    """Run one video through the complete pipeline"""

    job_id = generate_job_id()
    progress = ProgressTracker(skip_summary=skip_summary)

    logger.info("Starting YouTube video processing",
               url=url,
               video_id=video_id,
               job_id=job_id,
               skip_summary=skip_summary)

    print("🎬 YouTube Summarizer")
    print(f"📋 Job ID: {job_id}")
    print(f"🔗 URL: {url}")
    print("="*60)

    job = ProcessingJob(job_id=job_id, video_id=video_id, url=url)

    try:
        # Step 1: manual transcript
        progress.start_step(0)
        result = None
        if ignore_manual:
            print("⏭️  Ignoring manual transcripts (--ignore-manual)")
        else:
            result = load_manual_transcript(url, video_id)
            if not result:
                print("   No manual transcript found")
        progress.complete_step(0)

        # Step 2: captions, then Deepgram
        if not result:
            progress.start_step(1)
            job.mark_acquisition_start()
            result = acquire_transcript(url, video_id)
            job.mark_acquisition_end()
            job.transcript = result

            if not result.succeeded:
                print_failure_details(result)
                job.mark_failed(f"All transcript methods exhausted ({result.error_kind or 'no transcript'})")
                return job

            if result.fallback_reason:
                print(f"⚠️  Captions unavailable ({result.fallback_reason}), used Deepgram transcription")
            print(f"📝 Transcript acquired: {len(result.transcript):,} characters via {result.method.value}")
            progress.complete_step(1)
        else:
            job.transcript = result

        # Step 3: save transcript
        progress.start_step(2)
        job.transcript_file = str(save_transcript_file(job))
        progress.complete_step(2)

        # Step 4: summary (optional)
        if skip_summary:
            print("\n⏭️  Skipping summary (--transcript-only mode)")
            logger.info("Summary skipped by user request")
        else:
            progress.start_step(3)
            job.summary_provider = config.summary.provider
            job.mark_summary_start()

            summary = generate_summary(result.transcript, result.metadata)

            job.mark_summary_end()
            if not summary:
                raise SummaryError(f"{job.summary_provider} returned no summary")

            job.summary = summary
            job.summary_file = str(save_summary_file(job))

            print(f"\n{'-'*60}\n{summary.strip()}\n{'-'*60}")
            progress.complete_step(3)

        job.mark_completed()
        progress.show_final_summary(job)
        return job

    except ConfigurationError as e:
        error_msg = f"Configuration error: {e}"
        logger.error("Configuration error", error=str(e))
        print(f"\n❌ {error_msg}")
        print("💡 Add the missing key to .env (run: python init_workspace.py for a template)")
        job.mark_failed(error_msg)
        return job

    except (MissingInputError, InvalidVideoReferenceError) as e:
        error_msg = f"Invalid input: {e}"
        logger.error("Invalid input", error=str(e))
        print(f"\n❌ {error_msg}")
        job.mark_failed(error_msg)
        return job

    except (DownloadError, TranscriptionError) as e:
        error_msg = f"Transcript error: {e}"
        logger.error("Transcript acquisition failed", error=str(e))
        print(f"\n❌ {error_msg}")
        job.mark_failed(error_msg)
        return job

    except SummaryError as e:
        error_msg = f"Summary error: {e}"
        logger.error("Summary generation failed", error=str(e))
        print(f"\n❌ {error_msg}")
        # The transcript file is already saved
        job.mark_failed(error_msg)
        return job

    except OSError as e:
        error_msg = f"Failed to save output: {e}"
        logger.error("Failed to save output", error=str(e))
        print(f"\n❌ {error_msg}")
        job.mark_failed(error_msg)
        return job

    except Exception as e:
        error_msg = f"Unexpected error: {e}"
        logger.error("Unexpected error occurred", error=str(e))
        print(f"\n❌ {error_msg}")
        job.mark_failed(error_msg)
        return job

    finally:
        save_job_report(job)


def print_usage():
    print("Usage: python main.py <youtube_url> [--transcript-only] [--ignore-manual] [--debug]")
    print("       python main.py <youtube_url>                    # Transcript and summary")
    print("       python main.py <youtube_url> --transcript-only  # Skip the summary")
    print("       python main.py <youtube_url> --ignore-manual    # Do not use manual transcripts")
    print()
    print("Examples:")
    print("  python main.py https://www.youtube.com/watch?v=dQw4w9WgXcQ")
    print("  python main.py https://youtu.be/dQw4w9WgXcQ --transcript-only")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point with argument parsing; returns the exit code"""

    args = sys.argv[1:] if argv is None else argv
    flags = {arg for arg in args if arg.startswith('--')}
    positional = [arg for arg in args if not arg.startswith('--')]

    if not positional or '--help' in flags:
        print_usage()
        return 1

    configure_logging(debug=config.debug or '--debug' in flags)

    url = positional[0]

    # Validate URL format before anything touches the network
    try:
        video_id = require_video_reference(url)
    except (MissingInputError, InvalidVideoReferenceError) as e:
        logger.debug("Rejected video reference", url=url, error=str(e))
        print("❌ Error: Please provide a valid YouTube URL")
        return 1

    # Show configuration info
    if config.debug or '--debug' in flags:
        print("🔧 Debug mode enabled")
        print(f"🤖 Summary provider: {config.summary.provider}")
        print(f"🎙️  Deepgram model: {config.transcription.model}")
        print()

    job = process_youtube_video(
        url,
        video_id,
        skip_summary='--transcript-only' in flags,
        ignore_manual='--ignore-manual' in flags,
    )

    # Exit with appropriate code
    if job.status == "completed":
        print("\n✨ Processing completed successfully!")
        return 0

    print(f"\n💥 Processing failed: {job.error_message}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
