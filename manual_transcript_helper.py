#!/usr/bin/env python3
"""
Manual Transcript Helper for YouTube Summarizer

Guides the user through pasting a transcript by hand when automatic
extraction fails, or cleans a directory of transcript files in batch.
Saved transcripts are picked up automatically by main.py.

Usage:
    python manual_transcript_helper.py            # Interactive single transcript helper
    python manual_transcript_helper.py --batch    # Batch process multiple transcripts
    python manual_transcript_helper.py --help     # Show this help
"""

import re
import sys
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import structlog
from pydantic import BaseModel, Field

from config import config
from core.download import extract_video_id

logger = structlog.get_logger(__name__)

MANUAL_HEADER = "# Manual Transcript"
HEADER_SEPARATOR = "\n---\n"

PAREN_TIMESTAMP_RE = re.compile(r'\(\d{1,2}:\d{2}(?::\d{2})?\)')
TIMESTAMP_RE = re.compile(r'\[?\b\d{1,2}:\d{2}(?::\d{2})?\b\]?')
SPEAKER_LABEL_RE = re.compile(r'^[A-Z][A-Za-z]*(?: [A-Za-z0-9]+){0,2}:\s*')
FILLER_RE = re.compile(r'\b(?:uh|um|er)\b', re.IGNORECASE)
SPACE_BEFORE_PUNCT_RE = re.compile(r'\s+([,.!?;:])')
UNSAFE_FILENAME_RE = re.compile(r'[<>:"/\\|?*]')

STOP_WORDS = {'the', 'and', 'that', 'this', 'with', 'have', 'will', 'they', 'from', 'been'}

Ask = Callable[[str], str]
Say = Callable[..., None]


class TranscriptValidation(BaseModel):
    """Quality check result for a cleaned transcript"""

    is_valid: bool = Field(description="True when no issues were found")
    issues: List[str] = Field(default_factory=list, description="Human-readable problems")
    word_count: int = Field(ge=0)
    char_count: int = Field(ge=0)


def clean_transcript_text(raw_text: str) -> str:
    """Strip timestamps, speaker labels and filler words from pasted text"""

    lines = []
    for line in raw_text.splitlines():
        line = PAREN_TIMESTAMP_RE.sub('', line)
        line = TIMESTAMP_RE.sub('', line)
        line = SPEAKER_LABEL_RE.sub('', line.strip())
        if line:
            lines.append(line)

    text = FILLER_RE.sub('', ' '.join(lines))
    text = ' '.join(text.split())
    text = SPACE_BEFORE_PUNCT_RE.sub(r'\1', text)
    text = re.sub(r'\.{2,}', '.', text)
    text = re.sub(r',{2,}', ',', text)
    return text.strip()


def validate_transcript(transcript: str) -> TranscriptValidation:
    """Flag transcripts that are too short, repetitive or lack content"""

    issues = []
    words = transcript.split()
    word_count = len(words)
    char_count = len(transcript)

    if char_count < 100:
        issues.append('Transcript is too short (less than 100 characters)')

    if word_count < 20:
        issues.append('Transcript has too few words (less than 20 words)')

    lowered = [word.lower() for word in words]
    if lowered:
        repetition_ratio = len(set(lowered)) / len(lowered)
        if repetition_ratio < 0.3:
            issues.append('Transcript appears to have excessive repetition')

    meaningful_words = [w for w in lowered if len(w) > 3 and w not in STOP_WORDS]
    if len(meaningful_words) < word_count * 0.3:
        issues.append('Transcript may lack meaningful content')

    return TranscriptValidation(
        is_valid=not issues,
        issues=issues,
        word_count=word_count,
        char_count=char_count
    )


def save_manual_transcript(
    video_id: str,
    transcript: str,
    title: Optional[str] = None,
    directory: Optional[str] = None
) -> Path:
    """Save a transcript as {video_id}_{title|manual}_{timestamp}.txt with a header"""

    transcripts_dir = Path(directory or config.work_dir)
    transcripts_dir.mkdir(parents=True, exist_ok=True)

    now = datetime.now()
    timestamp = now.strftime('%Y-%m-%dT%H-%M-%S')
    safe_title = UNSAFE_FILENAME_RE.sub('-', title)[:50] if title else ''
    filename = (f"{video_id}_{safe_title}_{timestamp}.txt" if safe_title
                else f"{video_id}_manual_{timestamp}.txt")

    header = f"{MANUAL_HEADER}\n"
    header += f"Video ID: {video_id}\n"
    if title:
        header += f"Title: {title}\n"
    header += f"Created: {now.isoformat()}\n"
    header += f"Word Count: {len(transcript.split())}\n"
    header += f"Character Count: {len(transcript)}\n"

    filepath = transcripts_dir / filename
    filepath.write_text(f"{header}{HEADER_SEPARATOR}\n{transcript}", encoding='utf-8')

    logger.info("Manual transcript saved", filepath=str(filepath), video_id=video_id)
    return filepath


def read_manual_transcript(filepath: Path) -> str:
    """Transcript text of a saved file, without the manual header"""
    content = Path(filepath).read_text(encoding='utf-8')
    if content.startswith(MANUAL_HEADER) and HEADER_SEPARATOR in content:
        content = content.split(HEADER_SEPARATOR, 1)[1]
    return content.strip()


def find_manual_transcript(video_id: str, directory: Optional[str] = None) -> Optional[Path]:
    """Newest manual transcript for a video, preferring cleaned versions"""

    transcripts_dir = Path(directory or config.work_dir)
    if not transcripts_dir.is_dir():
        return None

    candidates = list(transcripts_dir.glob(f"{video_id}_*.txt"))
    plain = transcripts_dir / f"{video_id}.txt"
    if plain.is_file():
        candidates.append(plain)

    if not candidates:
        return None

    return max(candidates, key=lambda p: (p.stem.endswith('_cleaned'), p.stat().st_mtime))


INSTRUCTIONS = """
This helper will guide you through manually extracting a transcript from YouTube.

🎯 METHODS TO GET TRANSCRIPT:

1. YouTube's Built-in Transcript (Recommended):
   • Open the YouTube video
   • Click the "..." (More) button below the video
   • Select "Show transcript"
   • Copy all the text (Ctrl+A, then Ctrl+C)

2. Auto-generated Captions:
   • Turn on captions (CC button)
   • Use browser extensions to extract caption text

3. Manual Typing:
   • Watch the video and type key points
   • Focus on main ideas rather than word-for-word

💡 TIPS:
• Don't worry about perfect formatting - this tool will clean it up
• Timestamps and speaker labels will be automatically removed
• The longer and more complete, the better the AI summary will be
"""


def read_pasted_lines(ask: Ask) -> str:
    """Collect lines until DONE or two consecutive empty lines"""

    lines = []
    line_count = 0
    empty_line_count = 0

    while True:
        line_count += 1
        try:
            line = ask(f"Line {line_count}: ").strip()
        except EOFError:
            break

        if line.lower() == 'done':
            break

        if line == '':
            empty_line_count += 1
            if empty_line_count >= 2:
                break
        else:
            empty_line_count = 0

        lines.append(line)

    return '\n'.join(lines)


def confirmed(answer: str) -> bool:
    return answer.strip().lower() in ('y', 'yes')


def run_interactive_helper(ask: Ask = input, say: Say = print, directory: Optional[str] = None) -> Optional[Path]:
    """Walk the user through entering one transcript; returns the saved path"""

    say('\n' + '=' * 80)
    say('📝 MANUAL TRANSCRIPT EXTRACTION HELPER')
    say('=' * 80)
    say(INSTRUCTIONS)
    ask('Press Enter to continue...')

    say('\n📹 STEP 1: YouTube Video Information')
    say('-' * 50)

    video_url = ask('Enter the YouTube video URL: ').strip()
    if not video_url:
        say('❌ No URL provided. Exiting...')
        return None

    video_id = extract_video_id(video_url)
    if not video_id:
        say('❌ Invalid YouTube URL format. Please check the URL and try again.')
        return None

    say(f'✅ Video ID extracted: {video_id}')
    title = ask('Enter video title (optional, press Enter to skip): ').strip()

    say('\n📝 STEP 2: Transcript Input')
    say('-' * 50)
    say('Now paste the transcript content below.')
    say('Press Enter twice when finished, or type "DONE" on a new line.\n')

    transcript = read_pasted_lines(ask)
    if not transcript.strip():
        say('❌ No transcript content provided. Exiting...')
        return None

    say('\n🧹 STEP 3: Processing Transcript')
    say('-' * 50)
    say(f'Original length: {len(transcript)} characters')

    cleaned = clean_transcript_text(transcript)
    say(f'Cleaned length: {len(cleaned)} characters')

    validation = validate_transcript(cleaned)
    say(f'Word count: {validation.word_count}')
    say(f'Character count: {validation.char_count}')

    if not validation.is_valid:
        say('\n⚠️ QUALITY ISSUES DETECTED:')
        for issue in validation.issues:
            say(f'   • {issue}')
        if not confirmed(ask('\nDo you want to save anyway? (y/N): ')):
            say('Operation cancelled.')
            return None
    else:
        say('✅ Transcript validation passed!')

    say('\n💾 STEP 4: Saving Transcript')
    say('-' * 50)
    saved_path = save_manual_transcript(video_id, cleaned, title or None, directory)
    say(f'✅ Transcript saved to: {saved_path}')

    say('\n📋 PREVIEW (first 200 characters):')
    say('-' * 50)
    say(cleaned[:200] + ('...' if len(cleaned) > 200 else ''))

    say('\n🎉 SUCCESS! Next steps:')
    say('-' * 50)
    say('1. Run the main program to process this video')
    say('2. The transcript will be automatically detected and used')
    say(f'\nCommand: python main.py "{video_url}"')

    return saved_path


def run_batch_helper(ask: Ask = input, say: Say = print, directory: Optional[str] = None) -> Tuple[int, int]:
    """Clean and validate every transcript file in a directory; returns (processed, errors)"""

    transcripts_dir = Path(directory or config.work_dir)
    transcripts_dir.mkdir(parents=True, exist_ok=True)

    say('\n📚 BATCH TRANSCRIPT HELPER')
    say('=' * 50)
    say(f'1. Place your transcript files in the "{transcripts_dir}" directory')
    say('2. Name them as: [videoId].txt or [videoId]_transcript.txt')
    say('3. This helper will validate and clean them all\n')

    files = sorted(
        p for p in transcripts_dir.glob('*.txt')
        if not p.stem.endswith('_cleaned')
    )

    if not files:
        say(f'No .txt files found in {transcripts_dir} directory.')
        return 0, 0

    say(f'Found {len(files)} transcript files:')
    for filepath in files:
        say(f'  • {filepath.name}')

    if not confirmed(ask('\nProcess all files? (y/N): ')):
        return 0, 0

    processed = 0
    errors = 0

    for filepath in files:
        say(f'\nProcessing: {filepath.name}')
        try:
            cleaned = clean_transcript_text(read_manual_transcript(filepath))
            validation = validate_transcript(cleaned)

            say(f'  Word count: {validation.word_count}')
            say(f'  Character count: {validation.char_count}')
            if validation.is_valid:
                say('  ✅ Validation passed')
            else:
                say(f"  ⚠️ Issues: {', '.join(validation.issues)}")

            cleaned_path = filepath.with_name(f'{filepath.stem}_cleaned.txt')
            cleaned_path.write_text(cleaned, encoding='utf-8')
            say(f'  💾 Cleaned version saved: {cleaned_path.name}')
            processed += 1

        except (OSError, UnicodeDecodeError) as e:
            logger.error("Failed to process transcript file", filepath=str(filepath), error=str(e))
            say(f'  ❌ Error: {e}')
            errors += 1

    say('\n🎉 Batch processing complete!')
    say(f'✅ Processed: {processed} files')
    say(f'❌ Errors: {errors} files')
    return processed, errors


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv

    if '--help' in args or '-h' in args:
        print(__doc__)
        return 0

    try:
        if '--batch' in args:
            run_batch_helper()
        else:
            run_interactive_helper()
    except (KeyboardInterrupt, EOFError):
        print('\nOperation cancelled.')
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
