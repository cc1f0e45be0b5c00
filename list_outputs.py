#!/usr/bin/env python3
"""
Output file listing for YouTube Summarizer

Scans the output and transcript directories and prints statistics, the most
recent files, files grouped by video, and cleanup suggestions.

Usage:
    python list_outputs.py
"""

import math
import re
import sys
from collections import Counter
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from config import config

SIZE_UNITS = ['B', 'KB', 'MB', 'GB']

FILENAME_VIDEO_ID_PATTERNS = [
    re.compile(r'^([a-zA-Z0-9_-]{11})_'),   # Standard YouTube ID at start
    re.compile(r'_([a-zA-Z0-9_-]{11})_'),   # YouTube ID in middle
    re.compile(r'([a-zA-Z0-9_-]{11})\.'),   # YouTube ID before extension
]

TYPE_EMOJI = {
    'transcript': '📄',
    'summary': '📋',
    'report': '📊',
    'sample': '🎯',
    'manual': '✍️',
    'other': '📁',
}

CLEANUP_FILE_THRESHOLD = 20
CLEANUP_AGE_DAYS = 30

Say = Callable[..., None]


class FileInfo(BaseModel):
    """One output file with its classification"""

    name: str
    path: str
    size: int = Field(ge=0)
    size_formatted: str
    modified: datetime
    type: str = Field(description="transcript, summary, report, sample, manual or other")
    video_id: Optional[str] = None


class DirectoryStats(BaseModel):
    """Totals across all scanned files"""

    total_files: int = 0
    total_size: int = 0
    total_size_formatted: str = '0 B'
    files_by_type: Dict[str, int] = Field(default_factory=dict)
    oldest_file: Optional[datetime] = None
    newest_file: Optional[datetime] = None


def format_file_size(size_bytes: int) -> str:
    """Human-readable size: 0 B, 512 B, 1.5 KB, 2.0 MB"""
    if size_bytes <= 0:
        return '0 B'

    i = min(int(math.floor(math.log(size_bytes, 1024))), len(SIZE_UNITS) - 1)
    size = size_bytes / math.pow(1024, i)
    return f"{size:.0f} {SIZE_UNITS[i]}" if i == 0 else f"{size:.1f} {SIZE_UNITS[i]}"


def determine_file_type(file_path: Path) -> str:
    """Classify a file by the directory it sits in and its name"""
    directories = set(Path(file_path).parent.parts)
    base_name = Path(file_path).name.lower()

    if 'transcripts' in directories:
        if 'manual' in base_name or 'cleaned' in base_name:
            return 'manual'
        return 'transcript'

    if 'summaries' in directories:
        return 'summary'
    if 'reports' in directories:
        return 'report'
    if 'samples' in directories:
        return 'sample'

    return 'other'


def extract_video_id_from_filename(file_name: str) -> Optional[str]:
    for pattern in FILENAME_VIDEO_ID_PATTERNS:
        match = pattern.search(file_name)
        if match:
            return match.group(1)
    return None


def get_file_info(file_path: Path) -> FileInfo:
    stats = file_path.stat()
    return FileInfo(
        name=file_path.name,
        path=str(file_path),
        size=stats.st_size,
        size_formatted=format_file_size(stats.st_size),
        modified=datetime.fromtimestamp(stats.st_mtime),
        type=determine_file_type(file_path),
        video_id=extract_video_id_from_filename(file_path.name),
    )


def scan_directory(dir_path) -> List[FileInfo]:
    """Every regular file under a directory, recursively; missing directories yield nothing"""
    root = Path(dir_path)
    if not root.is_dir():
        return []

    return [get_file_info(p) for p in sorted(root.rglob('*')) if p.is_file()]


def calculate_stats(files: List[FileInfo]) -> DirectoryStats:
    total_size = sum(f.size for f in files)
    dates = [f.modified for f in files]

    return DirectoryStats(
        total_files=len(files),
        total_size=total_size,
        total_size_formatted=format_file_size(total_size),
        files_by_type=dict(Counter(f.type for f in files)),
        oldest_file=min(dates) if dates else None,
        newest_file=max(dates) if dates else None,
    )


def group_files_by_video(files: List[FileInfo]) -> Dict[str, List[FileInfo]]:
    groups: Dict[str, List[FileInfo]] = {}
    for file in files:
        groups.setdefault(file.video_id or 'unknown', []).append(file)
    return groups


def get_relative_time(date: datetime, now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    diff_mins = int((now - date).total_seconds() // 60)
    diff_hours = diff_mins // 60
    diff_days = diff_hours // 24

    if diff_mins < 1:
        return 'just now'
    if diff_mins < 60:
        return f'{diff_mins} min ago'
    if diff_hours < 24:
        return f"{diff_hours} hour{'s' if diff_hours > 1 else ''} ago"
    if diff_days < 7:
        return f"{diff_days} day{'s' if diff_days > 1 else ''} ago"

    return date.strftime('%Y-%m-%d')


def newest_first(files: List[FileInfo]) -> List[FileInfo]:
    return sorted(files, key=lambda f: f.modified, reverse=True)


def display_stats(stats: DirectoryStats, say: Say = print):
    say('\n📊 STATISTICS')
    say('=' * 20)
    say(f'Total files: {stats.total_files}')
    say(f'Total size: {stats.total_size_formatted}')

    if stats.oldest_file and stats.newest_file:
        say(f"Date range: {stats.oldest_file:%Y-%m-%d} - {stats.newest_file:%Y-%m-%d}")

    say('\n📈 Files by type:')
    for file_type, count in sorted(stats.files_by_type.items(), key=lambda item: item[1], reverse=True):
        say(f"   {TYPE_EMOJI.get(file_type, '📁')} {file_type}: {count}")


def display_files_table(files: List[FileInfo], title: str, say: Say = print):
    say(f'\n{title}')
    say('=' * len(title))

    if not files:
        say('No files found.')
        return

    say('\n📁 Files:')
    say('-' * 80)

    sorted_files = newest_first(files)
    for index, file in enumerate(sorted_files):
        say(f'{TYPE_EMOJI[file.type]} {file.name}')
        say(f'   📍 {file.path}')
        say(f'   📏 {file.size_formatted} • 🕒 {get_relative_time(file.modified)}')
        if file.video_id:
            say(f'   🎬 Video ID: {file.video_id}')
        if index < len(sorted_files) - 1:
            say('')


def display_by_video(files: List[FileInfo], say: Say = print):
    groups = group_files_by_video(files)

    say('\n🎬 FILES BY VIDEO')
    say('=' * 30)

    sorted_groups = sorted(
        groups.items(),
        key=lambda item: max(f.modified for f in item[1]),
        reverse=True
    )

    for video_id, group_files in sorted_groups:
        say(f"\n🎬 {'Unknown Video ID' if video_id == 'unknown' else f'Video ID: {video_id}'}")
        say('-' * 50)

        type_counts = Counter(f.type for f in group_files)
        type_list = ', '.join(
            f"{count} {file_type}{'s' if count > 1 else ''}"
            for file_type, count in type_counts.items()
        )

        say(f'   📊 Files: {len(group_files)} ({type_list})')
        say(f'   📏 Total size: {format_file_size(sum(f.size for f in group_files))}')

        ordered = newest_first(group_files)
        say(f'   🕒 Latest: {get_relative_time(ordered[0].modified)}')

        for file in ordered:
            say(f'     {TYPE_EMOJI[file.type]} {file.name} ({file.size_formatted})')


def old_files(files: List[FileInfo], now: Optional[datetime] = None) -> List[FileInfo]:
    """Files not modified in the last CLEANUP_AGE_DAYS days"""
    cutoff = (now or datetime.now()) - timedelta(days=CLEANUP_AGE_DAYS)
    return [f for f in files if f.modified < cutoff]


def display_cleanup_suggestions(files: List[FileInfo], stats: DirectoryStats, say: Say = print):
    say('\n🧹 CLEANUP SUGGESTIONS')
    say('=' * 30)
    say(f'You have {len(files)} output files using {stats.total_size_formatted} of storage.')
    say('\nConsider cleaning up old files:')

    stale = old_files(files)
    if stale:
        say(f'   • {len(stale)} files older than {CLEANUP_AGE_DAYS} days')
        say(f'   • Would free up: {format_file_size(sum(f.size for f in stale))}')


def collect_output_files(directories: Optional[List[str]] = None) -> List[FileInfo]:
    directories = directories or [config.output_dir, config.work_dir]
    all_files: List[FileInfo] = []
    for directory in directories:
        all_files.extend(scan_directory(directory))
    return all_files


def main(directories: Optional[List[str]] = None, say: Say = print) -> int:
    say('📁 YouTube Summarizer - Output Files')
    say('=' * 40)

    all_files = collect_output_files(directories)

    if not all_files:
        say('\n❌ No output files found!')
        say('\n💡 Make sure to run the summarizer first:')
        say('   python main.py <youtube_url>')
        say('\n📁 Expected directories:')
        say(f'   • {config.output_dir}/transcripts/')
        say(f'   • {config.output_dir}/summaries/')
        say(f'   • {config.output_dir}/reports/')
        say(f'   • {config.work_dir}/')
        return 0

    stats = calculate_stats(all_files)
    display_stats(stats, say)

    display_files_table(newest_first(all_files)[:10], '📅 RECENT FILES (Last 10)', say)
    display_by_video(all_files, say)

    if len(all_files) > CLEANUP_FILE_THRESHOLD:
        display_cleanup_suggestions(all_files, stats, say)

    say('\n✅ File listing complete!')
    return 0


if __name__ == "__main__":
    sys.exit(main())
