"""
Core business logic modules for YouTube Summarizer

This package contains the core functionality modules:
- download.py: YouTube URL → video metadata and audio file
- captions.py: YouTube URL → cleaned caption text
- transcribe.py: captions or audio → transcript (acquisition pipeline)
- process.py: Transcript → bullet-point summary
"""
