#!/usr/bin/env python3
"""
Workspace setup for YouTube Summarizer

Creates the output and transcript directories, writes a .env template when
none exists, and checks API keys, the yt-dlp executable and Python packages.

Usage:
    python init_workspace.py
"""

import importlib
import shutil
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

from dotenv import dotenv_values

from config import config

Say = Callable[..., None]

OUTPUT_SUBDIRECTORIES = ['transcripts', 'summaries', 'reports', 'samples']

GITKEEP_CONTENT = '# This file keeps the directory in git\n'

REQUIRED_KEYS = ['GEMINI_API_KEY']
OPTIONAL_KEYS = ['DEEPGRAM_API_KEY', 'OPENAI_API_KEY']

ENV_TEMPLATE = """# Required API Keys
GEMINI_API_KEY=your_gemini_api_key_here

# Optional API Keys (DEEPGRAM for the audio fallback, OPENAI for YTS_SUMMARY_PROVIDER=openai)
DEEPGRAM_API_KEY=your_deepgram_api_key_here
OPENAI_API_KEY=your_openai_api_key_here

# Configuration
MAX_TRANSCRIPT_LENGTH=50000
# YTS_SUMMARY_PROVIDER=gemini
# YTS_DOWNLOAD_TIMEOUT=300
# YTS_DOWNLOAD_COOKIES_FILE=youtube_cookies.txt
# YTS_DEBUG=false
"""

# Import name -> distribution name
REQUIRED_PACKAGES = {
    'yt_dlp': 'yt-dlp',
    'structlog': 'structlog',
    'pydantic': 'pydantic',
    'pydantic_settings': 'pydantic-settings',
    'dotenv': 'python-dotenv',
    'deepgram': 'deepgram-sdk',
    'google.genai': 'google-genai',
    'openai': 'openai',
}


def workspace_directories(root: Path) -> List[Path]:
    output_root = root / config.output_dir
    return (
        [output_root]
        + [output_root / name for name in OUTPUT_SUBDIRECTORIES]
        + [root / config.work_dir]
    )


def create_directories(root: Path, say: Say = print) -> List[Path]:
    """Create missing workspace directories, each with a .gitkeep; returns the ones created"""
    say('📁 Creating directories...')
    created = []

    for directory in workspace_directories(root):
        label = f'{directory.relative_to(root)}/'
        if directory.exists():
            say(f'   ⏭️  Already exists: {label}')
            continue

        directory.mkdir(parents=True, exist_ok=True)
        (directory / '.gitkeep').write_text(GITKEEP_CONTENT, encoding='utf-8')
        created.append(directory)
        say(f'   ✅ Created: {label}')

    return created


def is_configured(value: Optional[str]) -> bool:
    """A key counts as set when it has a value that is not the template placeholder"""
    return bool(value and value.strip() and not value.startswith('your_'))


def check_api_keys(env_values: Dict[str, Optional[str]], say: Say = print) -> Dict[str, bool]:
    say('\n🔍 Checking API keys...')
    status = {}

    for key in REQUIRED_KEYS:
        status[key] = is_configured(env_values.get(key))
        if status[key]:
            say(f'   ✅ {key} is configured')
        else:
            say(f'   ⚠️  {key} needs to be configured')

    for key in OPTIONAL_KEYS:
        status[key] = is_configured(env_values.get(key))
        if status[key]:
            say(f'   ✅ {key} is configured (optional)')
        else:
            say(f'   ⏭️  {key} not configured (optional)')

    return status


def ensure_env_file(root: Path, say: Say = print) -> Optional[Dict[str, bool]]:
    """Write the .env template when missing, otherwise report key status"""
    say('\n🔑 Checking environment file...')
    env_path = root / '.env'

    if not env_path.exists():
        say('   ❌ .env file not found')
        say('\n📝 Creating sample .env file...')
        env_path.write_text(ENV_TEMPLATE, encoding='utf-8')
        say('   ✅ Created .env template')
        say('   📝 Please edit .env and add your API keys')
        return None

    say('   ✅ .env file exists')
    return check_api_keys(dotenv_values(env_path), say)


def check_subtitle_tool(say: Say = print) -> bool:
    say('\n🛠️  Checking subtitle tool...')
    tool = config.captions.tool
    location = shutil.which(tool)

    if location:
        say(f'   ✅ {tool} found at {location}')
        return True

    say(f'   ❌ {tool} is not installed or not in PATH')
    say(f'   💡 Install it with: pip install {tool}')
    return False


def check_dependencies(say: Say = print) -> List[str]:
    """Import every runtime package; returns the distributions that are missing"""
    say('\n📚 Checking dependencies...')
    missing = []

    for module_name, distribution in REQUIRED_PACKAGES.items():
        try:
            importlib.import_module(module_name)
        except ImportError:
            missing.append(distribution)
            say(f'   ❌ {distribution} - please run: pip install {distribution}')
        else:
            say(f'   ✅ {distribution}')

    return missing


def main(root: Optional[Path] = None, say: Say = print) -> int:
    root = Path(root) if root else Path.cwd()

    say('🚀 Setting up YouTube Summarizer...\n')

    create_directories(root, say)
    ensure_env_file(root, say)
    tool_found = check_subtitle_tool(say)
    missing = check_dependencies(say)

    say('\n' + '=' * 50)
    say('🎉 SETUP COMPLETE!' if tool_found and not missing else '⚠️  SETUP FINISHED WITH WARNINGS')
    say('=' * 50)

    say('\n🚀 Next steps:')
    say('   1. Configure your API keys in .env')
    say('   2. Run: pip install -e . (if not done already)')
    say('   3. Test with: python main.py <youtube_url>')

    say('\n📖 Available commands:')
    say('   python main.py <url>                    - Process a YouTube video')
    say('   python main.py <url> --transcript-only  - Save the transcript without a summary')
    say('   python manual_transcript_helper.py      - Add manual transcripts')
    say('   python list_outputs.py                  - View generated files')

    return 0


if __name__ == "__main__":
    sys.exit(main())
