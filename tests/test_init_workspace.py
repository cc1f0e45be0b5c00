"""
Tests for workspace initialization.
"""

from unittest.mock import patch

import pytest

from config import config
from init_workspace import (
    ENV_TEMPLATE,
    check_api_keys,
    check_dependencies,
    check_subtitle_tool,
    create_directories,
    ensure_env_file,
    main,
)


@pytest.fixture
def relative_dirs(monkeypatch):
    monkeypatch.setattr(config, "output_dir", "outputs")
    monkeypatch.setattr(config, "work_dir", "transcripts")


def test_create_directories(tmp_path, relative_dirs):
    created = create_directories(tmp_path, say=lambda *a: None)

    expected = ["outputs", "outputs/transcripts", "outputs/summaries",
                "outputs/reports", "outputs/samples", "transcripts"]
    assert [str(p.relative_to(tmp_path)) for p in created] == expected
    for name in expected:
        assert (tmp_path / name / ".gitkeep").is_file()


def test_create_directories_is_idempotent(tmp_path, relative_dirs):
    create_directories(tmp_path, say=lambda *a: None)
    output = []

    assert create_directories(tmp_path, say=output.append) == []
    assert any("Already exists: outputs/" in line for line in output)


def test_ensure_env_file_writes_template(tmp_path):
    assert ensure_env_file(tmp_path, say=lambda *a: None) is None
    assert (tmp_path / ".env").read_text(encoding="utf-8") == ENV_TEMPLATE


def test_ensure_env_file_reports_keys(tmp_path):
    (tmp_path / ".env").write_text(
        "GEMINI_API_KEY=abc123\nDEEPGRAM_API_KEY=your_deepgram_api_key_here\nOPENAI_API_KEY=\n",
        encoding="utf-8"
    )

    status = ensure_env_file(tmp_path, say=lambda *a: None)

    assert status == {"GEMINI_API_KEY": True, "DEEPGRAM_API_KEY": False, "OPENAI_API_KEY": False}


def test_check_api_keys_required_missing():
    output = []
    status = check_api_keys({}, say=output.append)

    assert status["GEMINI_API_KEY"] is False
    assert any("GEMINI_API_KEY needs to be configured" in line for line in output)


def test_check_subtitle_tool():
    with patch("init_workspace.shutil.which", return_value="/usr/local/bin/yt-dlp"):
        assert check_subtitle_tool(say=lambda *a: None) is True
    with patch("init_workspace.shutil.which", return_value=None):
        assert check_subtitle_tool(say=lambda *a: None) is False


def test_check_dependencies_reports_missing():
    def fake_import(name):
        if name == "deepgram":
            raise ImportError("No module named 'deepgram'")

    with patch("init_workspace.importlib.import_module", side_effect=fake_import):
        assert check_dependencies(say=lambda *a: None) == ["deepgram-sdk"]


def test_main(tmp_path, relative_dirs):
    output = []
    with patch("init_workspace.shutil.which", return_value="/usr/local/bin/yt-dlp"):
        assert main(root=tmp_path, say=output.append) == 0

    assert (tmp_path / ".env").exists()
    assert (tmp_path / "outputs" / "reports").is_dir()
    assert any("Next steps" in line for line in output)
