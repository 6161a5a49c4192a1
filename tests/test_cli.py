import pytest
from click.testing import CliRunner
from rich.console import Console
import json

from paper_stage.cli import cli
from paper_stage.config import Config

PAPER = """# Attention Is All You Need

We propose a new simple network architecture, the Transformer.

## 1 Introduction

{intro}

## 2 Methods

{methods}

## 3 Results

{results}
"""

@pytest.fixture
def runner(monkeypatch):
    # Wide console so table cells are not folded
    monkeypatch.setattr("paper_stage.cli.console", Console(width=200))
    return CliRunner()

@pytest.fixture
def sample_config(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(f"""
incremental:
  background_task_delay: 0
saves:
  storage_dir: {tmp_path / "saves"}
log_level: WARNING
""")
    return config_file

@pytest.fixture
def paper(tmp_path):
    path = tmp_path / "paper.md"
    path.write_text(PAPER.format(
        intro="Attention matters a great deal. " * 60,
        methods="We stack encoder layers carefully. " * 90,
        results="The model beats every baseline. " * 120,
    ), encoding="utf-8")
    return path

def test_cli_help(runner):
    result = runner.invoke(cli, ['--help'])
    assert result.exit_code == 0
    assert 'segment' in result.output
    assert 'generate' in result.output
    assert 'saves' in result.output

def test_segment_command(runner, sample_config, paper):
    result = runner.invoke(cli, ['-c', str(sample_config), 'segment', str(paper)])

    assert result.exit_code == 0
    assert 'segment_intro' in result.output
    assert 'segment_methods' in result.output
    assert 'segment_results' in result.output
    assert 'Before-playback coverage' in result.output

def test_segment_unsupported_file(runner, sample_config, tmp_path):
    path = tmp_path / "paper.docx"
    path.write_bytes(b"")

    result = runner.invoke(cli, ['-c', str(sample_config), 'segment', str(path)])

    assert result.exit_code != 0
    assert 'Unsupported file extension' in result.output

def test_generate_command(runner, sample_config, paper, tmp_path):
    output = tmp_path / "out" / "script.json"

    result = runner.invoke(cli, [
        '-c', str(sample_config), 'generate', str(paper),
        '-o', str(output), '-l', 'en', '--document-id', 'attention',
    ])

    assert result.exit_code == 0, result.output
    data = json.loads(output.read_text(encoding="utf-8"))
    assert data["metadata"]["title"]["en"] == "Attention Is All You Need - Game Script"
    assert data["metadata"]["primary_language"] == "en"
    segment_ids = [scene["segment_id"] for scene in data["scenes"]]
    assert segment_ids[0] == "segment_intro"
    assert "segment_results" in segment_ids
    assert segment_ids.index("segment_methods") < segment_ids.index("segment_results")

    config = Config.from_yaml(sample_config)
    saved = json.loads((config.saves.storage_dir / "paper_game_attention.json").read_text(encoding="utf-8"))
    assert saved["document_title"]["en"] == "Attention Is All You Need"
    assert set(saved["game_progress"]["available_segments"]) == {
        "segment_intro", "segment_methods", "segment_results"
    }
    assert saved["generation_progress"]["overall_progress"] == 100

def test_generate_without_background(runner, sample_config, paper, tmp_path):
    output = tmp_path / "script.json"

    result = runner.invoke(cli, [
        '-c', str(sample_config), 'generate', str(paper), '-o', str(output), '--no-background',
    ])

    assert result.exit_code == 0, result.output
    data = json.loads(output.read_text(encoding="utf-8"))
    segment_ids = {scene["segment_id"] for scene in data["scenes"]}
    assert "segment_results" not in segment_ids
    assert "segment_intro" in segment_ids

def test_generate_default_output_path(runner, sample_config, paper):
    result = runner.invoke(cli, ['-c', str(sample_config), 'generate', str(paper)])

    assert result.exit_code == 0, result.output
    assert paper.with_suffix(".script.json").exists()

def test_saves_commands(runner, sample_config, paper, tmp_path):
    runner.invoke(cli, [
        '-c', str(sample_config), 'generate', str(paper),
        '-o', str(tmp_path / "script.json"), '--document-id', 'attention',
    ])

    listed = runner.invoke(cli, ['-c', str(sample_config), 'saves', 'list'])
    assert listed.exit_code == 0
    assert 'attention' in listed.output
    assert '1 instances' in listed.output

    shown = runner.invoke(cli, ['-c', str(sample_config), 'saves', 'show', 'attention'])
    assert shown.exit_code == 0
    assert 'Available:' in shown.output
    assert 'quick' in shown.output

    deleted = runner.invoke(cli, ['-c', str(sample_config), 'saves', 'delete', 'attention', '--yes'])
    assert deleted.exit_code == 0

    listed = runner.invoke(cli, ['-c', str(sample_config), 'saves', 'list'])
    assert '0 instances' in listed.output

def test_saves_show_unknown(runner, sample_config):
    result = runner.invoke(cli, ['-c', str(sample_config), 'saves', 'show', 'missing'])

    assert result.exit_code != 0
    assert 'Game instance not found: missing' in result.output
