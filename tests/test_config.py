import pytest
from pathlib import Path
from pydantic import ValidationError

from paper_stage.config import Config, IncrementalConfig, SaveConfig

def test_default_config():
    config = Config()
    assert config.incremental.min_start_percentage == 50
    assert config.incremental.enable_background_generation is True
    assert config.incremental.background_task_delay == 1000
    assert config.incremental.max_concurrent_tasks == 2
    assert config.incremental.enable_waiting_dialogues is True
    assert config.incremental.retry_failed_segments is True
    assert config.incremental.max_retry_attempts == 3
    assert config.saves.save_slot_count == 10
    assert config.saves.auto_save_interval == 10
    assert config.saves.storage_prefix == "paper_game_"
    assert config.log_level == "INFO"

def test_config_from_yaml(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("""
incremental:
  min_start_percentage: 70
  background_task_delay: 0
saves:
  save_slot_count: 3
  storage_dir: custom/saves
""")

    config = Config.from_yaml(config_file)
    assert config.incremental.min_start_percentage == 70
    assert config.incremental.background_task_delay == 0
    assert config.incremental.max_retry_attempts == 3
    assert config.saves.save_slot_count == 3
    assert config.saves.storage_dir == Path("custom/saves")

def test_empty_yaml_gives_defaults(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("")

    config = Config.from_yaml(config_file)
    assert config == Config()

@pytest.mark.parametrize("kwargs", [
    {"min_start_percentage": 101},
    {"min_start_percentage": -1},
    {"background_task_delay": -5},
    {"max_retry_attempts": 0},
    {"max_concurrent_tasks": 0},
])
def test_incremental_validation(kwargs):
    with pytest.raises(ValidationError):
        IncrementalConfig(**kwargs)

def test_save_config_validation():
    with pytest.raises(ValidationError):
        Config(saves=SaveConfig(save_slot_count=0))

def test_config_to_yaml(tmp_path):
    config = Config(
        incremental=IncrementalConfig(min_start_percentage=80),
        saves=SaveConfig(storage_dir=tmp_path / "saves"),
    )
    output_file = tmp_path / "output.yaml"

    config.to_yaml(output_file)

    assert output_file.exists()
    loaded_config = Config.from_yaml(output_file)
    assert loaded_config.incremental.min_start_percentage == 80
    assert loaded_config.saves.storage_dir == tmp_path / "saves"
