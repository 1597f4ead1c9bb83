"""Tests for configuration loading and schema validation."""

from pathlib import Path
from typing import Any

import pytest
import yaml
from pydantic import ValidationError

from pmtriage.config import CONFIG_PATH_ENV, get_config_path, load_config, validate_config_file
from pmtriage.config_schema import AppConfig, LinkingConfig, ScoringConfig, SourcesConfig
from pmtriage.core.errors import ConfigLoadError, ConfigValidationError


class TestSchemaDefaults:
    """Tests for AppConfig defaults."""

    def test_empty_config_uses_defaults(self) -> None:
        config = AppConfig()
        assert config.scoring.keyword_points == 100
        assert config.scoring.sender_points == 200
        assert config.scoring.priority_base == 10
        assert config.scoring.default_priority == 999
        assert config.scoring.clamp_priority_bonus is False
        assert config.scoring.default_parent_id == "Random"
        assert config.linking.reply_weight == 1000
        assert config.linking.reply_position_step == 10
        assert config.linking.message_id_weight == 500
        assert config.linking.thread_weight == 100
        assert config.sources.closed_statuses == ["Closed"]

    def test_config_is_immutable(self, sample_config: AppConfig) -> None:
        with pytest.raises(ValidationError):
            sample_config.scoring.keyword_points = 5


class TestSchemaValidation:
    """Tests for field validators."""

    def test_link_weights_must_be_ordered(self) -> None:
        with pytest.raises(ValidationError, match="reply_weight > message_id_weight"):
            LinkingConfig(reply_weight=400, message_id_weight=500)

    def test_blank_default_parent_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ScoringConfig(default_parent_id="  ")

    def test_source_path_traversal_rejected(self) -> None:
        with pytest.raises(ValidationError, match="path traversal"):
            SourcesConfig(rules_path="../secrets.csv")

    def test_negative_points_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ScoringConfig(keyword_points=-1)


class TestLoadConfig:
    """Tests for load_config()."""

    def test_loads_valid_file(self, config_file: Path) -> None:
        config = load_config(config_file)
        assert config.schema_version == 1
        assert config.sources.closed_statuses == ["Closed", "Done"]

    def test_env_var_selects_path(self, config_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(CONFIG_PATH_ENV, str(config_file))
        assert get_config_path() == config_file
        assert load_config().sources.closed_statuses == ["Closed", "Done"]

    def test_default_path(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
        assert get_config_path() == Path("config/config.yaml")

    def test_empty_file_is_valid(self, temp_config_dir: Path) -> None:
        path = temp_config_dir / "config.yaml"
        path.write_text("")
        assert load_config(path) == AppConfig()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigLoadError, match="not found"):
            load_config(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, temp_config_dir: Path) -> None:
        path = temp_config_dir / "config.yaml"
        path.write_text("scoring: [unclosed")
        with pytest.raises(ConfigLoadError, match="Failed to parse YAML"):
            load_config(path)

    def test_non_mapping(self, temp_config_dir: Path) -> None:
        path = temp_config_dir / "config.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigLoadError, match="must be a YAML mapping"):
            load_config(path)

    def test_invalid_field_reports_path(
        self, temp_config_dir: Path, sample_config_dict: dict[str, Any]
    ) -> None:
        sample_config_dict["scoring"]["keyword_points"] = "lots"
        path = temp_config_dir / "config.yaml"
        path.write_text(yaml.dump(sample_config_dict))
        with pytest.raises(ConfigValidationError, match="scoring.keyword_points"):
            load_config(path)

    def test_newer_schema_version_rejected(self, temp_config_dir: Path) -> None:
        path = temp_config_dir / "config.yaml"
        path.write_text("schema_version: 99\n")
        with pytest.raises(ConfigValidationError, match="newer than supported"):
            load_config(path)


class TestValidateConfigFile:
    """Tests for validate_config_file()."""

    def test_valid(self, config_file: Path) -> None:
        is_valid, message = validate_config_file(config_file)
        assert is_valid
        assert "schema version 1" in message
        assert "data/rules.csv" in message

    def test_invalid(self, tmp_path: Path) -> None:
        is_valid, message = validate_config_file(tmp_path / "missing.yaml")
        assert not is_valid
        assert message.startswith("Load error")
