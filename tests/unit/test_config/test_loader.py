"""Unit tests for the engine configuration loader."""

import hashlib
import json
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from src.config.loader import ConfigLoader
from src.config.schemas.base import SortMode
from src.config.state_machine import ConfigState, ConfigStateError, ConfigStateMachine


_VALID_YAML = """\
version: "1.0"
sort: latest20
cap: 10
scoring:
  strategy: age_forward
categories:
  - category: Politics
    search_pattern: "senate|election"
    badge: politics_badge
sources:
  - owner_screen_name: nytimes
    slug: world-news
    rules:
      default: exclude all
      custom:
        - where: source
          contains: "times"
          action: force include
  - owner_screen_name: verge
    slug: tech
    enabled: false
"""


def _write(tmp_path: Path, content: str, name: str = "headlines.yaml") -> Path:
    """Write a config file and return its path."""
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


class TestConfigLoader:
    """Tests for ConfigLoader."""

    @pytest.mark.unit
    def test_load_valid_config(self, tmp_path: Path) -> None:
        """A valid file loads and the loader ends READY."""
        path = _write(tmp_path, _VALID_YAML)
        loader = ConfigLoader(run_id="test")

        config = loader.load(path)

        assert loader.state == ConfigState.READY
        assert loader.config is config
        assert config.sort == SortMode.LATEST
        assert config.cap == 10
        assert len(config.sources) == 2
        assert config.sources[0].custom_rules[0].where.value == "source_name"
        assert loader.validation_errors == []

    @pytest.mark.unit
    def test_records_checksum(self, tmp_path: Path) -> None:
        """The SHA-256 of the file bytes is recorded."""
        path = _write(tmp_path, _VALID_YAML)
        loader = ConfigLoader(run_id="test")

        loader.load(path)

        assert loader.file_checksum == hashlib.sha256(path.read_bytes()).hexdigest()

    @pytest.mark.unit
    def test_json_is_accepted(self, tmp_path: Path) -> None:
        """JSON files load through the YAML parser."""
        data = {"sources": [{"owner_screen_name": "a", "slug": "b"}]}
        path = _write(tmp_path, json.dumps(data), name="headlines.json")

        config = ConfigLoader(run_id="test").load(path)

        assert config.sources[0].id == "a/b"

    @pytest.mark.unit
    def test_validation_error_recorded(self, tmp_path: Path) -> None:
        """Schema errors are recorded with their location and re-raised."""
        content = "sources:\n  - owner_screen_name: a\n    slug: b\ncap: 0\n"
        path = _write(tmp_path, content)
        loader = ConfigLoader(run_id="test")

        with pytest.raises(ValidationError):
            loader.load(path)

        assert loader.state == ConfigState.FAILED
        assert loader.validation_errors[0]["loc"] == "cap"
        assert loader.validation_errors[0]["type"] == "greater_than_equal"

    @pytest.mark.unit
    def test_empty_file_reports_missing_sources(self, tmp_path: Path) -> None:
        """An empty file is validated as an empty mapping."""
        path = _write(tmp_path, "")
        loader = ConfigLoader(run_id="test")

        with pytest.raises(ValidationError):
            loader.load(path)

        assert loader.validation_errors[0]["loc"] == "sources"
        assert loader.validation_errors[0]["type"] == "missing"

    @pytest.mark.unit
    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file is recorded as file_not_found."""
        loader = ConfigLoader(run_id="test")

        with pytest.raises(FileNotFoundError):
            loader.load(tmp_path / "absent.yaml")

        assert loader.state == ConfigState.FAILED
        assert loader.validation_errors[0]["type"] == "file_not_found"

    @pytest.mark.unit
    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """Unparsable YAML is recorded as yaml_parse_error."""
        path = _write(tmp_path, "sources: [unclosed\n")
        loader = ConfigLoader(run_id="test")

        with pytest.raises(yaml.YAMLError):
            loader.load(path)

        assert loader.validation_errors[0]["type"] == "yaml_parse_error"

    @pytest.mark.unit
    def test_reload_after_failure(self, tmp_path: Path) -> None:
        """A failed loader can load again once the file is fixed."""
        path = _write(tmp_path, "cap: [")
        loader = ConfigLoader(run_id="test")
        with pytest.raises(yaml.YAMLError):
            loader.load(path)

        path.write_text(_VALID_YAML, encoding="utf-8")
        loader.load(path)

        assert loader.state == ConfigState.READY
        assert loader.validation_errors == []

    @pytest.mark.unit
    def test_validation_summary(self, tmp_path: Path) -> None:
        """The summary describes the loaded configuration."""
        loader = ConfigLoader(run_id="test")
        loader.load(_write(tmp_path, _VALID_YAML))

        summary = json.loads(loader.get_validation_summary_json())

        assert summary["state"] == "READY"
        assert summary["sources_count"] == 2
        assert summary["enabled_sources_count"] == 1
        assert summary["categories"] == ["News", "Politics"]
        assert summary["sort"] == "latest"
        assert summary["scoring_strategy"] == "age_forward"


class TestConfigStateMachine:
    """Tests for the config load state machine."""

    @pytest.mark.unit
    def test_cannot_skip_loading(self) -> None:
        """UNLOADED -> READY is invalid."""
        machine = ConfigStateMachine(run_id="test")

        with pytest.raises(ConfigStateError):
            machine.transition(ConfigState.READY)

    @pytest.mark.unit
    def test_happy_path(self) -> None:
        """UNLOADED -> LOADING -> VALIDATED -> READY."""
        machine = ConfigStateMachine(run_id="test")

        machine.transition(ConfigState.LOADING)
        machine.transition(ConfigState.VALIDATED)
        machine.transition(ConfigState.READY)

        assert machine.is_ready()
