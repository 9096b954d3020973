"""
Rules loader tests.

Verifies that rules.yaml loads, and that malformed files are rejected
with FileNotFoundError or ValueError.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml

from news_engine.rules.loader import load_rules
from news_engine.rules.models import Rules


@pytest.fixture
def project_root() -> Path:
    return Path(__file__).parent.parent.parent


@pytest.fixture
def valid_rules_dict(project_root: Path) -> dict[str, Any]:
    with open(project_root / "rules.yaml") as f:
        return yaml.safe_load(f)


def write_rules(tmp_path: Path, data: Any, name: str = "rules.yaml") -> Path:
    path = tmp_path / name
    with open(path, "w") as f:
        yaml.dump(data, f)
    return path


class TestRulesLoading:
    def test_load_actual_rules_file(self, project_root: Path) -> None:
        rules = load_rules(project_root / "rules.yaml")
        assert isinstance(rules, Rules)
        assert rules.permissions.publisher_group == "/platform/web-contributors"
        assert rules.lifecycle.root_page_name == "Articles"
        assert set(rules.deletion.queues) == {"articles", "targets"}

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_rules(tmp_path / "nope.yaml")

    def test_invalid_yaml_raises_value_error(self, tmp_path: Path) -> None:
        path = tmp_path / "rules.yaml"
        path.write_text("project: [unclosed")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_rules(path)

    def test_non_mapping_rejected(self, tmp_path: Path) -> None:
        path = write_rules(tmp_path, ["a", "b"])
        with pytest.raises(ValueError, match="mapping"):
            load_rules(path)

    def test_fenced_yaml_block_is_extracted(
        self, tmp_path: Path, valid_rules_dict: dict[str, Any]
    ) -> None:
        path = tmp_path / "rules.md"
        path.write_text("# Rules\n\n```yaml\n" + yaml.dump(valid_rules_dict) + "```\ntrailing")
        rules = load_rules(path)
        assert rules.project.slug == valid_rules_dict["project"]["slug"]


class TestRulesValidation:
    def test_missing_delete_queue_rejected(
        self, tmp_path: Path, valid_rules_dict: dict[str, Any]
    ) -> None:
        del valid_rules_dict["deletion"]["queues"]["targets"]
        with pytest.raises(ValueError, match="targets"):
            load_rules(write_rules(tmp_path, valid_rules_dict))

    def test_pool_size_must_be_positive(
        self, tmp_path: Path, valid_rules_dict: dict[str, Any]
    ) -> None:
        valid_rules_dict["deletion"]["queues"]["articles"]["pool_size"] = 0
        with pytest.raises(ValueError, match="validation failed"):
            load_rules(write_rules(tmp_path, valid_rules_dict))

    def test_unknown_audience_rejected(
        self, tmp_path: Path, valid_rules_dict: dict[str, Any]
    ) -> None:
        valid_rules_dict["lifecycle"]["default_audience"] = "everyone"
        with pytest.raises(ValueError):
            load_rules(write_rules(tmp_path, valid_rules_dict))

    def test_optional_sections_default(
        self, tmp_path: Path, valid_rules_dict: dict[str, Any]
    ) -> None:
        for section in ("indexing", "logging", "ops"):
            valid_rules_dict.pop(section)
        rules = load_rules(write_rules(tmp_path, valid_rules_dict))
        assert rules.indexing.article_type == "news"
        assert rules.logging.level == "INFO"
        assert rules.ops.required_env == []
