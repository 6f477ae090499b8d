from __future__ import annotations

import json

import pytest

from filekeeper_pkg.errors import ConfigError
from filekeeper_pkg.utils.config import DEFAULT_CONFIG, load_config


def test_missing_file_gives_defaults(tmp_path) -> None:
    assert load_config(tmp_path) == DEFAULT_CONFIG


def test_values_override_defaults(tmp_path) -> None:
    (tmp_path / "config.json").write_text(
        json.dumps({"target_org_alias": "UAT", "dedupe_sibling_links": True, "cli_timeout_seconds": 30})
    )

    config = load_config(tmp_path)

    assert config["target_org_alias"] == "UAT"
    assert config["dedupe_sibling_links"] is True
    assert config["cli_timeout_seconds"] == 30
    assert config["allowed_sobjects"] == ["Account", "Contact", "Lead"]


def test_legacy_sandbox_alias_key(tmp_path) -> None:
    (tmp_path / "config.json").write_text(json.dumps({"target_sandbox_alias": "KBRILL2"}))

    assert load_config(tmp_path)["target_org_alias"] == "KBRILL2"


@pytest.mark.parametrize(
    "payload",
    [
        {"dedupe_sibling_links": "yes"},
        {"cli_timeout_seconds": True},
        {"cli_timeout_seconds": 0},
        {"allowed_sobjects": "Account"},
    ],
)
def test_wrong_types_raise(tmp_path, payload) -> None:
    (tmp_path / "config.json").write_text(json.dumps(payload))

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_invalid_json_raises(tmp_path) -> None:
    (tmp_path / "config.json").write_text("{not json")

    with pytest.raises(ConfigError, match="not valid JSON"):
        load_config(tmp_path)
