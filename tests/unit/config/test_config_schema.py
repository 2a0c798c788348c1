"""Config schema defaults, merging and validation issues."""

from __future__ import annotations

import pytest

from hse_field_reports.config.schema import (
    ConfigValidationError,
    ConfigValidationIssue,
    assert_valid_config,
    default_config,
    merge_config,
    migration_guidance,
    validate_config,
)


def test_default_config_is_valid_and_isolated() -> None:
    first = default_config()
    first["images"]["max_dimension"] = 1

    result = validate_config(default_config())

    assert result.is_valid
    assert result.config is not None
    assert result.config["images"]["max_dimension"] == 1280


def test_merge_config_is_deep_and_non_destructive() -> None:
    base = default_config()

    merged = merge_config(base, {"storage": {"backend": "memory"}})

    assert merged["storage"] == {
        "backend": "memory",
        "path": "state/hse.sqlite3",
        "busy_timeout_ms": 5000,
    }
    assert base["storage"]["backend"] == "sqlite"


def test_missing_sections_and_fields_are_reported() -> None:
    config = default_config()
    del config["storage"]["busy_timeout_ms"]
    payload = {key: value for key, value in config.items() if key != "observability"}

    result = validate_config(payload)

    assert result.config is None
    missing = ConfigValidationIssue("storage.busy_timeout_ms", "missing required field")
    assert missing in result.issues
    assert ConfigValidationIssue("observability", "missing required section") in result.issues


@pytest.mark.parametrize(
    ("overlay", "path"),
    [
        ({"storage": {"busy_timeout_ms": -1}}, "storage.busy_timeout_ms"),
        ({"storage": {"busy_timeout_ms": True}}, "storage.busy_timeout_ms"),
        ({"storage": {"path": "  "}}, "storage.path"),
        ({"images": {"max_dimension": 0}}, "images.max_dimension"),
        ({"observability": {"log_format": "xml"}}, "observability.log_format"),
        ({"observability": {"log_level": "LOUD"}}, "observability.log_level"),
        ({"meta": {"schema_version": 2}}, "meta.schema_version"),
        ({"unknown": {}}, "unknown"),
    ],
)
def test_invalid_fields_are_reported_by_path(overlay: dict[str, object], path: str) -> None:
    with pytest.raises(ConfigValidationError) as exc_info:
        assert_valid_config(merge_config(default_config(), overlay))

    assert [issue.path for issue in exc_info.value.issues] == [path]


def test_non_object_root_is_rejected() -> None:
    result = validate_config(["not", "a", "mapping"])

    assert result.issues == (ConfigValidationIssue("<root>", "expected object, got list"),)


def test_migration_guidance_mentions_direction() -> None:
    assert "upgrade hse-field-reports" in migration_guidance(9)
    assert "older" in migration_guidance(0)
    assert migration_guidance(1) == "schema version is current"
