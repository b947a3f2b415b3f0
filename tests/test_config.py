"""Tests for assetgc.config."""

import pytest

from assetgc.config import SweepConfig


def test_defaults() -> None:
    config = SweepConfig()
    assert config.namespace == "global"
    assert config.partition == "app-chat"
    assert config.dry_run is False


def test_rejects_empty_scope() -> None:
    with pytest.raises(ValueError, match="namespace"):
        SweepConfig(namespace="")
    with pytest.raises(ValueError, match="partition"):
        SweepConfig(partition="")


def test_is_frozen() -> None:
    config = SweepConfig()
    with pytest.raises(AttributeError):
        config.partition = "other"  # type: ignore[misc]


def test_dict_round_trip() -> None:
    config = SweepConfig(namespace="tenant", partition="scratch", dry_run=True)
    assert SweepConfig.from_dict(config.to_dict()) == config


def test_from_dict_fills_defaults() -> None:
    assert SweepConfig.from_dict({}) == SweepConfig()


def test_from_dict_rejects_wrong_types() -> None:
    with pytest.raises(TypeError, match=r"SweepConfig\.dry_run"):
        SweepConfig.from_dict({"dry_run": "yes"})
    with pytest.raises(TypeError, match=r"SweepConfig\.namespace"):
        SweepConfig.from_dict({"namespace": 1})
