"""Tests for per-channel analysis options."""

import pytest

from beatscope.core.options import (
    DEFAULT_CHANNEL_OPTIONS,
    AnalysisOptions,
    ChannelOptions,
)


def test_defaults():
    options = AnalysisOptions()
    assert options.enabled_channels == ["kick", "snare", "hihat", "bass", "melody"]
    assert options["vocal"].enabled is False
    intervals = {name: opts.min_interval for name, opts in options.channels.items()}
    assert intervals == {
        "kick": 0.12, "snare": 0.08, "hihat": 0.05,
        "bass": 0.15, "melody": 0.10, "vocal": 0.15,
    }
    assert all(opts.sensitivity == 0.5 for opts in options.channels.values())


def test_partial_channels_merge_over_defaults():
    options = AnalysisOptions(channels={"kick": ChannelOptions(sensitivity=0.9)})
    assert options["kick"].sensitivity == 0.9
    assert options["snare"] == DEFAULT_CHANNEL_OPTIONS["snare"]


def test_unknown_channel_rejected():
    with pytest.raises(ValueError, match="Unknown channel"):
        AnalysisOptions(channels={"cowbell": ChannelOptions()})
    with pytest.raises(ValueError):
        AnalysisOptions()["cowbell"]


def test_channels_are_read_only():
    options = AnalysisOptions()
    with pytest.raises(TypeError):
        options.channels["kick"] = ChannelOptions()


def test_with_channel_returns_copy():
    base = AnalysisOptions()
    changed = base.with_channel("vocal", enabled=True, sensitivity=0.8)
    assert changed["vocal"] == ChannelOptions(enabled=True, sensitivity=0.8, min_interval=0.15)
    assert base["vocal"].enabled is False


def test_only():
    options = AnalysisOptions().only("kick", "vocal")
    assert options.enabled_channels == ["kick", "vocal"]
    assert options["kick"].min_interval == 0.12


def test_from_dict_flat_keys():
    options = AnalysisOptions.from_dict({
        "detectVocal": True,
        "sensitivityKick": 0.7,
        "minIntervalHihat": 0.03,
        "detectBass": False,
    })
    assert options["vocal"].enabled is True
    assert options["kick"].sensitivity == 0.7
    assert options["hihat"].min_interval == 0.03
    assert "bass" not in options.enabled_channels


def test_from_dict_nested():
    options = AnalysisOptions.from_dict({"snare": {"sensitivity": 0.2, "enabled": False}})
    assert options["snare"] == ChannelOptions(enabled=False, sensitivity=0.2, min_interval=0.08)


def test_from_dict_empty_is_default():
    assert AnalysisOptions.from_dict(None) == AnalysisOptions()
    assert AnalysisOptions.from_dict({}) == AnalysisOptions()


@pytest.mark.parametrize("data", [
    {"detectCowbell": True},
    {"volumeKick": 1.0},
    {"kick": {"threshold": 0.5}},
    {"cowbell": {"enabled": True}},
])
def test_from_dict_rejects_unknown_keys(data):
    with pytest.raises(ValueError):
        AnalysisOptions.from_dict(data)


def test_to_dict_round_trips_through_nested_form():
    options = AnalysisOptions().with_channel("bass", sensitivity=0.3)
    assert AnalysisOptions.from_dict(options.to_dict()) == options
