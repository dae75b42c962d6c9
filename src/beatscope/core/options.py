"""
Per-channel analysis options.

Values are used as given; range checking belongs to whatever front end
collects them.  Only structural mistakes (unknown channel names) raise.
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Mapping, Optional

from beatscope.core.combiner import CHANNELS


@dataclass(frozen=True)
class ChannelOptions:
    """Detection settings for one channel."""

    enabled: bool = True
    sensitivity: float = 0.5   # 0-1, higher = more detections
    min_interval: float = 0.1  # seconds between detections


DEFAULT_CHANNEL_OPTIONS: Mapping[str, ChannelOptions] = MappingProxyType({
    "kick": ChannelOptions(enabled=True, min_interval=0.12),
    "snare": ChannelOptions(enabled=True, min_interval=0.08),
    "hihat": ChannelOptions(enabled=True, min_interval=0.05),
    "bass": ChannelOptions(enabled=True, min_interval=0.15),
    "melody": ChannelOptions(enabled=True, min_interval=0.10),
    "vocal": ChannelOptions(enabled=False, min_interval=0.15),
})

# Flat key prefixes used by host front ends, e.g. "sensitivityKick"
_FLAT_KEYS = {
    "detect": "enabled",
    "sensitivity": "sensitivity",
    "minInterval": "min_interval",
}


def _check_channel(name: str) -> None:
    if name not in DEFAULT_CHANNEL_OPTIONS:
        raise ValueError(
            f"Unknown channel {name!r}; expected one of {', '.join(CHANNELS)}"
        )


@dataclass(frozen=True)
class AnalysisOptions:
    """Options for every detection channel."""

    channels: Mapping[str, ChannelOptions] = field(
        default_factory=lambda: dict(DEFAULT_CHANNEL_OPTIONS)
    )

    def __post_init__(self):
        merged = dict(DEFAULT_CHANNEL_OPTIONS)
        for name, opts in self.channels.items():
            _check_channel(name)
            merged[name] = opts
        object.__setattr__(self, "channels", MappingProxyType(merged))

    def __getitem__(self, channel: str) -> ChannelOptions:
        _check_channel(channel)
        return self.channels[channel]

    @property
    def enabled_channels(self) -> list[str]:
        """Enabled channel names in canonical order."""
        return [name for name in CHANNELS if self.channels[name].enabled]

    def with_channel(self, channel: str, **changes: Any) -> "AnalysisOptions":
        """Return a copy with one channel's options replaced."""
        _check_channel(channel)
        channels = dict(self.channels)
        channels[channel] = replace(channels[channel], **changes)
        return AnalysisOptions(channels=channels)

    def only(self, *channels: str) -> "AnalysisOptions":
        """Return a copy with exactly *channels* enabled."""
        for name in channels:
            _check_channel(name)
        return AnalysisOptions(channels={
            name: replace(opts, enabled=name in channels)
            for name, opts in self.channels.items()
        })

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]] = None) -> "AnalysisOptions":
        """
        Build options from a plain mapping.

        Accepts nested entries (``{"kick": {"sensitivity": 0.7}}``) and the
        flat host style (``{"detectKick": True, "sensitivityKick": 0.7,
        "minIntervalKick": 0.1}``).  Missing values keep their defaults.

        Raises:
            ValueError: For keys naming an unknown channel or setting.
        """
        overrides: dict[str, dict[str, Any]] = {}
        for key, value in (data or {}).items():
            if isinstance(value, Mapping):
                _check_channel(key)
                for setting, v in value.items():
                    if setting not in ChannelOptions.__dataclass_fields__:
                        raise ValueError(f"Unknown option {setting!r} for channel {key!r}")
                    overrides.setdefault(key, {})[setting] = v
                continue

            for prefix, setting in _FLAT_KEYS.items():
                if key.startswith(prefix) and key[len(prefix):]:
                    channel = key[len(prefix):].lower()
                    _check_channel(channel)
                    overrides.setdefault(channel, {})[setting] = value
                    break
            else:
                raise ValueError(f"Unrecognised analysis option {key!r}")

        channels = {
            name: replace(opts, **overrides.get(name, {}))
            for name, opts in DEFAULT_CHANNEL_OPTIONS.items()
        }
        return cls(channels=channels)

    def to_dict(self) -> dict[str, dict[str, Any]]:
        return {
            name: {
                "enabled": opts.enabled,
                "sensitivity": opts.sensitivity,
                "min_interval": opts.min_interval,
            }
            for name, opts in self.channels.items()
        }
