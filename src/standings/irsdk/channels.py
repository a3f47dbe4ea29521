from __future__ import annotations

# Telemetry channels read on every poll.
# CarIdx* entries are whole arrays indexed by CarIdx; the rest are scalars.
REQUESTED_CHANNELS: list[str] = [
    # Session / player
    "SessionNum",
    "SessionTimeRemain",
    "SessionFlags",
    "PlayerCarIdx",
    "Lap",
    "PlayerCarMyIncidentCount",
    # Per-car arrays
    "CarIdxPosition",
    "CarIdxClassPosition",
    "CarIdxLap",
    "CarIdxLapDistPct",
    "CarIdxLastLapTime",
    "CarIdxBestLapTime",
    "CarIdxF2Time",
]

# Optional exact aliases per channel; only these names are tried, no fuzzy matching.
REQUESTED_CHANNEL_ALIASES: dict[str, tuple[str, ...]] = {
    # Older SDK builds and some wrappers expose the incident counter under this name.
    "PlayerCarMyIncidentCount": ("PlayerCarMyIncidents",),
}


def channel_names(channel: str) -> tuple[str, ...]:
    return (channel,) + REQUESTED_CHANNEL_ALIASES.get(channel, ())
