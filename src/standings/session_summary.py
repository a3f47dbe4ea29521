"""Session-level facts for the standings consumer.

iRacing overloads several fields with sentinels: SessionLaps uses 32767 for
"unlimited", SessionTimeRemain uses one week for untimed sessions and
CarIdxF2Time adds one artificial hour per lap a car is down. The helpers here
turn those into explicit markers so nothing downstream shows a raw sentinel.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from standings.irsdk.sessioninfo_parser import normalize_session_type
from standings.models import CarRecord, _to_float_or_none, _to_int_or_none, round_half_up

UNLIMITED = "unlimited"
NOT_APPLICABLE = "n/a"
UNKNOWN_SESSION = "Unknown"

UNLIMITED_LAPS_SENTINEL = 32767
UNTIMED_SESSION_SECONDS = 604800.0
LAPPED_GAP_SECONDS = 3600.0

# irsdk SessionFlags bits.
FLAG_CHECKERED = 0x00000001
FLAG_WHITE = 0x00000002
FLAG_GREEN = 0x00000004
FLAG_YELLOW = 0x00000008
FLAG_RED = 0x00000010
FLAG_YELLOW_WAVING = 0x00000100
FLAG_ONE_LAP_TO_GREEN = 0x00000200
FLAG_GREEN_HELD = 0x00000400
FLAG_CAUTION = 0x00004000
FLAG_CAUTION_WAVING = 0x00008000
FLAG_START_GO = 0x80000000

CONDITION_FINISH = "checkered"
CONDITION_STOPPED = "red"
CONDITION_CAUTION = "caution"
CONDITION_ONE_LAP_TO_GREEN = "one_lap_to_green"
CONDITION_FINAL_LAP = "white"
CONDITION_GREEN = "green"
CONDITION_NONE = "none"

# Highest priority first; the first tier with any bit set wins.
FLAG_PRIORITY: tuple[tuple[str, int], ...] = (
    (CONDITION_FINISH, FLAG_CHECKERED),
    (CONDITION_STOPPED, FLAG_RED),
    (CONDITION_CAUTION, FLAG_CAUTION | FLAG_CAUTION_WAVING | FLAG_YELLOW | FLAG_YELLOW_WAVING),
    (CONDITION_ONE_LAP_TO_GREEN, FLAG_ONE_LAP_TO_GREEN),
    (CONDITION_FINAL_LAP, FLAG_WHITE),
    (CONDITION_GREEN, FLAG_GREEN | FLAG_GREEN_HELD | FLAG_START_GO),
)

GAP_LEADER = "leader"
GAP_LAPPED = "lapped"
GAP_TIME = "time"
GAP_NONE = "none"


@dataclass(frozen=True)
class GapValue:
    kind: str
    seconds: float | None = None
    laps_down: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "seconds": self.seconds, "laps_down": self.laps_down}


@dataclass
class SessionSummary:
    session_num: int | None = None
    session_type: str = UNKNOWN_SESSION
    session_kind: str = "unknown"
    lap_limit: int | str = UNLIMITED
    time_remaining: float | str = NOT_APPLICABLE
    flag: str = CONDITION_NONE
    flag_bits: int = 0
    player_lap: int | None = None
    car_count: int = 0
    multi_class: bool = False
    player_sr_delta: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_num": self.session_num,
            "session_type": str(self.session_type),
            "session_kind": str(self.session_kind),
            "lap_limit": self.lap_limit,
            "time_remaining": self.time_remaining,
            "flag": str(self.flag),
            "flag_bits": int(self.flag_bits),
            "player_lap": self.player_lap,
            "car_count": int(self.car_count),
            "multi_class": bool(self.multi_class),
            "player_sr_delta": self.player_sr_delta,
        }


def select_session(sessions: Sequence[Any], session_num: int | None) -> dict[str, Any] | None:
    """Return the active session record, else the first one, else ``None``."""
    if not sessions:
        return None
    if session_num is not None and 0 <= session_num < len(sessions):
        item = sessions[session_num]
        if isinstance(item, dict):
            return item
    first = sessions[0]
    return first if isinstance(first, dict) else None


def session_label(session: Mapping[str, Any] | None) -> str:
    if not session:
        return UNKNOWN_SESSION
    raw = session.get("SessionType")
    text = str(raw).strip() if raw is not None else ""
    return text or UNKNOWN_SESSION


def interpret_lap_limit(raw: Any) -> int | str:
    if raw is None or isinstance(raw, bool):
        return UNLIMITED
    laps = _to_int_or_none(str(raw).strip())
    if laps is None or laps <= 0 or laps >= UNLIMITED_LAPS_SENTINEL:
        # Covers 32767, "32767" and the literal "unlimited" from the YAML.
        return UNLIMITED
    return laps


def interpret_time_remaining(raw: Any) -> float | str:
    seconds = _to_float_or_none(raw)
    if seconds is None or seconds <= 0 or seconds >= UNTIMED_SESSION_SECONDS:
        return NOT_APPLICABLE
    return seconds


def resolve_flag(bits: int | None) -> str:
    mask = int(bits or 0) & 0xFFFFFFFF
    for condition, tier_bits in FLAG_PRIORITY:
        if mask & tier_bits:
            return condition
    return CONDITION_NONE


def interpret_gap(gap: float | None, position: int | None) -> GapValue:
    if position == 1:
        return GapValue(kind=GAP_LEADER)
    if gap is None or gap < 0:
        return GapValue(kind=GAP_NONE)
    if gap >= LAPPED_GAP_SECONDS:
        return GapValue(kind=GAP_LAPPED, laps_down=round_half_up(gap / LAPPED_GAP_SECONDS))
    return GapValue(kind=GAP_TIME, seconds=float(gap))


def summarize_session(
    telemetry: Mapping[str, Any],
    sessions: Sequence[Any],
    cars: Sequence[CarRecord],
    *,
    multi_class: bool = False,
    player_sr_delta: float | None = None,
) -> SessionSummary:
    session_num = _to_int_or_none(telemetry.get("SessionNum"))
    session = select_session(sessions, session_num if session_num is not None else 0)
    label = session_label(session)
    # The SDK reports SessionFlags as a signed int32; start_go sets the sign bit.
    flag_bits = int(_to_int_or_none(telemetry.get("SessionFlags")) or 0) & 0xFFFFFFFF
    return SessionSummary(
        session_num=session_num,
        session_type=label,
        session_kind=normalize_session_type(label),
        lap_limit=interpret_lap_limit(session.get("SessionLaps") if session else None),
        time_remaining=interpret_time_remaining(telemetry.get("SessionTimeRemain")),
        flag=resolve_flag(flag_bits),
        flag_bits=flag_bits,
        player_lap=_to_int_or_none(telemetry.get("Lap")),
        car_count=len(cars),
        multi_class=multi_class,
        player_sr_delta=player_sr_delta,
    )
