"""
capture_snapshot.py: grab one telemetry + session-info snapshot from iRacing.

Usage:
    python tools/capture_snapshot.py <path/to/snapshot.json>

Connects through the SDK, reads the standings channels and the session-info
YAML once, and writes them as {"telemetry": ..., "session_info": ...}. The file
can be replayed with `iwas-standings --snapshot <path>`.
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
import sys
from typing import Any

from standings.irsdk.channels import REQUESTED_CHANNELS
from standings.irsdk.irsdk_client import IRSDKClient


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Capture one iRacing telemetry/session-info snapshot for offline standings runs.",
    )
    parser.add_argument("out_path", help="Where to write the snapshot JSON")
    return parser.parse_args(argv)


def capture(client: IRSDKClient) -> dict[str, Any] | None:
    if not client.connect():
        return None
    try:
        sample = client.read_telemetry(REQUESTED_CHANNELS)
        session_info = client.get_session_info()
    finally:
        client.disconnect()
    if sample is None:
        return None
    return {"telemetry": sample.get("raw") or {}, "session_info": session_info}


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    out_path = Path(args.out_path).expanduser().resolve()

    snapshot = capture(IRSDKClient())
    if snapshot is None:
        print("ERROR: iRacing is not running or no telemetry is available.", file=sys.stderr)
        return 1
    if snapshot["session_info"] is None:
        print("[WARN] session info unavailable; the snapshot will replay as 'waiting'.", file=sys.stderr)

    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(snapshot, indent=2, ensure_ascii=False, default=str), encoding="utf-8")
    cars = snapshot["telemetry"].get("CarIdxLapDistPct") or []
    print(f"  wrote {out_path} ({sum(1 for v in cars if v is not None)} car slots with lap distance)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
