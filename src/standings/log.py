from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any


@dataclass
class Logger:
    """Append-only run log with ``key=value`` lines."""

    log_file: Path
    _last_tick_line: str | None = field(default=None, repr=False)

    def kv(self, key: str, value) -> None:
        line = f"{key}={value}"
        self._write(line)

    def msg(self, text: str) -> None:
        self._write(text)

    def tick(self, payload: dict[str, Any]) -> None:
        # Only write when the headline changes; the display refreshes far more often.
        line = format_tick_line(payload)
        if line == self._last_tick_line:
            return
        self._last_tick_line = line
        self._write(line)

    def _write(self, line: str) -> None:
        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        with self.log_file.open("a", encoding="utf-8") as f:
            f.write(line.rstrip("\n") + "\n")


def format_tick_line(payload: dict[str, Any]) -> str:
    state = str(payload.get("state") or "unknown")
    summary = payload.get("summary")
    if state != "live" or not isinstance(summary, dict):
        return f"tick state={state}"

    cars = payload.get("cars") or []
    leader = cars[0] if cars and isinstance(cars[0], dict) else {}
    parts = [
        f"tick state={state}",
        f"session={summary.get('session_type')}",
        f"lap={summary.get('player_lap')}/{summary.get('lap_limit')}",
        f"flag={summary.get('flag')}",
        f"cars={summary.get('car_count')}",
    ]
    if leader:
        parts.append(f"leader=#{leader.get('car_number')}")
    return " ".join(parts)


def build_log_file_path(project_root: str | Path, name: str = "standings") -> Path:
    root = Path(project_root).resolve()
    ts = datetime.now().strftime("%Y%m%d-%H%M%S")
    return root / "_logs" / f"{ts}_{name}.txt"


def make_logger(project_root: str | Path, name: str = "standings", log_file: Path | None = None) -> Logger:
    if log_file is None:
        env_path = str(os.environ.get("IWAS_STANDINGS_LOG_FILE") or "").strip()
        log_file = Path(env_path) if env_path else build_log_file_path(project_root, name)
    return Logger(log_file=log_file)
