from __future__ import annotations

import logging
import threading
import time
from typing import Any

from standings.irsdk.channels import REQUESTED_CHANNELS
from standings.irsdk.irsdk_client import IRSDKClient


_LOG = logging.getLogger(__name__)


class StandingsService:
    """Keeps the latest telemetry and session info from iRacing.

    Telemetry is polled on a fast cadence and the session-info YAML on a slow
    one. Both are dropped as soon as the SDK disconnects.
    """

    def __init__(
        self,
        client: IRSDKClient | None = None,
        *,
        telemetry_interval_ms: int = 100,
        session_info_interval_ms: int = 1000,
        reconnect_interval_ms: int = 1000,
    ) -> None:
        self._client = client or IRSDKClient()
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._telemetry_interval = self._normalize_interval(telemetry_interval_ms, 100)
        self._session_info_interval = self._normalize_interval(session_info_interval_ms, 1000)
        self._reconnect_interval = self._normalize_interval(reconnect_interval_ms, 1000)
        self._telemetry: dict[str, Any] | None = None
        self._session_info: dict[str, Any] | None = None
        self._telemetry_count = 0
        self._session_info_count = 0
        self._next_session_info_at = 0.0
        self._next_connect_at = 0.0

    @property
    def running(self) -> bool:
        with self._lock:
            thread = self._thread
        return bool(thread is not None and thread.is_alive())

    @property
    def connected(self) -> bool:
        return self._client.is_connected

    @property
    def telemetry_interval_s(self) -> float:
        return self._telemetry_interval

    def get_status(self) -> dict[str, Any]:
        with self._lock:
            return {
                "running": bool(self._thread is not None and self._thread.is_alive()),
                "connected": bool(self._client.is_connected),
                "telemetry_count": int(self._telemetry_count),
                "session_info_count": int(self._session_info_count),
                "has_telemetry": self._telemetry is not None,
                "has_session_info": self._session_info is not None,
            }

    def get_snapshot(self) -> tuple[dict[str, Any] | None, dict[str, Any] | None]:
        """Return shallow copies of the latest telemetry and session info."""
        with self._lock:
            telemetry = dict(self._telemetry) if self._telemetry is not None else None
            session_info = dict(self._session_info) if self._session_info is not None else None
        return telemetry, session_info

    def start(self) -> None:
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            self._telemetry = None
            self._session_info = None
            self._telemetry_count = 0
            self._session_info_count = 0
            self._next_session_info_at = 0.0
            self._next_connect_at = 0.0
            self._stop_event.clear()
            thread = threading.Thread(
                target=self._run_loop,
                name="irsdk-standings",
                daemon=True,
            )
            self._thread = thread
        thread.start()

    def stop(self) -> None:
        with self._lock:
            thread = self._thread
        if thread is None:
            self._client.disconnect()
            return

        self._stop_event.set()
        thread.join(timeout=2.0)
        self._client.disconnect()

        with self._lock:
            if self._thread is thread and not thread.is_alive():
                self._thread = None

    def poll_once(self, now: float | None = None) -> bool:
        """Run one poll step; returns whether a telemetry sample was stored."""
        now = time.monotonic() if now is None else now
        if not self._client.is_connected:
            self._clear_snapshot()
            if now < self._next_connect_at:
                return False
            _LOG.info("irsdk reconnect attempt")
            self._next_connect_at = now + self._reconnect_interval
            if not self._client.connect():
                return False
            self._next_session_info_at = 0.0

        if now >= self._next_session_info_at:
            self._next_session_info_at = now + self._session_info_interval
            session_info = self._client.get_session_info()
            if session_info is not None:
                with self._lock:
                    self._session_info = session_info
                    self._session_info_count += 1

        sample = self._client.read_telemetry(fields=REQUESTED_CHANNELS)
        if sample is None:
            # Connection may have dropped in read_telemetry().
            if not self._client.is_connected:
                self._clear_snapshot()
            return False

        with self._lock:
            self._telemetry = dict(sample.get("raw") or {})
            self._telemetry_count += 1
            count = self._telemetry_count
        if count == 1 or count % 600 == 0:
            _LOG.info("irsdk telemetry_count=%d", count)
        return True

    def _run_loop(self) -> None:
        next_tick = time.monotonic()
        interval = self._telemetry_interval
        try:
            while not self._stop_event.is_set():
                if not self._client.is_connected:
                    self.poll_once()
                    if not self._client.is_connected:
                        self._sleep_interruptible(self._reconnect_interval)
                    next_tick = time.monotonic()
                    continue

                self.poll_once()
                next_tick += interval
                now = time.monotonic()
                delay = next_tick - now
                if delay > 0.0:
                    self._sleep_interruptible(delay)
                else:
                    if delay < -(interval * 4.0):
                        next_tick = now
                    self._sleep_interruptible(0.0)
        finally:
            self._client.disconnect()
            self._clear_snapshot()
            with self._lock:
                if self._thread is not None and self._thread is threading.current_thread():
                    self._thread = None

    def _clear_snapshot(self) -> None:
        with self._lock:
            had_data = self._telemetry is not None or self._session_info is not None
            self._telemetry = None
            self._session_info = None
        if had_data:
            _LOG.info("irsdk snapshot cleared")

    def _sleep_interruptible(self, seconds: float) -> None:
        self._stop_event.wait(max(0.0, seconds))

    @staticmethod
    def _normalize_interval(interval_ms: int, default_ms: int) -> float:
        try:
            value = int(interval_ms)
        except Exception:
            value = int(default_ms)
        if value <= 0:
            value = int(default_ms)
        return value / 1000.0
