from __future__ import annotations

import importlib
import logging
import threading
import time
from typing import Any, Sequence

from standings.irsdk.channels import REQUESTED_CHANNELS, channel_names
from standings.irsdk.sessioninfo_parser import parse_session_info


_LOG = logging.getLogger(__name__)

_DEFAULT_SAMPLE_FIELDS = tuple(REQUESTED_CHANNELS)
_SESSION_INFO_SECTIONS = ("WeekendInfo", "SessionInfo", "DriverInfo")


class IRSDKClient:
    def __init__(self, irsdk_module: Any | None = None) -> None:
        self._lock = threading.Lock()
        self._state = "disconnected"
        self._irsdk_module: Any | None = irsdk_module
        self._ir: Any | None = None
        self._last_error_key: str | None = None
        self._last_session_info_source: str | None = None
        self._missing_fields_logged: set[str] = set()

    @property
    def state(self) -> str:
        with self._lock:
            return self._state

    @property
    def is_connected(self) -> bool:
        with self._lock:
            ir = self._ir
            state = self._state
        return bool(ir is not None and state == "connected" and self._runtime_is_connected(ir))

    def connect(self) -> bool:
        with self._lock:
            existing = self._ir
        if existing is not None and self._runtime_is_connected(existing):
            with self._lock:
                self._state = "connected"
            return True
        if existing is not None:
            with self._lock:
                if self._ir is existing:
                    self._ir = None
                    self._state = "disconnected"
            self._safe_shutdown(existing)
            _LOG.info("irsdk stale handle released")

        try:
            module = self._irsdk_module
            if module is None:
                module = importlib.import_module("irsdk")
                self._irsdk_module = module

            irsdk_ctor = getattr(module, "IRSDK", None)
            if not callable(irsdk_ctor):
                raise RuntimeError("irsdk.IRSDK missing")

            ir = irsdk_ctor()
            startup = getattr(ir, "startup", None)
            startup_result = True
            if callable(startup):
                startup_result = bool(startup())

            if startup_result is False or not self._runtime_is_connected(ir):
                self._safe_shutdown(ir)
                with self._lock:
                    self._ir = None
                    self._state = "disconnected"
                return False

            with self._lock:
                self._ir = ir
                self._state = "connected"
            self._last_error_key = None
            _LOG.info("irsdk connect")
            return True
        except Exception as exc:
            self._log_connect_error_once(exc)
            with self._lock:
                self._ir = None
                self._state = "disconnected"
            return False

    def disconnect(self) -> None:
        with self._lock:
            ir = self._ir
            was_connected = self._state == "connected"
            self._ir = None
            self._state = "disconnected"
        if ir is not None:
            self._safe_shutdown(ir)
        if was_connected:
            _LOG.info("irsdk disconnect")

    def read_telemetry(self, fields: Sequence[str] | None = None) -> dict[str, Any] | None:
        """Read one telemetry snapshot.

        Array channels are copied into plain lists so the caller never holds a
        view into the SDK's shared memory. Returns ``None`` when disconnected.
        """
        with self._lock:
            ir = self._ir
        if ir is None:
            return None
        if not self._runtime_is_connected(ir):
            self.disconnect()
            return None

        freeze = getattr(ir, "freeze_var_buffer_latest", None)
        try:
            if callable(freeze):
                freeze()
            raw: dict[str, Any] = {}
            field_list = tuple(fields) if fields is not None else _DEFAULT_SAMPLE_FIELDS
            for field in field_list:
                value = self._read_first_available(ir, field)
                if value is None:
                    self._log_missing_field_once(field)
                    continue
                raw[field] = self._to_simple_value(value)
            return {
                "timestamp_monotonic": time.monotonic(),
                "timestamp_wall": time.time(),
                "raw": raw,
            }
        except Exception as exc:
            _LOG.info("irsdk read failed (%s); disconnecting", exc)
            self.disconnect()
            return None
        finally:
            unfreeze = getattr(ir, "unfreeze_var_buffer_latest", None)
            if callable(freeze) and callable(unfreeze):
                try:
                    unfreeze()
                except Exception:
                    pass

    def get_session_info(self) -> dict[str, Any] | None:
        """Return the parsed session info, preferring the raw YAML blob."""
        with self._lock:
            ir = self._ir
        if ir is None:
            return None

        text, source = self._get_session_info_yaml_with_source_from_ir(ir)
        parsed = parse_session_info(text)
        if parsed is None:
            parsed = self._get_session_info_sections_from_ir(ir)
            source = "sections" if parsed else None
        if source != self._last_session_info_source:
            self._last_session_info_source = source
            if source:
                _LOG.info("irsdk SessionInfo source=%s", source)
        return parsed

    def get_debug_snapshot(self) -> dict[str, Any]:
        with self._lock:
            ir = self._ir
            state = self._state
        snapshot: dict[str, Any] = {
            "state": state,
            "has_ir_object": ir is not None,
            "last_session_info_source": self._last_session_info_source,
            "missing_fields": sorted(self._missing_fields_logged),
        }
        if ir is not None:
            snapshot["ir_class"] = f"{type(ir).__module__}.{type(ir).__name__}"
        return snapshot

    def _read_first_available(self, ir: Any, field: str) -> Any:
        for name in channel_names(field):
            try:
                value = ir[name]
            except Exception:
                continue
            if value is not None:
                return value
        return None

    def _log_missing_field_once(self, field: str) -> None:
        if field in self._missing_fields_logged:
            return
        self._missing_fields_logged.add(field)
        _LOG.info("irsdk channel missing: %s", field)

    def _runtime_is_connected(self, ir: Any) -> bool:
        checks = (
            "is_connected",
            "isConnected",
            "connected",
            "is_initialized",
            "isInitialized",
        )
        for attr_name in checks:
            if not hasattr(ir, attr_name):
                continue
            try:
                attr_value = getattr(ir, attr_name)
                value = attr_value() if callable(attr_value) else attr_value
                return bool(value)
            except Exception:
                continue
        return True

    def _safe_shutdown(self, ir: Any) -> None:
        try:
            shutdown = getattr(ir, "shutdown", None)
            if callable(shutdown):
                shutdown()
        except Exception as exc:
            _LOG.debug("irsdk shutdown failed (%s)", exc)

    def _log_connect_error_once(self, exc: Exception) -> None:
        key = f"{type(exc).__name__}:{exc}"
        if key == self._last_error_key:
            return
        self._last_error_key = key
        _LOG.info("irsdk connect failed (%s); staying disconnected", exc)

    @classmethod
    def _get_session_info_sections_from_ir(cls, ir: Any) -> dict[str, Any] | None:
        # pyirsdk parses individual top-level YAML sections on item access.
        sections: dict[str, Any] = {}
        for name in _SESSION_INFO_SECTIONS:
            try:
                value = ir[name]
            except Exception:
                continue
            if isinstance(value, dict):
                sections[name] = value
        return sections or None

    @classmethod
    def _get_session_info_yaml_with_source_from_ir(cls, ir: Any) -> tuple[str | None, str | None]:
        for attr_name in (
            "session_info",
            "sessionInfo",
            "session_info_yaml",
            "sessionInfoYaml",
        ):
            value = cls._get_ir_attr_value(ir, attr_name)
            text = cls._coerce_text(value)
            if text and text.strip():
                return text, f"attr:{attr_name}"

        text = cls._get_session_info_yaml_shared_mem_fallback_from_ir(ir)
        if text:
            return text, "shared_mem"
        return None, None

    @classmethod
    def _get_session_info_yaml_shared_mem_fallback_from_ir(cls, ir: Any) -> str | None:
        header = cls._get_ir_attr_value(ir, "_header")
        shared_mem = cls._get_ir_attr_value(ir, "_shared_mem")
        if header is None or shared_mem is None:
            return None

        try:
            offset = int(getattr(header, "session_info_offset"))
            length = int(getattr(header, "session_info_len"))
        except Exception:
            return None
        if offset < 0 or length <= 0:
            return None

        try:
            data = bytes(shared_mem[offset:offset + length])
        except Exception:
            return None

        # iRacing session info is a NUL-terminated YAML blob inside the shared memory segment.
        data = data.split(b"\x00", 1)[0]
        if not data:
            return None
        text = cls._decode_text_best_effort(data)
        if not text or ":" not in text:
            return None
        return text

    @staticmethod
    def _get_ir_attr_value(ir: Any, attr_name: str) -> Any:
        try:
            value = getattr(ir, attr_name)
        except Exception:
            return None
        try:
            return value() if callable(value) else value
        except Exception:
            return None

    @staticmethod
    def _decode_text_best_effort(data: bytes) -> str | None:
        # pyirsdk decodes SessionInfo as cp1252; try strict codecs before replacing.
        for encoding in ("utf-8", "cp1252", "latin-1"):
            try:
                return data.decode(encoding)
            except UnicodeDecodeError:
                continue
        return data.decode("utf-8", errors="replace")

    @staticmethod
    def _coerce_text(value: Any) -> str | None:
        if isinstance(value, bytes):
            return value.decode("utf-8", errors="replace")
        if isinstance(value, str):
            return value
        return None

    @classmethod
    def _to_simple_value(cls, value: Any) -> Any:
        if isinstance(value, (str, int, float, bool)) or value is None:
            return value
        if isinstance(value, (list, tuple)):
            return [cls._to_simple_value(item) for item in value]
        try:
            if hasattr(value, "tolist"):
                return value.tolist()
            if hasattr(value, "item"):
                return value.item()
        except Exception:
            pass
        try:
            return float(value)
        except Exception:
            return str(value)
