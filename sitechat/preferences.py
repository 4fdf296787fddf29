"""Debounced local persistence for UI layout preferences"""

import asyncio
import json
import os
from typing import Any, Callable, Optional

import config
from sitechat.logger import get_logger

logger = get_logger(__name__)

MIN_PREVIEW_HEIGHT = 25.0
MAX_PREVIEW_HEIGHT = 85.0
DEFAULT_PREVIEW_HEIGHT = 60.0


class Debouncer:
    """Runs `action` once after `delay_ms` of quiet, with the latest arguments"""

    def __init__(self, delay_ms: int, action: Callable[..., Any]):
        self.delay_ms = delay_ms
        self.action = action
        self._handle: Optional[asyncio.TimerHandle] = None
        self._args: tuple = ()

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self, *args) -> None:
        self._args = args
        if self._handle is not None:
            self._handle.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay_ms / 1000, self._fire)

    def flush(self) -> None:
        """Run a pending action now"""
        if self._handle is None:
            return
        self._handle.cancel()
        self._fire()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        try:
            self.action(*self._args)
        except Exception as e:
            logger.error(f"Debounced action failed: {e}", exc_info=True)


class LayoutPreferences:
    """Split between the preview surface and the chat panel, in percent"""

    def __init__(
        self,
        path: str = config.LAYOUT_PREFERENCES_PATH,
        debounce_ms: int = config.LAYOUT_SAVE_DEBOUNCE_MS,
    ):
        self.path = path
        self.preview_height = self._load()
        self._saver = Debouncer(debounce_ms, self._write)

    def set_preview_height(self, percent: float) -> float:
        height = max(MIN_PREVIEW_HEIGHT, min(MAX_PREVIEW_HEIGHT, float(percent)))
        # Ignore jitter below half a percent.
        if abs(height - self.preview_height) <= 0.5:
            return self.preview_height
        self.preview_height = height
        self._saver.trigger(height)
        return height

    def flush(self) -> None:
        self._saver.flush()

    def _load(self) -> float:
        if not os.path.exists(self.path):
            return DEFAULT_PREVIEW_HEIGHT
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            height = float(data.get("previewHeight", DEFAULT_PREVIEW_HEIGHT))
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Ignoring unreadable layout preferences {self.path}: {e}")
            return DEFAULT_PREVIEW_HEIGHT
        return max(MIN_PREVIEW_HEIGHT, min(MAX_PREVIEW_HEIGHT, height))

    def _write(self, height: float) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump({"previewHeight": height}, f, indent=2)
        logger.debug(f"Layout saved: previewHeight={height}")
