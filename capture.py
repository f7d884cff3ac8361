from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass
from typing import Any, Optional, Protocol

import cv2
import numpy as np

from errors import CameraUnavailable, InvalidTransition, SessionBusy

logger = logging.getLogger(__name__)

# A still frame: a decoded BGR array from OpenCV or already-encoded image bytes.
StillImage = Any


class DeviceError(Exception):
    """Raised by a VideoDevice when a device cannot be opened or read."""


@dataclass(frozen=True)
class CaptureConstraints:
    facing: str = "environment"


class VideoDevice(Protocol):
    def open(self, constraints: CaptureConstraints) -> Any: ...

    def grab_frame(self, handle: Any) -> StillImage: ...

    def release(self, handle: Any) -> None: ...


class OpenCVCamera:
    """
    VideoDevice backed by ``cv2.VideoCapture``.

    OpenCV has no notion of facing, so the rear-facing preference maps to
    ``rear_index`` and anything else to ``front_index``.
    """

    def __init__(self, rear_index: int = 0, front_index: Optional[int] = None) -> None:
        self.rear_index = rear_index
        self.front_index = rear_index if front_index is None else front_index

    def open(self, constraints: CaptureConstraints) -> cv2.VideoCapture:
        index = self.rear_index if constraints.facing == "environment" else self.front_index
        cap = cv2.VideoCapture(index)
        if not cap.isOpened():
            cap.release()
            raise DeviceError(f"Camera {index} could not be opened.")
        return cap

    def grab_frame(self, handle: cv2.VideoCapture) -> np.ndarray:
        ok, frame = handle.read()
        if not ok or frame is None:
            raise DeviceError("Could not read a frame from the camera.")
        return frame

    def release(self, handle: cv2.VideoCapture) -> None:
        handle.release()


class CaptureState(enum.Enum):
    CLOSED = "closed"
    OPENING = "opening"
    LIVE = "live"
    READING = "reading"


@dataclass(frozen=True)
class Snapshot:
    image: StillImage
    epoch: int


class CaptureSession:
    """
    Lifecycle of the one camera handle used for reading a thermometer.

    Each open bumps ``epoch``; ``cancel`` bumps it again, so a recognition
    result that arrives for an older epoch is recognised as stale and never
    touches the current session. The device is released as soon as the
    session closes, whatever is still in flight.

    Only one session may be open at a time: ``open`` on a session that is
    not closed raises SessionBusy.
    """

    def __init__(self, device: VideoDevice, constraints: Optional[CaptureConstraints] = None) -> None:
        self._device = device
        self._constraints = constraints or CaptureConstraints()
        self._lock = threading.Lock()
        self._state = CaptureState.CLOSED
        self._handle: Any = None
        self._epoch = 0
        self.acquired = 0
        self.released = 0

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def holds_device(self) -> bool:
        return self._handle is not None

    def open(self) -> None:
        with self._lock:
            if self._state is not CaptureState.CLOSED:
                raise SessionBusy("The camera is already open.")
            self._epoch += 1
            epoch = self._epoch
            self._state = CaptureState.OPENING
        logger.debug("Requesting camera (%s)", self._constraints.facing)

        # The device grant may block on a permission prompt; hold no lock.
        try:
            handle = self._device.open(self._constraints)
        except Exception as e:
            with self._lock:
                if self._epoch == epoch:
                    self._state = CaptureState.CLOSED
            logger.warning("Camera unavailable: %s", e)
            raise CameraUnavailable(
                "Could not access camera. Please ensure permissions are granted."
            ) from e

        with self._lock:
            self.acquired += 1
            if self._epoch == epoch and self._state is CaptureState.OPENING:
                self._handle = handle
                self._state = CaptureState.LIVE
                logger.info("Camera live")
                return
        # Cancelled while the grant was pending.
        self._release(handle)
        logger.info("Camera granted after cancel; released immediately")

    def preview(self) -> StillImage:
        """Grab a frame for live display without leaving the LIVE state."""
        with self._lock:
            if self._state is not CaptureState.LIVE:
                raise InvalidTransition(f"Cannot preview while {self._state.value}.")
            handle = self._handle
        return self._device.grab_frame(handle)

    def capture(self) -> Snapshot:
        with self._lock:
            if self._state is not CaptureState.LIVE:
                raise InvalidTransition(f"Cannot capture while {self._state.value}.")
            self._state = CaptureState.READING
            handle = self._handle
            epoch = self._epoch
        try:
            image = self._device.grab_frame(handle)
        except Exception as e:
            self.finish(epoch)
            logger.warning("Frame capture failed: %s", e)
            raise CameraUnavailable("Could not capture a frame from the camera.") from e
        return Snapshot(image=image, epoch=epoch)

    def finish(self, epoch: int) -> bool:
        """
        Close the session after a read. Returns False when ``epoch`` no
        longer matches, i.e. the session was cancelled (or reopened) while
        the read was pending; the caller must then drop the result.
        """
        with self._lock:
            if epoch != self._epoch or self._state is not CaptureState.READING:
                logger.debug("Discarding stale read for epoch %d", epoch)
                return False
            handle = self._close_locked()
        self._release(handle)
        return True

    def cancel(self) -> None:
        with self._lock:
            if self._state is CaptureState.CLOSED:
                return
            self._epoch += 1
            handle = self._close_locked()
        logger.info("Camera cancelled")
        if handle is not None:
            self._release(handle)

    def _close_locked(self) -> Any:
        handle, self._handle = self._handle, None
        self._state = CaptureState.CLOSED
        return handle

    def _release(self, handle: Any) -> None:
        try:
            self._device.release(handle)
        finally:
            self.released += 1
