from __future__ import annotations


class FeverLogError(Exception):
    """Base class for recoverable errors surfaced to the user."""


class InvalidTemperature(FeverLogError, ValueError):
    def __init__(self, raw: object) -> None:
        super().__init__(f"Please enter a valid temperature (got {raw!r}).")
        self.raw = raw


class CameraUnavailable(FeverLogError):
    """The capture device could not be granted (no device, permission denied)."""


class SessionBusy(FeverLogError):
    """A capture session is already open."""


class InvalidTransition(FeverLogError):
    """The capture session is not in a state that allows the request."""


class OcrError(FeverLogError):
    """Reading a temperature from a still image failed."""


class ServiceError(OcrError):
    """The recognition service call itself failed."""


class UnreadableReading(OcrError):
    def __init__(self, raw_text: str) -> None:
        super().__init__(f'Could not read a valid temperature. The service returned: "{raw_text}"')
        self.raw_text = raw_text
