from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import cv2
import numpy as np
from google import genai
from google.genai import types

from capture import CaptureSession, StillImage
from constants import DEFAULT_OCR_MODEL, OCR_INSTRUCTION
from errors import OcrError, ServiceError, UnreadableReading
from utils.numbers import parse_leading_float

logger = logging.getLogger(__name__)

JPEG_MIME = "image/jpeg"


class RecognitionService(Protocol):
    def recognize_text(self, image: bytes, mime_type: str, instruction: str) -> str: ...


class GeminiRecognizer:
    """RecognitionService backed by a Gemini multimodal model."""

    def __init__(self, api_key: str, model: str = DEFAULT_OCR_MODEL, client: Optional[genai.Client] = None) -> None:
        if client is None and not api_key:
            raise ValueError("A Gemini API key is required for thermometer reading.")
        self.model = model
        self._client = client or genai.Client(api_key=api_key)

    def recognize_text(self, image: bytes, mime_type: str, instruction: str) -> str:
        response = self._client.models.generate_content(
            model=self.model,
            contents=[
                types.Part.from_bytes(data=image, mime_type=mime_type),
                instruction,
            ],
        )
        return response.text or ""


def encode_jpeg(image: StillImage) -> bytes:
    """Encode a BGR frame as JPEG; bytes are assumed already encoded."""
    if isinstance(image, (bytes, bytearray)):
        return bytes(image)
    ok, buf = cv2.imencode(".jpg", np.asarray(image))
    if not ok:
        raise ValueError("Frame could not be encoded as JPEG.")
    return buf.tobytes()


class OcrPipeline:
    def __init__(self, service: RecognitionService, instruction: str = OCR_INSTRUCTION) -> None:
        self._service = service
        self.instruction = instruction

    def recognize(self, image: StillImage) -> float:
        """
        Read a single temperature from a thermometer photo.

        Raises ServiceError when encoding or the service call fails and
        UnreadableReading (with the raw reply) when the reply has no number.
        """
        try:
            payload = encode_jpeg(image)
            raw = self._service.recognize_text(payload, JPEG_MIME, self.instruction)
        except Exception as e:
            logger.exception("Error during OCR")
            raise ServiceError("An error occurred while trying to read the temperature.") from e

        text = (raw or "").strip()
        value = parse_leading_float(text)
        if value is None:
            logger.info("Unreadable OCR reply: %r", text)
            raise UnreadableReading(text)
        logger.info("OCR read %.1f", value)
        return value


@dataclass(frozen=True)
class OcrOutcome:
    value: Optional[float] = None
    error: Optional[OcrError] = None
    discarded: bool = False

    @property
    def ok(self) -> bool:
        return self.value is not None and not self.discarded


def read_temperature(session: CaptureSession, pipeline: OcrPipeline) -> OcrOutcome:
    """
    Snapshot the live camera, run OCR and close the session whatever the
    result. If the session was cancelled while OCR was pending the outcome
    is marked ``discarded`` and must not be applied to the form.
    """
    snapshot = session.capture()
    value: Optional[float] = None
    error: Optional[OcrError] = None
    try:
        value = pipeline.recognize(snapshot.image)
    except OcrError as e:
        error = e
    finally:
        current = session.finish(snapshot.epoch)
    if not current:
        return OcrOutcome(discarded=True)
    return OcrOutcome(value=value, error=error)
