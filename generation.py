"""
Generation client: prompt assembly, the Gemini image call, and decoding of
the model response into a displayable image.
"""

import base64
import logging
import time
from dataclasses import dataclass

from google import genai
from google.genai import types
from google.genai.types import Modality

from config import DEFAULT_MIME_TYPE, GEMINI_API_KEY, IMAGE_MODEL
from prompts import (
    DETAILS_SUFFIX,
    MISSING_INPUT_MESSAGE,
    NO_IMAGE_MESSAGE,
    PROMPT_TEMPLATE,
    UNKNOWN_ERROR_MESSAGE,
)

logger = logging.getLogger(__name__)


# ========== Errors ==========

class GenerationError(Exception):
    """Base class for a failed submission. `kind` names the failure tier."""

    kind = "generation"
    default_message = UNKNOWN_ERROR_MESSAGE

    def __init__(self, message=None):
        super().__init__(message or self.default_message)

    @property
    def message(self):
        return str(self)


class MissingInputError(GenerationError):
    """No image selected or no style chosen. Raised before any network call."""

    kind = "missing-input"
    default_message = MISSING_INPUT_MESSAGE


class NoImageProducedError(GenerationError):
    """The service answered but no content part carried inline image data."""

    kind = "no-image-produced"
    default_message = NO_IMAGE_MESSAGE


class TransportError(GenerationError):
    """The call itself failed: network, auth, quota, missing key, SDK errors."""

    kind = "transport"


# ========== Request / result ==========

@dataclass(frozen=True)
class GenerationRequest:
    image_type: str
    style: str
    instructions: str = ""


@dataclass(frozen=True)
class GeneratedImage:
    data: bytes
    mime_type: str

    @property
    def encoded(self):
        return base64.b64encode(self.data).decode("utf-8")

    @property
    def data_url(self):
        return f"data:{self.mime_type};base64,{self.encoded}"


def build_prompt(request):
    prompt = PROMPT_TEMPLATE.format(image_type=request.image_type, style=request.style)
    if request.instructions:
        prompt += DETAILS_SUFFIX.format(instructions=request.instructions)
    return prompt


def validate_inputs(image, request):
    if image is None or not request.style:
        raise MissingInputError()


def decode_response(response):
    """
    Pick the generated image out of a generate_content response.

    Only the first candidate is considered; the first of its parts that
    carries inline data wins. Raises NoImageProducedError when there is none.
    """
    candidates = response.candidates or []
    if not candidates:
        raise NoImageProducedError()

    content = candidates[0].content
    parts = (content.parts if content is not None else None) or []
    for part in parts:
        if part.inline_data is not None and part.inline_data.data:
            mime = part.inline_data.mime_type or DEFAULT_MIME_TYPE
            return GeneratedImage(data=part.inline_data.data, mime_type=mime)

    raise NoImageProducedError()


# ========== Client ==========

class ImageGenerator:
    """Sends one photo plus prompt to the image model and returns the result."""

    def __init__(self, api_key=GEMINI_API_KEY, model=IMAGE_MODEL, client=None):
        self.api_key = api_key
        self.model = model
        self._client = client

    @property
    def client(self):
        # Built on first use so a missing key fails the request, not startup.
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def generate(self, request, image):
        validate_inputs(image, request)
        prompt = build_prompt(request)
        config = types.GenerateContentConfig(
            response_modalities=[Modality.IMAGE],
        )

        try:
            start = time.time()
            response = self.client.models.generate_content(
                model=self.model,
                contents=[
                    types.Part.from_bytes(data=image.data, mime_type=image.mime_type),
                    prompt,
                ],
                config=config,
            )
            elapsed = round(time.time() - start, 1)
        except Exception as e:
            logger.exception("generate_content failed (model=%s)", self.model)
            raise TransportError(str(e)) from e

        result = decode_response(response)
        logger.info(
            "Generated %s (%d bytes) with %s in %ss: %r",
            result.mime_type, len(result.data), self.model, elapsed, prompt,
        )
        return result
