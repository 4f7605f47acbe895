"""
UI state for the generation form.

One ViewState instance backs the page. It holds the selected photo, the form
fields, the loading flag, the status line and the current result, and is
only changed by discrete user or network events.
"""

import logging
import time
from enum import Enum

from config import DOWNLOAD_PREFIX
from encoder import EncodeError, encode_upload, extension_for
from generation import (
    GenerationError,
    GenerationRequest,
    MissingInputError,
    TransportError,
    validate_inputs,
)
from prompts import (
    DEFAULT_IMAGE_TYPE,
    DEFAULT_STYLE,
    ERROR_PREFIX,
    SUCCESS_MESSAGE,
    UNKNOWN_ERROR_MESSAGE,
)

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class SubmitNotAllowed(Exception):
    """The form cannot be submitted in the current mode."""


class RequestInFlight(SubmitNotAllowed):
    """A submission arrived while another one is still outstanding."""


class ResultShown(SubmitNotAllowed):
    """A result is on screen; "change style" must come before a new submission."""


class ViewState:
    def __init__(self):
        self.image = None
        self.image_type = DEFAULT_IMAGE_TYPE
        self.style = DEFAULT_STYLE
        self.instructions = ""
        self.is_loading = False
        self.status_message = ""
        self.is_error = False
        self.error_kind = None
        self.result = None

    # ========== Derived ==========

    @property
    def mode(self):
        if self.is_loading:
            return Mode.LOADING
        if self.result is not None:
            return Mode.SUCCESS
        if self.is_error:
            return Mode.ERROR
        return Mode.IDLE

    @property
    def has_image(self):
        return self.image is not None

    @property
    def can_submit(self):
        return self.has_image and not self.is_loading

    # ========== Events ==========

    def select_image(self, upload):
        """
        Replace the current photo with `upload`.

        Loading and result state are left alone, and a status left by an
        earlier unreadable upload is cleared. If the file cannot be read,
        the previous photo stays selected, the failure is shown in the status
        line and EncodeError is re-raised.
        """
        try:
            image = encode_upload(upload)
        except EncodeError as e:
            self._fail("encode", str(e))
            raise
        self.image = image
        if self.error_kind == "encode":
            self._clear_status()
        return image

    def update_form(self, image_type=None, style=None, instructions=None):
        if image_type is not None:
            self.image_type = image_type
        if style is not None:
            self.style = style
        if instructions is not None:
            self.instructions = instructions

    def build_request(self):
        return GenerationRequest(
            image_type=self.image_type,
            style=self.style,
            instructions=self.instructions,
        )

    def submit(self, generator):
        """
        Run one generation with the current form values.

        Returns the GeneratedImage on success, otherwise None; the outcome is
        also recorded in the status fields. The loading flag is always cleared
        before returning.
        """
        if self.is_loading:
            raise RequestInFlight("A generation request is already in progress.")
        if self.result is not None:
            raise ResultShown("Change the style before generating again.")

        request = self.build_request()
        try:
            validate_inputs(self.image, request)
        except MissingInputError as e:
            self._set_status(e.message, error=True, kind=e.kind)
            return None

        self.is_loading = True
        self.result = None
        self._clear_status()
        try:
            result = generator.generate(request, self.image)
        except GenerationError as e:
            self._fail(e.kind, e.message)
        except Exception as e:
            logger.exception("Unexpected failure during generation")
            self._fail(TransportError.kind, str(e) or UNKNOWN_ERROR_MESSAGE)
        else:
            self.result = result
            self._set_status(SUCCESS_MESSAGE, error=False)
        finally:
            self.is_loading = False
        return self.result

    def change_style(self):
        """Back to the form with the same photo and selections."""
        self.result = None
        self._clear_status()

    def reset(self):
        self.image = None
        self.result = None
        self._clear_status()

    # ========== Export ==========

    def download(self):
        """(filename, data, mime_type) for the displayed result, or None."""
        if self.result is None:
            return None
        ext = extension_for(self.result.mime_type, self.result.data)
        filename = f"{DOWNLOAD_PREFIX}-{int(time.time() * 1000)}.{ext}"
        return filename, self.result.data, self.result.mime_type

    def preview(self, token):
        """The selected photo if `token` is its current preview token."""
        if self.image is not None and self.image.token == token:
            return self.image
        return None

    def to_dict(self):
        return {
            "mode": self.mode.value,
            "has_image": self.has_image,
            "filename": self.image.filename if self.image else None,
            "preview_url": self.image.preview_url if self.image else None,
            "image_type": self.image_type,
            "style": self.style,
            "instructions": self.instructions,
            "is_loading": self.is_loading,
            "can_submit": self.can_submit,
            "status_message": self.status_message,
            "is_error": self.is_error,
            "error_kind": self.error_kind,
            "result": self.result.data_url if self.result else None,
        }

    # ========== Helpers ==========

    def _set_status(self, message, error, kind=None):
        self.status_message = message
        self.is_error = error
        self.error_kind = kind

    def _clear_status(self):
        self._set_status("", error=False)

    def _fail(self, kind, message):
        self._set_status(ERROR_PREFIX + message, error=True, kind=kind)
