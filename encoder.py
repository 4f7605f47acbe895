"""Turns an uploaded photo into the payload sent to the image model."""

import base64
import io
import logging
import mimetypes
import uuid
from dataclasses import dataclass, field

from PIL import Image

from config import DEFAULT_MIME_TYPE

logger = logging.getLogger(__name__)


class EncodeError(Exception):
    """The uploaded file could not be read as an image."""


@dataclass(frozen=True)
class UploadedImage:
    filename: str
    data: bytes
    mime_type: str
    token: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def preview_url(self):
        return f"/preview/{self.token}"

    @property
    def encoded(self):
        """
        Base64 text of `data`, the form the photo takes inside the JSON
        request body. The SDK derives it from `data` when the Part is sent.
        """
        return base64.b64encode(self.data).decode("utf-8")


def sniff_mime_type(data):
    """Return the media type Pillow recognises in `data`, or None."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            return Image.MIME.get(img.format)
    except OSError:
        return None


def extension_for(mime_type, data=None):
    """File extension (without dot) for an image of the given media type."""
    if mime_type in ("image/jpeg", "image/jpg"):
        return "jpg"
    ext = mimetypes.guess_extension(mime_type or "")
    if ext:
        return ext.lstrip(".")
    if data:
        sniffed = sniff_mime_type(data)
        if sniffed:
            return extension_for(sniffed)
    return extension_for(DEFAULT_MIME_TYPE)


def encode_upload(upload):
    """
    Read an uploaded file and build the UploadedImage for it.

    `upload` is a werkzeug FileStorage (or anything with `filename`,
    `mimetype` and `read()`). Raises EncodeError when the file cannot be
    read or is not an image.
    """
    filename = upload.filename or "upload"
    try:
        data = upload.read()
    except OSError as e:
        logger.exception("Failed to read upload %s", filename)
        raise EncodeError(f"Could not read {filename}: {e}") from e

    mime_type = upload.mimetype
    if not mime_type or not mime_type.startswith("image/"):
        mime_type = sniff_mime_type(data)
    if not mime_type:
        logger.warning("Rejected upload %s: not a recognised image", filename)
        raise EncodeError(f"Could not read {filename} as an image.")

    logger.info("Encoded %s (%s, %d bytes)", filename, mime_type, len(data))
    return UploadedImage(filename=filename, data=data, mime_type=mime_type)
