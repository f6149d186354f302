"""Attachments and their transportable text form.

Binary evidence (photos, scanned PODs) travels through the offline queue as
``data:`` URLs so it can be stored in a text key-value store and rebuilt
byte-for-byte on replay.
"""

import base64
import binascii
import mimetypes
from dataclasses import dataclass

_DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class Attachment:
    filename: str
    content: bytes
    content_type: str = ""

    @property
    def media_type(self) -> str:
        if self.content_type:
            return self.content_type
        guessed, _ = mimetypes.guess_type(self.filename)
        return guessed or _DEFAULT_CONTENT_TYPE

    @property
    def is_image(self) -> bool:
        return self.media_type.startswith("image/")


def encode_attachment(attachment: Attachment) -> str:
    """Encode an attachment as a base64 ``data:`` URL."""
    payload = base64.b64encode(attachment.content).decode("ascii")
    return f"data:{attachment.media_type};base64,{payload}"


def decode_attachment(text: str, filename: str) -> Attachment:
    """Rebuild an attachment from ``encode_attachment`` output.

    Raises ValueError when the text is not a base64 ``data:`` URL.
    """
    if not text.startswith("data:") or "," not in text:
        raise ValueError("Attachment is not a data URL")
    header, _, payload = text[len("data:") :].partition(",")
    media_type, _, encoding = header.partition(";")
    if encoding != "base64":
        raise ValueError(f"Unsupported attachment encoding: {encoding or 'none'}")
    try:
        content = base64.b64decode(payload, validate=True)
    except binascii.Error as exc:
        raise ValueError(f"Attachment payload is not valid base64: {exc}") from exc
    return Attachment(filename=filename, content=content, content_type=media_type or _DEFAULT_CONTENT_TYPE)
