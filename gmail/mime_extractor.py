"""
Body and attachment extraction from a Gmail message part tree.
"""

import base64
import binascii
import logging
from typing import Iterator, List, Tuple

from core.config import MAX_PART_DEPTH
from core.errors import DecodeError
from gmail.models import Attachment, EmailContent, MessagePart

logger = logging.getLogger(__name__)


def decode_body_data(data: str) -> str:
    """
    Decode a Gmail body payload (base64url, padding optional) to text.

    Raises:
        DecodeError: If the payload is not valid base64.
    """
    normalized = data.replace("-", "+").replace("_", "/")
    normalized += "=" * (-len(normalized) % 4)
    try:
        raw = base64.b64decode(normalized, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Malformed base64 body payload: {e}") from e
    return raw.decode("utf-8", errors="replace")


def walk_parts(
    root: MessagePart, max_depth: int = MAX_PART_DEPTH
) -> Iterator[Tuple[MessagePart, int]]:
    """
    Yield (part, depth) in depth-first pre-order.

    Uses an explicit stack so deeply nested trees cannot exhaust the
    interpreter stack; nesting beyond max_depth raises DecodeError.
    """
    stack = [(root, 0)]
    while stack:
        part, depth = stack.pop()
        if depth > max_depth:
            raise DecodeError(
                f"Message part tree exceeds maximum nesting depth of {max_depth}"
            )
        yield part, depth
        # reversed so the first child is popped next
        for child in reversed(part.parts):
            stack.append((child, depth + 1))


def extract_email_content(
    root: MessagePart, max_depth: int = MAX_PART_DEPTH
) -> EmailContent:
    """
    Concatenate every text/plain and text/html leaf in traversal order.

    Parts of other types are ignored for body purposes but their children
    are still visited.
    """
    text_chunks: List[str] = []
    html_chunks: List[str] = []

    for part, _ in walk_parts(root, max_depth):
        if not part.body.data:
            continue
        if part.mime_type == "text/plain":
            text_chunks.append(decode_body_data(part.body.data))
        elif part.mime_type == "text/html":
            html_chunks.append(decode_body_data(part.body.data))

    return EmailContent(text="".join(text_chunks), html="".join(html_chunks))


def extract_attachments(
    root: MessagePart, max_depth: int = MAX_PART_DEPTH
) -> List[Attachment]:
    """One Attachment per part carrying an attachment id, in traversal order."""
    attachments = [
        Attachment.from_part(part)
        for part, _ in walk_parts(root, max_depth)
        if part.body.attachment_id
    ]
    if attachments:
        logger.debug(f"Found {len(attachments)} attachments in message payload")
    return attachments
