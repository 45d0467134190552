"""
Outbound message assembly for send_email and draft_email.
"""

import base64
import re
from email.header import Header
from typing import List, Optional

from core.errors import AddressInvalid, UserInputError

CRLF = "\r\n"
EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
NON_ASCII_REGEX = re.compile(r"[^\x00-\x7F]")
LINE_BREAK_REGEX = re.compile(r"[\r\n]")


def validate_email(address: str) -> bool:
    """Permissive local@domain.tld check."""
    return bool(EMAIL_REGEX.match(address))


def encode_email_header(text: str) -> str:
    """
    RFC 2047 encode a header value when it contains non-ASCII characters.
    ASCII values are returned unchanged.
    """
    if not NON_ASCII_REGEX.search(text):
        return text
    return Header(text, "utf-8").encode(linesep=CRLF)


def _validate_recipients(
    to: List[str], cc: Optional[List[str]], bcc: Optional[List[str]]
) -> None:
    if not to:
        raise UserInputError("At least one recipient is required in 'to'.")
    for field, addresses in (("to", to), ("cc", cc or []), ("bcc", bcc or [])):
        for address in addresses:
            if not validate_email(address):
                raise AddressInvalid(address, field)


def _validate_header_values(subject: str, in_reply_to: Optional[str]) -> None:
    # A raw line break would end the header and start a new one
    for name, value in (("Subject", subject), ("In-Reply-To", in_reply_to)):
        if value and LINE_BREAK_REGEX.search(value):
            raise UserInputError(f"{name} must not contain line breaks.")


def build_email_message(
    to: List[str],
    subject: str,
    body: str,
    cc: Optional[List[str]] = None,
    bcc: Optional[List[str]] = None,
    in_reply_to: Optional[str] = None,
) -> str:
    """
    Build an RFC 5322 message from structured fields.

    Args:
        to: Recipient addresses. Must not be empty.
        subject: Subject line, encoded only when it is not pure ASCII.
        body: Plain text body.
        cc: Optional CC addresses.
        bcc: Optional BCC addresses.
        in_reply_to: Message-ID being replied to. Also sent as References.

    Returns:
        str: Header block and body joined with CRLF.

    Raises:
        AddressInvalid: On the first recipient that fails validation.
        UserInputError: When to is empty or a header value contains a line break.
    """
    _validate_recipients(to, cc, bcc)
    _validate_header_values(subject, in_reply_to)

    lines = ["From: me", f"To: {', '.join(to)}"]
    if cc:
        lines.append(f"Cc: {', '.join(cc)}")
    if bcc:
        lines.append(f"Bcc: {', '.join(bcc)}")
    lines.append(f"Subject: {encode_email_header(subject)}")
    if in_reply_to:
        lines.append(f"In-Reply-To: {in_reply_to}")
        lines.append(f"References: {in_reply_to}")
    lines.extend(
        [
            "MIME-Version: 1.0",
            "Content-Type: text/plain; charset=UTF-8",
            "Content-Transfer-Encoding: 7bit",
            "",
            body,
        ]
    )
    return CRLF.join(lines)


def encode_message(message: str) -> str:
    """Encode a message as the unpadded base64url string Gmail expects in 'raw'."""
    return base64.urlsafe_b64encode(message.encode("utf-8")).decode("ascii").rstrip("=")
