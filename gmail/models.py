"""
Pydantic models for Gmail API payloads and tool results.

Gmail responses are loosely shaped JSON. These records give every remote
call an explicit request/response type and fill absent fields with
defaults at the boundary.
"""

from typing import Any, Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

HTML_ONLY_NOTE = (
    "[Note: This email is HTML-formatted. Plain text version not available.]"
)
DEFAULT_ATTACHMENT_MIME_TYPE = "application/octet-stream"

MessageListVisibility = Literal["show", "hide"]
LabelListVisibility = Literal["labelShow", "labelShowIfUnread", "labelHide"]

T = TypeVar("T")


class GmailRecord(BaseModel):
    """Base for records parsed from Gmail's camelCase JSON."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class MessageHeader(GmailRecord):
    name: str
    value: str = ""


class MessagePartBody(GmailRecord):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    data: Optional[str] = None
    attachment_id: Optional[str] = Field(default=None, alias="attachmentId")
    size: int = 0


class MessagePart(GmailRecord):
    """A node of a message's MIME part tree."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    part_id: Optional[str] = Field(default=None, alias="partId")
    mime_type: str = Field(default="", alias="mimeType")
    filename: str = ""
    headers: List[MessageHeader] = Field(default_factory=list)
    body: MessagePartBody = Field(default_factory=MessagePartBody)
    parts: List["MessagePart"] = Field(default_factory=list)


class MessageStub(GmailRecord):
    id: str
    thread_id: Optional[str] = Field(default=None, alias="threadId")


class Message(GmailRecord):
    id: str
    thread_id: Optional[str] = Field(default=None, alias="threadId")
    label_ids: List[str] = Field(default_factory=list, alias="labelIds")
    snippet: str = ""
    payload: MessagePart = Field(default_factory=MessagePart)

    def header(self, name: str, default: str = "") -> str:
        """Return the first header matching name, compared case-insensitively."""
        wanted = name.lower()
        for header in self.payload.headers:
            if header.name.lower() == wanted:
                return header.value
        return default


class EmailContent(BaseModel):
    """Body text recovered from a part tree."""

    text: str = ""
    html: str = ""

    def render(self) -> str:
        """Prefer plain text; fall back to HTML with a note saying so."""
        if self.text:
            return self.text
        if self.html:
            return f"{HTML_ONLY_NOTE}\n\n{self.html}"
        return ""


class Attachment(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    filename: str
    mime_type: str = DEFAULT_ATTACHMENT_MIME_TYPE
    size: int = 0

    @classmethod
    def from_part(cls, part: MessagePart) -> "Attachment":
        attachment_id = part.body.attachment_id
        return cls(
            id=attachment_id,
            filename=part.filename or f"attachment-{attachment_id}",
            mime_type=part.mime_type or DEFAULT_ATTACHMENT_MIME_TYPE,
            size=part.body.size or 0,
        )


class Label(GmailRecord):
    id: str
    name: str = ""
    type: Optional[str] = None
    message_list_visibility: Optional[str] = Field(
        default=None, alias="messageListVisibility"
    )
    label_list_visibility: Optional[str] = Field(
        default=None, alias="labelListVisibility"
    )
    messages_total: Optional[int] = Field(default=None, alias="messagesTotal")
    messages_unread: Optional[int] = Field(default=None, alias="messagesUnread")

    @property
    def is_system(self) -> bool:
        return self.type == "system"


class LabelOptions(BaseModel):
    message_list_visibility: Optional[MessageListVisibility] = None
    label_list_visibility: Optional[LabelListVisibility] = None


class LabelCounts(BaseModel):
    total: int = 0
    system: int = 0
    user: int = 0


class LabelListing(BaseModel):
    system: List[Label] = Field(default_factory=list)
    user: List[Label] = Field(default_factory=list)
    count: LabelCounts = Field(default_factory=LabelCounts)


class LabelResolution(BaseModel):
    """Outcome of get-or-create: the label and whether this call created it."""

    label: Label
    created: bool


class BatchFailure(BaseModel, Generic[T]):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    item: T
    error: Exception

    @property
    def message(self) -> str:
        return str(self.error)


class BatchResult(BaseModel, Generic[T]):
    """
    Outcome of a batch run. A result with failures is a partial batch
    failure; it is reported as data and never raised.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    successes: List[Any] = Field(default_factory=list)
    failures: List[BatchFailure[T]] = Field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.successes)

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)
