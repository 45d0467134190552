"""
Gmail MCP Tools

This module provides MCP tools for sending, reading, searching, labeling and
deleting Gmail messages. Every tool authenticates with the access_token
passed in the call.
"""

import asyncio
import logging
from typing import Annotated, List, Optional

from pydantic import Field

from auth.service_decorator import require_gmail_service
from core.config import DEFAULT_BATCH_SIZE, DEFAULT_SEARCH_MAX_RESULTS
from core.errors import UserInputError
from core.server import server
from core.utils import handle_http_errors
from gmail.batch_processor import fan_out, format_batch_summary, process_batches
from gmail.client import GmailClient
from gmail.label_manager import (
    create_label as create_gmail_label,
    delete_label as delete_gmail_label,
    get_or_create_label as get_or_create_gmail_label,
    list_labels,
    update_label as update_gmail_label,
)
from gmail.message_builder import build_email_message, encode_message
from gmail.mime_extractor import extract_attachments, extract_email_content
from gmail.models import (
    Attachment,
    Label,
    LabelListVisibility,
    LabelOptions,
    MessageListVisibility,
)

logger = logging.getLogger(__name__)

SEARCH_METADATA_HEADERS = ["Subject", "From", "Date"]

# Public argument names are camelCase; Python parameters stay snake_case
Recipients = Annotated[List[str], Field(description="List of recipient email addresses")]
ThreadIdArg = Annotated[
    Optional[str], Field(alias="threadId", description="Thread ID to reply to")
]
InReplyToArg = Annotated[
    Optional[str], Field(alias="inReplyTo", description="Message ID being replied to")
]
BatchSizeArg = Annotated[
    int,
    Field(
        alias="batchSize",
        ge=1,
        description="Number of messages to process in each batch (default: 50)",
    ),
]
MessageListVisibilityArg = Annotated[
    Optional[MessageListVisibility],
    Field(
        alias="messageListVisibility",
        description="Whether to show or hide the label in the message list",
    ),
]
LabelListVisibilityArg = Annotated[
    Optional[LabelListVisibility],
    Field(
        alias="labelListVisibility",
        description="Visibility of the label in the label list",
    ),
]


def _format_label(label: Label) -> str:
    return f"ID: {label.id}\nName: {label.name}\nType: {label.type}"


def _format_attachments(attachments: List[Attachment]) -> str:
    lines = [f"Attachments ({len(attachments)}):"]
    for att in attachments:
        lines.append(
            f"- {att.filename} ({att.mime_type}, {round(att.size / 1024)} KB)"
            f" [Attachment ID: {att.id}]"
        )
    return "\n".join(lines)


async def _handle_email_action(
    gmail: GmailClient,
    action: str,
    to: List[str],
    subject: str,
    body: str,
    cc: Optional[List[str]],
    bcc: Optional[List[str]],
    thread_id: Optional[str],
    in_reply_to: Optional[str],
) -> str:
    """Build the message once and either send it or store it as a draft."""
    message = build_email_message(
        to=to, subject=subject, body=body, cc=cc, bcc=bcc, in_reply_to=in_reply_to
    )
    raw = encode_message(message)

    if action == "send":
        message_id = await gmail.send_message(raw, thread_id)
        return f"Email sent successfully with ID: {message_id}"

    draft_id = await gmail.create_draft(raw, thread_id)
    return f"Email draft created successfully with ID: {draft_id}"


@server.tool(description="Sends a new email")
@handle_http_errors("send_email", service_type="gmail")
@require_gmail_service
async def send_email(
    gmail: GmailClient,
    to: Recipients,
    subject: Annotated[str, Field(description="Email subject")],
    body: Annotated[str, Field(description="Email body content")],
    cc: Annotated[Optional[List[str]], Field(description="List of CC recipients")] = None,
    bcc: Annotated[Optional[List[str]], Field(description="List of BCC recipients")] = None,
    thread_id: ThreadIdArg = None,
    in_reply_to: InReplyToArg = None,
) -> str:
    """
    Sends a plain text email. Supports replies through thread_id and in_reply_to.

    Args:
        to (List[str]): Recipient email addresses.
        subject (str): Email subject. Non-ASCII subjects are MIME encoded.
        body (str): Plain text body.
        cc (Optional[List[str]]): CC recipients.
        bcc (Optional[List[str]]): BCC recipients.
        thread_id (Optional[str]): Gmail thread ID to reply within.
        in_reply_to (Optional[str]): Message-ID of the message being replied to.

    Returns:
        str: Confirmation with the sent message's ID.
    """
    logger.info(f"[send_email] Invoked. Recipients: {len(to)}, Subject: '{subject}'")
    return await _handle_email_action(
        gmail, "send", to, subject, body, cc, bcc, thread_id, in_reply_to
    )


@server.tool(description="Draft a new email")
@handle_http_errors("draft_email", service_type="gmail")
@require_gmail_service
async def draft_email(
    gmail: GmailClient,
    to: Recipients,
    subject: Annotated[str, Field(description="Email subject")],
    body: Annotated[str, Field(description="Email body content")],
    cc: Annotated[Optional[List[str]], Field(description="List of CC recipients")] = None,
    bcc: Annotated[Optional[List[str]], Field(description="List of BCC recipients")] = None,
    thread_id: ThreadIdArg = None,
    in_reply_to: InReplyToArg = None,
) -> str:
    """
    Creates a draft with the same fields as send_email.

    Returns:
        str: Confirmation with the created draft's ID.
    """
    logger.info(f"[draft_email] Invoked. Recipients: {len(to)}, Subject: '{subject}'")
    return await _handle_email_action(
        gmail, "draft", to, subject, body, cc, bcc, thread_id, in_reply_to
    )


@server.tool(description="Retrieves the content of a specific email")
@handle_http_errors("read_email", is_read_only=True, service_type="gmail")
@require_gmail_service
async def read_email(
    gmail: GmailClient,
    message_id: Annotated[
        str,
        Field(alias="messageId", description="ID of the email message to retrieve"),
    ],
) -> str:
    """
    Retrieves headers, body and attachment list of a message.

    Plain text is preferred; when only HTML exists it is returned with a note
    saying so.

    Args:
        message_id (str): The Gmail message ID.

    Returns:
        str: Thread ID, Subject, From, To, Date, body and attachments.
    """
    logger.info(f"[read_email] Invoked. Message ID: '{message_id}'")

    message = await gmail.get_message(message_id, format="full")

    content = extract_email_content(message.payload)
    attachments = extract_attachments(message.payload)

    output = (
        f"Thread ID: {message.thread_id or ''}\n"
        f"Subject: {message.header('subject')}\n"
        f"From: {message.header('from')}\n"
        f"To: {message.header('to')}\n"
        f"Date: {message.header('date')}\n\n"
        f"{content.render()}"
    )
    if attachments:
        output += f"\n\n{_format_attachments(attachments)}"
    return output


@server.tool(description="Searches for emails using Gmail search syntax")
@handle_http_errors("search_emails", is_read_only=True, service_type="gmail")
@require_gmail_service
async def search_emails(
    gmail: GmailClient,
    query: Annotated[
        str, Field(description="Gmail search query (e.g., 'from:example@gmail.com')")
    ],
    max_results: Annotated[
        Optional[int],
        Field(alias="maxResults", description="Maximum number of results to return"),
    ] = None,
) -> str:
    """
    Searches messages and lists ID, Subject, From and Date of each hit.

    Args:
        query (str): Gmail search query. Supports standard Gmail operators.
        max_results (Optional[int]): Page size. Defaults to 10.

    Returns:
        str: One block per message.
    """
    max_results = max_results or DEFAULT_SEARCH_MAX_RESULTS
    logger.info(f"[search_emails] Query: '{query}', Max results: {max_results}")

    stubs = await gmail.list_messages(query, max_results)
    if not stubs:
        return f"No messages found for query: '{query}'"

    messages = await asyncio.gather(
        *(
            gmail.get_message(
                stub.id, format="metadata", metadata_headers=SEARCH_METADATA_HEADERS
            )
            for stub in stubs
        )
    )

    logger.info(f"[search_emails] Found {len(messages)} messages")
    return "\n".join(
        f"ID: {msg.id}\n"
        f"Subject: {msg.header('Subject')}\n"
        f"From: {msg.header('From')}\n"
        f"Date: {msg.header('Date')}\n"
        for msg in messages
    )


@server.tool(description="Modifies email labels (move to different folders)")
@handle_http_errors("modify_email", service_type="gmail")
@require_gmail_service
async def modify_email(
    gmail: GmailClient,
    message_id: Annotated[
        str,
        Field(alias="messageId", description="ID of the email message to modify"),
    ],
    label_ids: Annotated[
        Optional[List[str]],
        Field(alias="labelIds", description="List of label IDs to apply"),
    ] = None,
    add_label_ids: Annotated[
        Optional[List[str]],
        Field(
            alias="addLabelIds",
            description="List of label IDs to add to the message",
        ),
    ] = None,
    remove_label_ids: Annotated[
        Optional[List[str]],
        Field(
            alias="removeLabelIds",
            description="List of label IDs to remove from the message",
        ),
    ] = None,
) -> str:
    """
    Adds or removes labels on one message. To archive, remove INBOX.

    Args:
        message_id (str): The Gmail message ID.
        label_ids (Optional[List[str]]): Older name for add_label_ids, used
            when add_label_ids is not given.
        add_label_ids (Optional[List[str]]): Label IDs to add.
        remove_label_ids (Optional[List[str]]): Label IDs to remove.

    Returns:
        str: Confirmation message.
    """
    logger.info(f"[modify_email] Invoked. Message ID: '{message_id}'")

    add_ids = add_label_ids or label_ids
    await gmail.modify_message(message_id, add_ids, remove_label_ids)
    return f"Email {message_id} labels updated successfully"


@server.tool(description="Permanently deletes an email")
@handle_http_errors("delete_email", service_type="gmail")
@require_gmail_service
async def delete_email(
    gmail: GmailClient,
    message_id: Annotated[
        str,
        Field(alias="messageId", description="ID of the email message to delete"),
    ],
) -> str:
    """
    Permanently deletes a message. This skips the trash and cannot be undone.

    Returns:
        str: Confirmation message.
    """
    logger.info(f"[delete_email] Invoked. Message ID: '{message_id}'")
    await gmail.delete_message(message_id)
    return f"Email {message_id} deleted successfully"


@server.tool(description="Retrieves all available Gmail labels")
@handle_http_errors("list_email_labels", is_read_only=True, service_type="gmail")
@require_gmail_service
async def list_email_labels(gmail: GmailClient) -> str:
    """
    Lists system and user labels with their IDs.

    Returns:
        str: Counts followed by the system and user label sections.
    """
    logger.info("[list_email_labels] Invoked")

    listing = await list_labels(gmail)

    def _section(labels: List[Label]) -> str:
        return "\n".join(f"ID: {label.id}\nName: {label.name}\n" for label in labels)

    return (
        f"Found {listing.count.total} labels "
        f"({listing.count.system} system, {listing.count.user} user):\n\n"
        f"System Labels:\n{_section(listing.system)}"
        f"\nUser Labels:\n{_section(listing.user)}"
    )


@server.tool(description="Modifies labels for multiple emails in batches")
@handle_http_errors("batch_modify_emails", service_type="gmail")
@require_gmail_service
async def batch_modify_emails(
    gmail: GmailClient,
    message_ids: Annotated[
        List[str],
        Field(alias="messageIds", description="List of message IDs to modify"),
    ],
    add_label_ids: Annotated[
        Optional[List[str]],
        Field(
            alias="addLabelIds",
            description="List of label IDs to add to all messages",
        ),
    ] = None,
    remove_label_ids: Annotated[
        Optional[List[str]],
        Field(
            alias="removeLabelIds",
            description="List of label IDs to remove from all messages",
        ),
    ] = None,
    batch_size: BatchSizeArg = DEFAULT_BATCH_SIZE,
) -> str:
    """
    Applies the same label changes to many messages.

    Messages are processed in chunks of batch_size with one concurrent call
    per message. If a chunk fails, its messages are retried one by one and
    only those that still fail are reported.

    Returns:
        str: Success and failure counts, with the failing IDs.
    """
    logger.info(
        f"[batch_modify_emails] Invoked. Messages: {len(message_ids)}, Batch size: {batch_size}"
    )
    if not add_label_ids and not remove_label_ids:
        raise UserInputError(
            "At least one of add_label_ids or remove_label_ids must be provided."
        )

    async def _modify(message_id: str) -> dict:
        await gmail.modify_message(message_id, add_label_ids, remove_label_ids)
        return {"message_id": message_id, "success": True}

    result = await process_batches(
        message_ids, lambda chunk: fan_out(chunk, _modify), batch_size
    )
    return format_batch_summary(
        result,
        "Batch label modification complete.",
        "Successfully processed",
        "Failed to process",
    )


@server.tool(description="Deletes multiple emails in batches")
@handle_http_errors("batch_delete_emails", service_type="gmail")
@require_gmail_service
async def batch_delete_emails(
    gmail: GmailClient,
    message_ids: Annotated[
        List[str],
        Field(alias="messageIds", description="List of message IDs to delete"),
    ],
    batch_size: BatchSizeArg = DEFAULT_BATCH_SIZE,
) -> str:
    """
    Permanently deletes many messages, with the same chunking and per-message
    fallback as batch_modify_emails.

    Returns:
        str: Success and failure counts, with the failing IDs.
    """
    logger.info(
        f"[batch_delete_emails] Invoked. Messages: {len(message_ids)}, Batch size: {batch_size}"
    )

    async def _delete(message_id: str) -> dict:
        await gmail.delete_message(message_id)
        return {"message_id": message_id, "success": True}

    result = await process_batches(
        message_ids, lambda chunk: fan_out(chunk, _delete), batch_size
    )
    return format_batch_summary(
        result,
        "Batch delete operation complete.",
        "Successfully deleted",
        "Failed to delete",
    )


@server.tool(description="Creates a new Gmail label")
@handle_http_errors("create_label", service_type="gmail")
@require_gmail_service
async def create_label(
    gmail: GmailClient,
    name: Annotated[str, Field(description="Name for the new label")],
    message_list_visibility: MessageListVisibilityArg = None,
    label_list_visibility: LabelListVisibilityArg = None,
) -> str:
    """
    Creates a label. Both visibility settings default to shown.

    Returns:
        str: ID, name and type of the new label.
    """
    logger.info(f"[create_label] Invoked. Name: '{name}'")
    label = await create_gmail_label(
        gmail,
        name,
        LabelOptions(
            message_list_visibility=message_list_visibility,
            label_list_visibility=label_list_visibility,
        ),
    )
    return f"Label created successfully:\n{_format_label(label)}"


@server.tool(description="Updates an existing Gmail label")
@handle_http_errors("update_label", service_type="gmail")
@require_gmail_service
async def update_label(
    gmail: GmailClient,
    label_id: Annotated[
        str,
        Field(alias="id", description="ID of the label to update"),
    ],
    name: Annotated[Optional[str], Field(description="New name for the label")] = None,
    message_list_visibility: MessageListVisibilityArg = None,
    label_list_visibility: LabelListVisibilityArg = None,
) -> str:
    """
    Updates a label. Only the fields given are changed.

    Returns:
        str: ID, name and type of the updated label.
    """
    logger.info(f"[update_label] Invoked. Label ID: '{label_id}'")
    label = await update_gmail_label(
        gmail,
        label_id,
        name=name,
        options=LabelOptions(
            message_list_visibility=message_list_visibility,
            label_list_visibility=label_list_visibility,
        ),
    )
    return f"Label updated successfully:\n{_format_label(label)}"


@server.tool(description="Deletes a Gmail label")
@handle_http_errors("delete_label", service_type="gmail")
@require_gmail_service
async def delete_label(
    gmail: GmailClient,
    label_id: Annotated[
        str,
        Field(alias="id", description="ID of the label to delete"),
    ],
) -> str:
    """
    Deletes a user label. System labels are refused.

    Returns:
        str: Confirmation naming the deleted label.
    """
    logger.info(f"[delete_label] Invoked. Label ID: '{label_id}'")
    return await delete_gmail_label(gmail, label_id)


@server.tool(
    description="Gets an existing label by name or creates it if it doesn't exist"
)
@handle_http_errors("get_or_create_label", service_type="gmail")
@require_gmail_service
async def get_or_create_label(
    gmail: GmailClient,
    name: Annotated[str, Field(description="Name of the label to get or create")],
    message_list_visibility: MessageListVisibilityArg = None,
    label_list_visibility: LabelListVisibilityArg = None,
) -> str:
    """
    Returns the label with this name (compared case-insensitively), creating
    it first if needed. An existing label is returned unchanged.

    Returns:
        str: Whether the label was found or created, plus its ID, name and type.
    """
    logger.info(f"[get_or_create_label] Invoked. Name: '{name}'")
    resolution = await get_or_create_gmail_label(
        gmail,
        name,
        LabelOptions(
            message_list_visibility=message_list_visibility,
            label_list_visibility=label_list_visibility,
        ),
    )
    action = "created new" if resolution.created else "found existing"
    return f"Successfully {action} label:\n{_format_label(resolution.label)}"
