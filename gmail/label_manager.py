"""
Gmail label management.

Create, update, delete, list and find labels, plus get-or-create, which
looks the name up before creating so repeated calls do not produce
duplicate labels. Every lookup re-queries Gmail; nothing is cached.

Two concurrent get-or-create calls for the same new name can both see the
name as absent and both create it. Gmail offers no atomic create-if-absent,
so callers that need a strict guarantee must serialize get-or-create calls
per name themselves.
"""

import logging
from typing import Optional

from core.errors import (
    LabelAlreadyExists,
    LabelNotFound,
    LabelOperationFailed,
    RemoteCallFailed,
    SystemLabelProtected,
)
from gmail.client import GmailClient
from gmail.models import Label, LabelCounts, LabelListing, LabelOptions, LabelResolution

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE_LIST_VISIBILITY = "show"
DEFAULT_LABEL_LIST_VISIBILITY = "labelShow"


def _is_duplicate_name(error: RemoteCallFailed) -> bool:
    # Gmail answers 409 "Label name exists or conflicts"
    return error.status_code == 409 or "exists" in (error.message or "").lower()


async def create_label(
    client: GmailClient, name: str, options: Optional[LabelOptions] = None
) -> Label:
    """
    Create a label, defaulting both visibility settings to shown.

    Raises:
        LabelAlreadyExists: Gmail reports a name conflict.
        LabelOperationFailed: Any other failure.
    """
    options = options or LabelOptions()
    resolved = LabelOptions(
        message_list_visibility=options.message_list_visibility
        or DEFAULT_MESSAGE_LIST_VISIBILITY,
        label_list_visibility=options.label_list_visibility
        or DEFAULT_LABEL_LIST_VISIBILITY,
    )
    try:
        label = await client.create_label(name, resolved)
    except RemoteCallFailed as e:
        if _is_duplicate_name(e):
            raise LabelAlreadyExists(name, e) from e
        raise LabelOperationFailed(f"Failed to create label: {e}", e) from e
    logger.info(f"Created label '{label.name}' ({label.id})")
    return label


async def update_label(
    client: GmailClient,
    label_id: str,
    name: Optional[str] = None,
    options: Optional[LabelOptions] = None,
) -> Label:
    """
    Update only the supplied fields of an existing label.

    Raises:
        LabelNotFound: No label with label_id.
        LabelOperationFailed: Any other failure.
    """
    updates = {}
    if name:
        updates["name"] = name
    if options and options.message_list_visibility:
        updates["messageListVisibility"] = options.message_list_visibility
    if options and options.label_list_visibility:
        updates["labelListVisibility"] = options.label_list_visibility

    try:
        await client.get_label(label_id)
        label = await client.patch_label(label_id, updates)
    except RemoteCallFailed as e:
        if e.status_code == 404:
            raise LabelNotFound(label_id, e) from e
        raise LabelOperationFailed(f"Failed to update label: {e}", e) from e
    logger.info(f"Updated label {label_id} fields: {sorted(updates)}")
    return label


async def delete_label(client: GmailClient, label_id: str) -> str:
    """
    Delete a user label and return a confirmation message.

    Raises:
        SystemLabelProtected: The label is a system label. Nothing is deleted.
        LabelNotFound: No label with label_id.
        LabelOperationFailed: Any other failure.
    """
    try:
        label = await client.get_label(label_id)
        if label.is_system:
            raise SystemLabelProtected(label_id)
        await client.delete_label(label_id)
    except RemoteCallFailed as e:
        if e.status_code == 404:
            raise LabelNotFound(label_id, e) from e
        raise LabelOperationFailed(f"Failed to delete label: {e}", e) from e
    logger.info(f"Deleted label '{label.name}' ({label_id})")
    return f'Label "{label.name}" deleted successfully.'


async def list_labels(client: GmailClient) -> LabelListing:
    """Fetch all labels and partition them by their reported type."""
    labels = await client.list_labels()
    system_labels = [label for label in labels if label.type == "system"]
    user_labels = [label for label in labels if label.type == "user"]
    return LabelListing(
        system=system_labels,
        user=user_labels,
        count=LabelCounts(
            total=len(labels), system=len(system_labels), user=len(user_labels)
        ),
    )


async def find_label_by_name(client: GmailClient, name: str) -> Optional[Label]:
    """Case-insensitive exact name match. None when there is no such label."""
    listing = await list_labels(client)
    wanted = name.lower()
    for label in listing.system + listing.user:
        if label.name.lower() == wanted:
            return label
    return None


async def get_or_create_label(
    client: GmailClient, name: str, options: Optional[LabelOptions] = None
) -> LabelResolution:
    """Return the label named name, creating it only if it does not exist yet."""
    existing = await find_label_by_name(client, name)
    if existing:
        logger.info(f"Found existing label '{existing.name}' ({existing.id})")
        return LabelResolution(label=existing, created=False)

    created = await create_label(client, name, options)
    return LabelResolution(label=created, created=True)
