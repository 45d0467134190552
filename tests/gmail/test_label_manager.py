"""
Unit tests for label management against an in-memory mailbox.
"""

import pytest

from core.errors import (
    LabelAlreadyExists,
    LabelNotFound,
    LabelOperationFailed,
    RemoteCallFailed,
    SystemLabelProtected,
)
from gmail.label_manager import (
    create_label,
    delete_label,
    find_label_by_name,
    get_or_create_label,
    list_labels,
    update_label,
)
from gmail.models import LabelOptions


@pytest.mark.asyncio
async def test_create_label_defaults_visibility(fake_gmail):
    """New labels are shown by default."""
    label = await create_label(fake_gmail, "Receipts")

    assert label.name == "Receipts"
    assert label.type == "user"
    assert label.message_list_visibility == "show"
    assert label.label_list_visibility == "labelShow"


@pytest.mark.asyncio
async def test_create_label_keeps_explicit_visibility(fake_gmail):
    """Explicit visibility settings are kept."""
    label = await create_label(
        fake_gmail,
        "Quiet",
        LabelOptions(message_list_visibility="hide", label_list_visibility="labelHide"),
    )
    assert label.message_list_visibility == "hide"
    assert label.label_list_visibility == "labelHide"


@pytest.mark.asyncio
async def test_create_duplicate_label_raises_already_exists(fake_gmail):
    """A name conflict is reported as an existing label."""
    with pytest.raises(LabelAlreadyExists) as exc_info:
        await create_label(fake_gmail, "work")
    assert 'Label "work" already exists' in str(exc_info.value)


@pytest.mark.asyncio
async def test_create_label_other_failure_is_wrapped(fake_gmail):
    """Other create failures keep the remote error."""
    async def broken_create(name, options):
        raise RemoteCallFailed(400, "Invalid label name")

    fake_gmail.create_label = broken_create
    with pytest.raises(LabelOperationFailed) as exc_info:
        await create_label(fake_gmail, "^bad")
    assert not isinstance(exc_info.value, LabelAlreadyExists)
    assert "Failed to create label" in str(exc_info.value)
    assert isinstance(exc_info.value.original_error, RemoteCallFailed)


@pytest.mark.asyncio
async def test_update_label_sends_only_supplied_fields(fake_gmail):
    """Only the new name is patched."""
    label = await update_label(fake_gmail, "Label_work", name="Office")

    assert label.name == "Office"
    assert fake_gmail.calls_named("get_label") == [("get_label", "Label_work")]
    assert fake_gmail.calls_named("patch_label") == [
        ("patch_label", "Label_work", {"name": "Office"})
    ]


@pytest.mark.asyncio
async def test_update_label_visibility_only(fake_gmail):
    """A visibility-only update leaves the name alone."""
    await update_label(
        fake_gmail,
        "Label_work",
        options=LabelOptions(label_list_visibility="labelShowIfUnread"),
    )
    assert fake_gmail.calls_named("patch_label") == [
        ("patch_label", "Label_work", {"labelListVisibility": "labelShowIfUnread"})
    ]
    assert fake_gmail.labels["Label_work"]["name"] == "Work"


@pytest.mark.asyncio
async def test_update_missing_label_raises_not_found(fake_gmail):
    """Updating an unknown label is reported as not found."""
    with pytest.raises(LabelNotFound) as exc_info:
        await update_label(fake_gmail, "Label_missing", name="x")
    assert 'Label with ID "Label_missing" not found.' in str(exc_info.value)
    assert fake_gmail.calls_named("patch_label") == []


@pytest.mark.asyncio
async def test_delete_user_label(fake_gmail):
    """User labels are deleted with a confirmation."""
    message = await delete_label(fake_gmail, "Label_work")

    assert message == 'Label "Work" deleted successfully.'
    assert "Label_work" not in fake_gmail.labels


@pytest.mark.asyncio
async def test_delete_system_label_is_refused_without_delete_call(fake_gmail):
    """System labels are refused before any delete call."""
    with pytest.raises(SystemLabelProtected):
        await delete_label(fake_gmail, "INBOX")

    assert fake_gmail.calls_named("delete_label") == []
    assert "INBOX" in fake_gmail.labels


@pytest.mark.asyncio
async def test_delete_missing_label_raises_not_found(fake_gmail):
    """Deleting an unknown label is reported as not found."""
    with pytest.raises(LabelNotFound):
        await delete_label(fake_gmail, "Label_missing")


@pytest.mark.asyncio
async def test_list_labels_partitions_by_type(fake_gmail):
    """Labels are split into system and user; all are counted."""
    fake_gmail.labels["odd"] = {"id": "odd", "name": "Odd", "type": "other"}

    listing = await list_labels(fake_gmail)

    assert [label.id for label in listing.system] == ["INBOX", "TRASH"]
    assert [label.id for label in listing.user] == ["Label_work"]
    assert listing.count.total == 4
    assert listing.count.system == 2
    assert listing.count.user == 1


@pytest.mark.asyncio
async def test_find_label_by_name_is_case_insensitive(fake_gmail):
    """Names match regardless of case."""
    label = await find_label_by_name(fake_gmail, "WORK")
    assert label is not None
    assert label.id == "Label_work"

    system_label = await find_label_by_name(fake_gmail, "inbox")
    assert system_label.id == "INBOX"


@pytest.mark.asyncio
async def test_find_label_by_name_absent_returns_none(fake_gmail):
    """An unknown name finds nothing."""
    assert await find_label_by_name(fake_gmail, "Nope") is None


@pytest.mark.asyncio
async def test_get_or_create_twice_creates_once(fake_gmail):
    """A second call finds the label the first one created."""
    first = await get_or_create_label(fake_gmail, "Projects")
    second = await get_or_create_label(fake_gmail, "Projects")

    assert first.created is True
    assert second.created is False
    assert second.label.id == first.label.id
    assert len(fake_gmail.calls_named("create_label")) == 1

    listing = await list_labels(fake_gmail)
    assert [label.name for label in listing.user].count("Projects") == 1


@pytest.mark.asyncio
async def test_get_or_create_returns_existing_unchanged(fake_gmail):
    """An existing label is returned without changes."""
    resolution = await get_or_create_label(
        fake_gmail, "work", LabelOptions(message_list_visibility="hide")
    )

    assert resolution.created is False
    assert resolution.label.name == "Work"
    assert fake_gmail.calls_named("create_label") == []
    assert fake_gmail.calls_named("patch_label") == []


@pytest.mark.asyncio
async def test_get_or_create_looks_up_before_creating(fake_gmail):
    """The lookup happens before the create."""
    await get_or_create_label(fake_gmail, "Brand New")

    names = [call[0] for call in fake_gmail.calls]
    assert names == ["list_labels", "create_label"]
