"""
Shared test fixtures: an in-memory stand-in for GmailClient.
"""

import itertools

import pytest

from core.errors import RemoteCallFailed
from gmail.models import Label, LabelOptions, Message


class FakeGmailClient:
    """Async in-memory mailbox with the GmailClient call surface."""

    def __init__(self, labels=None, messages=None):
        self._ids = itertools.count(1)
        self.labels = {label["id"]: dict(label) for label in labels or []}
        self.messages = {m["id"]: dict(m) for m in messages or []}
        self.calls = []
        self.failing_message_ids = set()

    def _label(self, label_id):
        if label_id not in self.labels:
            raise RemoteCallFailed(404, "Requested entity was not found.")
        return self.labels[label_id]

    async def list_labels(self):
        self.calls.append(("list_labels",))
        return [Label.model_validate(label) for label in self.labels.values()]

    async def get_label(self, label_id):
        self.calls.append(("get_label", label_id))
        return Label.model_validate(self._label(label_id))

    async def create_label(self, name, options: LabelOptions):
        self.calls.append(("create_label", name, options))
        if any(label["name"].lower() == name.lower() for label in self.labels.values()):
            raise RemoteCallFailed(409, "Label name exists or conflicts")
        label_id = f"Label_{next(self._ids)}"
        self.labels[label_id] = {
            "id": label_id,
            "name": name,
            "type": "user",
            "messageListVisibility": options.message_list_visibility,
            "labelListVisibility": options.label_list_visibility,
        }
        return Label.model_validate(self.labels[label_id])

    async def patch_label(self, label_id, updates):
        self.calls.append(("patch_label", label_id, dict(updates)))
        self._label(label_id).update(updates)
        return Label.model_validate(self.labels[label_id])

    async def delete_label(self, label_id):
        self.calls.append(("delete_label", label_id))
        self._label(label_id)
        del self.labels[label_id]

    async def modify_message(self, message_id, add_label_ids=None, remove_label_ids=None):
        self.calls.append(("modify_message", message_id))
        if message_id in self.failing_message_ids or message_id not in self.messages:
            raise RemoteCallFailed(404, f"Message {message_id} not found")
        label_ids = set(self.messages[message_id].get("labelIds", []))
        label_ids |= set(add_label_ids or [])
        label_ids -= set(remove_label_ids or [])
        self.messages[message_id]["labelIds"] = sorted(label_ids)
        return Message.model_validate(self.messages[message_id])

    async def delete_message(self, message_id):
        self.calls.append(("delete_message", message_id))
        if message_id in self.failing_message_ids or message_id not in self.messages:
            raise RemoteCallFailed(404, f"Message {message_id} not found")
        del self.messages[message_id]

    def calls_named(self, name):
        return [call for call in self.calls if call[0] == name]


SYSTEM_LABELS = [
    {"id": "INBOX", "name": "INBOX", "type": "system"},
    {"id": "TRASH", "name": "TRASH", "type": "system"},
]


@pytest.fixture
def fake_gmail():
    return FakeGmailClient(
        labels=SYSTEM_LABELS
        + [{"id": "Label_work", "name": "Work", "type": "user"}],
    )


@pytest.fixture
def mailbox_with_messages():
    def _make(count):
        return FakeGmailClient(
            labels=SYSTEM_LABELS,
            messages=[{"id": f"msg{i:03d}", "labelIds": ["INBOX"]} for i in range(count)],
        )

    return _make
