"""
Thin async wrapper over the Gmail API service.

Every method issues exactly one remote call, runs the blocking
googleapiclient request in a worker thread, and returns an explicit record
type. HttpError is converted to RemoteCallFailed at this boundary.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httplib2
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.errors import HttpError

from core.utils import remote_error_from_http
from gmail.models import Label, LabelOptions, Message, MessageStub

logger = logging.getLogger(__name__)

USER_ID = "me"


class GmailClient:
    """Per-call Gmail API client. Holds nothing beyond the request's credentials."""

    def __init__(self, service: Any, credentials: Optional[Any] = None):
        self._service = service
        self._credentials = credentials

    def _new_http(self) -> Optional[AuthorizedHttp]:
        # httplib2 connections are not thread-safe; each request gets its own.
        if self._credentials is None:
            return None
        return AuthorizedHttp(self._credentials, http=httplib2.Http())

    async def _execute(self, request) -> Dict[str, Any]:
        http = self._new_http()
        try:
            if http is None:
                response = await asyncio.to_thread(request.execute)
            else:
                response = await asyncio.to_thread(request.execute, http=http)
        except HttpError as e:
            raise remote_error_from_http(e) from e
        return response or {}

    # Messages

    async def list_messages(self, query: str, max_results: int) -> List[MessageStub]:
        response = await self._execute(
            self._service.users()
            .messages()
            .list(userId=USER_ID, q=query, maxResults=max_results)
        )
        return [MessageStub.model_validate(m) for m in response.get("messages") or []]

    async def get_message(
        self,
        message_id: str,
        format: str = "full",
        metadata_headers: Optional[List[str]] = None,
    ) -> Message:
        params: Dict[str, Any] = {"userId": USER_ID, "id": message_id, "format": format}
        if metadata_headers:
            params["metadataHeaders"] = metadata_headers
        response = await self._execute(
            self._service.users().messages().get(**params)
        )
        return Message.model_validate(response)

    async def send_message(self, raw: str, thread_id: Optional[str] = None) -> str:
        body: Dict[str, Any] = {"raw": raw}
        if thread_id:
            body["threadId"] = thread_id
        response = await self._execute(
            self._service.users().messages().send(userId=USER_ID, body=body)
        )
        return response.get("id", "")

    async def create_draft(self, raw: str, thread_id: Optional[str] = None) -> str:
        message: Dict[str, Any] = {"raw": raw}
        if thread_id:
            message["threadId"] = thread_id
        response = await self._execute(
            self._service.users()
            .drafts()
            .create(userId=USER_ID, body={"message": message})
        )
        return response.get("id", "")

    async def modify_message(
        self,
        message_id: str,
        add_label_ids: Optional[List[str]] = None,
        remove_label_ids: Optional[List[str]] = None,
    ) -> Message:
        body: Dict[str, List[str]] = {}
        if add_label_ids:
            body["addLabelIds"] = add_label_ids
        if remove_label_ids:
            body["removeLabelIds"] = remove_label_ids
        response = await self._execute(
            self._service.users()
            .messages()
            .modify(userId=USER_ID, id=message_id, body=body)
        )
        return Message.model_validate({"id": message_id, **response})

    async def delete_message(self, message_id: str) -> None:
        await self._execute(
            self._service.users().messages().delete(userId=USER_ID, id=message_id)
        )

    # Labels

    async def list_labels(self) -> List[Label]:
        response = await self._execute(
            self._service.users().labels().list(userId=USER_ID)
        )
        return [Label.model_validate(label) for label in response.get("labels") or []]

    async def get_label(self, label_id: str) -> Label:
        response = await self._execute(
            self._service.users().labels().get(userId=USER_ID, id=label_id)
        )
        return Label.model_validate(response)

    async def create_label(self, name: str, options: LabelOptions) -> Label:
        body = {
            "name": name,
            "messageListVisibility": options.message_list_visibility,
            "labelListVisibility": options.label_list_visibility,
        }
        response = await self._execute(
            self._service.users().labels().create(userId=USER_ID, body=body)
        )
        return Label.model_validate(response)

    async def patch_label(self, label_id: str, updates: Dict[str, Any]) -> Label:
        """Partial update: fields missing from updates are left untouched."""
        response = await self._execute(
            self._service.users()
            .labels()
            .patch(userId=USER_ID, id=label_id, body=updates)
        )
        return Label.model_validate(response)

    async def delete_label(self, label_id: str) -> None:
        await self._execute(
            self._service.users().labels().delete(userId=USER_ID, id=label_id)
        )
