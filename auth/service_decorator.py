"""
Per-call Gmail service injection.

Every tool receives a bearer token in its access_token argument. The
decorator turns that token into an authenticated GmailClient and passes it
to the tool as its first argument. The token is used for this call only
and never stored.
"""

import functools
import inspect
import logging
from typing import Annotated, Optional

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from pydantic import Field

from auth.scopes import TOOL_SCOPE_GROUPS, get_scopes_for_group
from core.errors import AuthenticationMissing
from gmail.client import GmailClient

logger = logging.getLogger(__name__)

ACCESS_TOKEN_PARAM = "access_token"
AccessToken = Annotated[Optional[str], Field(description="Access token for Gmail API")]


def build_gmail_client(access_token: Optional[str], scope_group: str) -> GmailClient:
    """
    Build a GmailClient for a single tool call.

    Raises:
        AuthenticationMissing: If no token was supplied.
    """
    if not access_token or not access_token.strip():
        raise AuthenticationMissing()

    credentials = Credentials(
        token=access_token.strip(), scopes=get_scopes_for_group(scope_group)
    )
    service = build("gmail", "v1", credentials=credentials, cache_discovery=False)
    return GmailClient(service, credentials)


def require_gmail_service(func):
    """
    Decorator injecting a GmailClient as the tool's first parameter.

    The scope group comes from auth.scopes.TOOL_SCOPE_GROUPS, keyed by the
    tool's function name. The wrapped tool's public signature drops the
    injected parameter and gains a keyword access_token argument, which is
    what the MCP schema exposes.
    """
    scope_group = TOOL_SCOPE_GROUPS[func.__name__]

    original_sig = inspect.signature(func)
    params = list(original_sig.parameters.values())
    injected = params[0].name
    public_params = params[1:] + [
        inspect.Parameter(
            ACCESS_TOKEN_PARAM,
            inspect.Parameter.KEYWORD_ONLY,
            default=None,
            annotation=AccessToken,
        )
    ]

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        bound = wrapper.__signature__.bind(*args, **kwargs)
        access_token = bound.arguments.pop(ACCESS_TOKEN_PARAM, None)
        client = build_gmail_client(access_token, scope_group)
        logger.debug(f"[{func.__name__}] Gmail client ready ({scope_group})")
        return await func(client, **bound.arguments)

    wrapper.__signature__ = original_sig.replace(parameters=public_params)
    annotations = {
        name: hint for name, hint in func.__annotations__.items() if name != injected
    }
    wrapper.__annotations__ = {**annotations, ACCESS_TOKEN_PARAM: AccessToken}
    return wrapper
