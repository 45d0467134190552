"""
Shared utilities for the Gmail MCP tools.
"""

import asyncio
import functools
import logging
import ssl

from googleapiclient.errors import HttpError

from core.errors import AuthenticationMissing, GmailToolError, RemoteCallFailed

logger = logging.getLogger(__name__)

SSL_MAX_RETRIES = 3


def remote_error_from_http(error: HttpError) -> RemoteCallFailed:
    """Convert a googleapiclient HttpError into a RemoteCallFailed."""
    status = getattr(error.resp, "status", None)
    try:
        status = int(status) if status is not None else None
    except (TypeError, ValueError):
        status = None
    message = getattr(error, "reason", None) or str(error)
    return RemoteCallFailed(status, message)


def handle_http_errors(
    tool_name: str, is_read_only: bool = False, service_type: str = "gmail"
):
    """
    Decorator that turns tool failures into a single error line.

    Read-only tools are retried on transient SSL errors with exponential
    backoff. Every other failure is logged and rendered as text, so a
    failing tool never takes the server down.

    Args:
        tool_name: Name used in log lines.
        is_read_only: Whether the tool only reads mailbox state.
        service_type: Google service the tool talks to.
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            for attempt in range(SSL_MAX_RETRIES):
                try:
                    return await func(*args, **kwargs)
                except ssl.SSLError as e:
                    if is_read_only and attempt < SSL_MAX_RETRIES - 1:
                        delay = 2**attempt
                        logger.warning(
                            f"[{tool_name}] SSL error on attempt {attempt + 1}: {e}. Retrying in {delay}s..."
                        )
                        await asyncio.sleep(delay)
                        continue
                    logger.error(f"[{tool_name}] SSL error talking to {service_type}: {e}")
                    return f"Error: SSL error talking to {service_type}: {e}"
                except AuthenticationMissing as e:
                    logger.error(f"[{tool_name}] {e}")
                    return f"Authentication error: {e}"
                except HttpError as e:
                    remote_error = remote_error_from_http(e)
                    logger.error(f"[{tool_name}] {service_type} API error: {remote_error}")
                    return f"Error: {remote_error}"
                except GmailToolError as e:
                    logger.error(f"[{tool_name}] {type(e).__name__}: {e}")
                    return f"Error: {e}"
                except Exception as e:
                    logger.exception(f"[{tool_name}] Unexpected error: {e}")
                    return f"Error: {e}"

        return wrapper

    return decorator
