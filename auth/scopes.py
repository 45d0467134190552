"""
Gmail OAuth scopes and the scope groups each tool requires.
"""

from typing import Dict, List

GMAIL_READONLY_SCOPE = "https://www.googleapis.com/auth/gmail.readonly"
GMAIL_SEND_SCOPE = "https://www.googleapis.com/auth/gmail.send"
GMAIL_COMPOSE_SCOPE = "https://www.googleapis.com/auth/gmail.compose"
GMAIL_MODIFY_SCOPE = "https://www.googleapis.com/auth/gmail.modify"
GMAIL_LABELS_SCOPE = "https://www.googleapis.com/auth/gmail.labels"
# Permanent deletion is only granted by the full mail scope
GMAIL_FULL_SCOPE = "https://mail.google.com/"

SCOPE_GROUPS: Dict[str, List[str]] = {
    "gmail_read": [GMAIL_READONLY_SCOPE],
    "gmail_send": [GMAIL_SEND_SCOPE],
    "gmail_compose": [GMAIL_COMPOSE_SCOPE],
    "gmail_modify": [GMAIL_MODIFY_SCOPE],
    "gmail_labels": [GMAIL_LABELS_SCOPE],
    "gmail_delete": [GMAIL_FULL_SCOPE],
}

TOOL_SCOPE_GROUPS: Dict[str, str] = {
    "send_email": "gmail_send",
    "draft_email": "gmail_compose",
    "read_email": "gmail_read",
    "search_emails": "gmail_read",
    "modify_email": "gmail_modify",
    "delete_email": "gmail_delete",
    "list_email_labels": "gmail_read",
    "batch_modify_emails": "gmail_modify",
    "batch_delete_emails": "gmail_delete",
    "create_label": "gmail_labels",
    "update_label": "gmail_labels",
    "delete_label": "gmail_labels",
    "get_or_create_label": "gmail_labels",
}


def get_scopes_for_group(group: str) -> List[str]:
    """Scopes for one scope group; raises KeyError for unknown groups."""
    return list(SCOPE_GROUPS[group])


def get_scopes_for_tools(tool_names: List[str]) -> List[str]:
    """
    Unique scopes needed by the given tools, in first-seen order.

    Args:
        tool_names: Tool names as registered with the MCP server.

    Returns:
        List[str]: Deduplicated scope URLs.
    """
    scopes: List[str] = []
    for tool_name in tool_names:
        for scope in SCOPE_GROUPS[TOOL_SCOPE_GROUPS[tool_name]]:
            if scope not in scopes:
                scopes.append(scope)
    return scopes
