"""
MCP server instance shared by the tool modules.
"""

import logging
from typing import Optional

from fastmcp import FastMCP
from fastmcp.tools import Tool

logger = logging.getLogger(__name__)

SERVER_NAME = "gmail"


class GmailMCP(FastMCP):
    """
    FastMCP server whose tool() decorator registers the function and hands
    it back unchanged, so tool modules keep plain callable coroutines.
    """

    def tool(self, name: Optional[str] = None, description: Optional[str] = None):
        def decorator(fn):
            tool = Tool.from_function(
                fn, name=name or fn.__name__, description=description
            )
            self.add_tool(tool)
            logger.debug(f"Registered tool '{tool.name}'")
            return fn

        return decorator


server = GmailMCP(name=SERVER_NAME)
