"""
Runtime configuration for the Gmail MCP server.

Values come from environment variables. main.py loads a local .env file
before this module is imported.
"""

import os

VALID_TRANSPORTS = ("stdio", "streamable-http")

GMAIL_MCP_TRANSPORT = os.getenv("GMAIL_MCP_TRANSPORT", "stdio")
GMAIL_MCP_HOST = os.getenv("GMAIL_MCP_HOST", "0.0.0.0")
GMAIL_MCP_PORT = int(os.getenv("GMAIL_MCP_PORT", "8000"))
GMAIL_MCP_LOG_LEVEL = os.getenv("GMAIL_MCP_LOG_LEVEL", "INFO").upper()

DEFAULT_BATCH_SIZE = int(os.getenv("GMAIL_BATCH_SIZE", "50"))
DEFAULT_SEARCH_MAX_RESULTS = int(os.getenv("GMAIL_SEARCH_MAX_RESULTS", "10"))
MAX_PART_DEPTH = int(os.getenv("GMAIL_MAX_PART_DEPTH", "64"))
