"""MCP tool server for the Sidearm (SDRM) media protection platform."""

__version__ = "0.2.0"
