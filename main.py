# =============================================================================
# main.py  -  Entry Point for the Sidearm MCP server
# =============================================================================
#
# HOW TO RUN:
#   SDRM_API_KEY=... uv run python main.py
#
# The server speaks MCP over stdio: an MCP client (Claude Desktop, Cursor,
# an ADK agent, ...) starts this script as a subprocess and exchanges
# messages on stdin/stdout.  Logs go to stderr.
# =============================================================================

from sdrm_mcp.tools.mcp_server import main

if __name__ == "__main__":
    main()
