# =============================================================================
# tools/__init__.py
# =============================================================================
# FastMCP translation layer between the agent and core/.
#
# Each tool:
#   1. Validates its parameters with a core/params.py struct
#   2. Makes one call through core/gateway.py (or runs core/docs.py)
#   3. Renders the answer as text for the agent
#
# Tools hold no business logic; the platform owns it.
# =============================================================================
