# =============================================================================
# core/__init__.py
# =============================================================================
# Framework-free logic: configuration, the platform gateway, parameter
# validation and the documentation search engine.
#
# Nothing in this package imports FastMCP.  Every module here can be used
# (and tested) from a plain Python process.
# =============================================================================
