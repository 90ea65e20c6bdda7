# =============================================================================
# tools/instructions.py  -  Server instructions handed to the connecting agent
# =============================================================================
#
# MCP clients surface these instructions to the model alongside the tool
# list.  They describe the workflow across tools (discover, submit, poll);
# each tool's own docstring covers its parameters.
# =============================================================================


def get_server_instructions(base_url: str) -> str:
    """Build the instructions text with the active platform URL injected."""
    return f"""You are connected to Sidearm (SDRM), a media protection and detection
platform at {base_url}.

═══════════════════════════════════════════════════════════════════════
WORKFLOW
═══════════════════════════════════════════════════════════════════════
  1. DISCOVER: call list_algorithms before run_algorithm or
     extract_embeddings to get valid algorithm IDs.  Call search_docs
     when you need endpoint details, SDK usage or concepts.
  2. SUBMIT: run_algorithm, protect_media, extract_embeddings and
     detect_membership are asynchronous.  They return a job_id.
  3. POLL: call check_job with that job_id until the status is
     completed or failed.  Wait a few seconds between calls.
  4. MANAGE: register_media, list_media, get_media, update_media and
     delete_media work on your media library.  get_rights,
     get_provenance and get_billing are read-only.

search_media, detect_fingerprint and identify_media answer immediately.

═══════════════════════════════════════════════════════════════════════
RULES
═══════════════════════════════════════════════════════════════════════
  • Provide media as a public media_url OR base64 media, not both.
  • delete_media cannot be undone.  Confirm with the user first.
  • Tiers, levels, modes and methods are passed through as-is; use only
    the values listed in each tool's parameters.
  • A result starting with "Error:" means the call failed.  Report the
    message; do not retry blindly.
"""
