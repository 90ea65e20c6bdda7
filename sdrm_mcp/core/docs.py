# =============================================================================
# core/docs.py  -  Documentation search over llms-full.txt
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Answers "find documentation about X" without touching the platform's
#   business endpoints.  On every call it:
#     1. Fetches <base_url>/llms-full.txt anonymously
#     2. Splits it into sections on lines consisting of "---"
#     3. Scores each section by counting query-term occurrences
#     4. Returns the top sections (or an index view for a blank query)
#
# Nothing is cached between calls.  Ranking is a plain count of
# case-insensitive substring hits, so "cat" also matches "category".
# =============================================================================

import re
from typing import Optional

from sdrm_mcp.core.errors import CorpusFetchError, RequestError, TransportError
from sdrm_mcp.core.gateway import GatewayClient
from sdrm_mcp.core.models import DocSection, RankedMatch

CORPUS_PATH = "/llms-full.txt"
DEFAULT_TITLE = "Overview"
MAX_RESULTS = 5
INDEX_FALLBACK_CHARS = 1500

_DIVIDER_SPLIT = re.compile(r"\n---\n")
SECTION_JOIN = "\n\n---\n\n"
_HEADING = re.compile(r"^#{1,2} (.+)", re.MULTILINE)


async def fetch_corpus(api: GatewayClient) -> str:
    """Read the full documentation corpus.

    Raises:
        CorpusFetchError: The corpus could not be read, for any reason.
    """
    try:
        return await api.fetch_text(CORPUS_PATH)
    except RequestError as exc:
        raise CorpusFetchError(f"HTTP {exc.status_code} fetching docs") from exc
    except TransportError as exc:
        raise CorpusFetchError(f"Could not fetch docs from {api.url_for(CORPUS_PATH)}: {exc}") from exc


def split_into_sections(text: str) -> list[DocSection]:
    """Partition the corpus on divider lines, keeping corpus order."""
    sections: list[DocSection] = []
    for chunk in _DIVIDER_SPLIT.split(text):
        body = chunk.strip()
        if not body:
            continue
        heading = _HEADING.search(body)
        title = heading.group(1).strip() if heading else DEFAULT_TITLE
        sections.append(DocSection(title=title, body=body))
    return sections


def query_terms(query: str) -> list[str]:
    """Lower-cased whitespace-separated terms, single characters dropped."""
    return [term for term in query.lower().split() if len(term) > 1]


def score_section(section: DocSection, terms: list[str]) -> int:
    haystack = f"{section.title}\n{section.body}".lower()
    return sum(haystack.count(term) for term in terms)


def rank_sections(sections: list[DocSection], query: Optional[str]) -> list[RankedMatch]:
    """Score sections against a query and keep the best MAX_RESULTS.

    Sections that score 0 are dropped.  The sort is stable, so equal scores
    keep corpus order.  A blank query matches nothing.
    """
    if not query or not query.strip():
        return []
    terms = query_terms(query)
    scored = [RankedMatch(section=section, score=score_section(section, terms)) for section in sections]
    matches = [match for match in scored if match.score > 0]
    matches.sort(key=lambda match: match.score, reverse=True)
    return matches[:MAX_RESULTS]


def render_index(sections: list[DocSection], corpus_text: str) -> str:
    """Overview text followed by a numbered list of every section title."""
    overview = sections[0].body if sections else corpus_text[:INDEX_FALLBACK_CHARS]
    index = "\n".join(f"{number}. {section.title}" for number, section in enumerate(sections, start=1))
    return f"{overview}{SECTION_JOIN}## Available Sections\n{index}"


def build_excerpt(corpus_text: str, query: Optional[str], corpus_url: str) -> str:
    """Produce the text answer for a docs query against an already-fetched corpus."""
    sections = split_into_sections(corpus_text)

    if not query or not query.strip():
        return render_index(sections, corpus_text)

    ranked = rank_sections(sections, query)
    if not ranked:
        return (
            f'No documentation sections matched "{query}".\n\n'
            "Try broader terms, or omit the query to see all available topics.\n\n"
            f"Full reference: {corpus_url}"
        )
    return SECTION_JOIN.join(match.section.body for match in ranked)


async def search_docs(api: GatewayClient, query: Optional[str] = None) -> str:
    """Fetch the corpus and answer ``query`` against it."""
    corpus = await fetch_corpus(api)
    return build_excerpt(corpus, query, api.url_for(CORPUS_PATH))
