"""
LLM Prompt Templates
Relevance-gating prompt for RAG post search, plus the verdict rule.
"""

from typing import Sequence


SYSTEM_PROMPT_RELEVANCE = """You are a relevance evaluator for search results. Your job is to determine if the provided posts are relevant to the user's query.
Respond with ONLY one word:
- "RELEVANT" if at least one post directly relates to or could answer the query
- "NOT_RELEVANT" if none of the posts are related to the query"""


PROMPT_RELEVANCE_USER = """Query: "{query}"

Posts:
{context}

Are these posts relevant?"""


PROMPT_RELEVANCE_CONTEXT_ITEM = '[{index}] Post by {author}: "{content}"'


def build_relevance_prompts(
    query: str,
    candidates: Sequence[tuple[str, str]],
) -> tuple[str, str]:
    """
    Build (system, user) prompts for the relevance classifier.

    Args:
        query: Sanitized search query
        candidates: (author_name, content_preview) pairs in rank order

    Returns:
        (system_prompt, user_prompt)
    """
    context = "\n\n".join(
        PROMPT_RELEVANCE_CONTEXT_ITEM.format(index=i, author=author or "Unknown", content=content)
        for i, (author, content) in enumerate(candidates, start=1)
    )
    return SYSTEM_PROMPT_RELEVANCE, PROMPT_RELEVANCE_USER.format(query=query, context=context)


def is_relevant_verdict(response: str) -> bool:
    """
    Decide relevance from the raw classifier output.

    True when the upper-cased response contains "RELEVANT" and does not
    contain "NOT". Ambiguous answers such as "NOT RELEVANT BUT SOMEWHAT
    RELEVANT" therefore count as not relevant.
    """
    verdict = response.strip().upper()
    return "RELEVANT" in verdict and "NOT" not in verdict
