import pytest

from app.llm.prompts import SYSTEM_PROMPT_RELEVANCE, build_relevance_prompts, is_relevant_verdict


@pytest.mark.parametrize(
    ("response", "expected"),
    [
        ("RELEVANT", True),
        ("relevant", True),
        ("  Relevant.\n", True),
        ("NOT_RELEVANT", False),
        ("NOT RELEVANT", False),
        ("NOT RELEVANT BUT SOMEWHAT RELEVANT", False),
        ("I cannot tell", False),
        ("", False),
    ],
)
def test_relevance_verdict_rule(response: str, expected: bool) -> None:
    assert is_relevant_verdict(response) is expected


def test_relevance_prompt_numbers_candidates_with_authors() -> None:
    system_prompt, user_prompt = build_relevance_prompts(
        "brown fox",
        [("Jane", "The quick brown fox"), ("", "Lazy dog")],
    )

    assert system_prompt == SYSTEM_PROMPT_RELEVANCE
    assert user_prompt.startswith('Query: "brown fox"')
    assert '[1] Post by Jane: "The quick brown fox"' in user_prompt
    assert '[2] Post by Unknown: "Lazy dog"' in user_prompt
    assert user_prompt.rstrip().endswith("Are these posts relevant?")
