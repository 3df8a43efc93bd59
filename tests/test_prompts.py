"""Prompt builder tests."""

from formulagen.prompts import EXPLANATION_MARKER, FORMULA_MARKER, build_prompt


def test_prompt_embeds_description_verbatim():
    description = "sum column A where column B equals 'yes' {and} 100%"
    prompt = build_prompt(description)
    assert description in prompt


def test_prompt_names_both_section_headers():
    prompt = build_prompt('average of C2:C10')
    assert FORMULA_MARKER in prompt
    assert EXPLANATION_MARKER in prompt
    assert prompt.index(FORMULA_MARKER) < prompt.index(EXPLANATION_MARKER)


def test_prompt_asks_for_numbered_steps():
    prompt = build_prompt('count non-empty cells')
    assert 'starting with a number and a dot' in prompt


def test_prompt_is_deterministic():
    assert build_prompt('x') == build_prompt('x')
    assert build_prompt('x') != build_prompt('y')
