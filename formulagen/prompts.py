# formulagen/prompts.py
FORMULA_MARKER = 'FORMULA:'
EXPLANATION_MARKER = 'EXPLANATION:'

FORMULA_PROMPT_TEMPLATE = """Generate a Google Sheets formula based on this requirement: {description}
Format your response exactly like this, including the exact headers:

{formula_marker}
[The exact Google Sheets formula, nothing else]

{explanation_marker}
[A clear, step-by-step explanation of how the formula works, with each step on a new line starting with a number and a dot]"""


def build_prompt(description: str) -> str:
    """
    Build the instruction sent to the model for one formula request.

    The description is embedded verbatim; blank descriptions are rejected
    by the caller before this point.
    """
    return FORMULA_PROMPT_TEMPLATE.format(
        description=description,
        formula_marker=FORMULA_MARKER,
        explanation_marker=EXPLANATION_MARKER,
    )
