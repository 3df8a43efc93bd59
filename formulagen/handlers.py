# formulagen/handlers.py
import logging
from dataclasses import dataclass
from typing import List, Tuple, Union

from .llm_helper import RawCompletion
from .prompts import EXPLANATION_MARKER, FORMULA_MARKER

logger = logging.getLogger(__name__)

# Models like to wrap the formula in inline code or quotes
WRAPPING_CHARS = "`'"


class InterpreterError(Exception):
    """Raised when a completion cannot be turned into a formula result."""

    kind = 'InterpreterError'


class MalformedResponse(InterpreterError):
    """The completion does not carry the FORMULA/EXPLANATION sections."""

    kind = 'MalformedResponse'


@dataclass(frozen=True)
class ParsedResult:
    formula: str
    explanation: str

    @property
    def steps(self) -> List[str]:
        """Explanation lines in their original order, one per rendered paragraph."""
        return self.explanation.splitlines()


def interpret(raw: Union[RawCompletion, str]) -> ParsedResult:
    """
    Parse a model completion into a formula and its explanation.

    Only the first FORMULA: marker and the first EXPLANATION: marker after it
    define the split; anything later in the explanation is kept as text.

    Raises:
        MalformedResponse: a marker is missing or a section is blank.
    """
    text = raw.text if isinstance(raw, RawCompletion) else raw
    formula_span, explanation_span = split_sections(text)

    formula = clean_formula(formula_span)
    explanation = explanation_span.strip()

    if not formula:
        raise MalformedResponse('Formula section is empty')
    if not explanation:
        raise MalformedResponse('Explanation section is empty')

    logger.debug("Parsed formula of %d chars with %d explanation lines",
                 len(formula), len(explanation.splitlines()))
    return ParsedResult(formula=formula, explanation=explanation)


def split_sections(text: str) -> Tuple[str, str]:
    """
    Return the raw (formula, explanation) spans of a completion.

    Two-phase scan: find the formula marker, then the first explanation
    marker after it.
    """
    formula_at = text.find(FORMULA_MARKER)
    if formula_at < 0:
        raise MalformedResponse(f'{FORMULA_MARKER} marker not found')

    formula_start = formula_at + len(FORMULA_MARKER)
    explanation_at = text.find(EXPLANATION_MARKER, formula_start)
    if explanation_at < 0:
        raise MalformedResponse(f'{EXPLANATION_MARKER} marker not found')

    return (
        text[formula_start:explanation_at],
        text[explanation_at + len(EXPLANATION_MARKER):],
    )


def clean_formula(span: str) -> str:
    """Trim the formula and drop at most one wrapping quote or backtick on each side."""
    formula = span.strip()
    if formula and formula[0] in WRAPPING_CHARS:
        formula = formula[1:]
    if formula and formula[-1] in WRAPPING_CHARS:
        formula = formula[:-1]
    return formula.strip()
