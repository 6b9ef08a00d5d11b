"""
Validation of prediction service responses.

A service replies with JSON of the form

    {"probabilities": [[["NOUN", 0.9], ["VERB", 0.1]], [["DET", 0.99]], ...]}

holding one list of [label, probability] pairs per eligible token of the
sentence, in token order. Nothing about the reply is trusted beyond what is
checked here.
"""
from typing import Any, List, Optional, Sequence
from uuid import UUID
from ..schemas.conllu import Sentence, Token, TokenType
from ..schemas.jobs import SENTENCE_ANNO_TYPE, Distribution, Label, ValidationResult
import json
import logging
import re

logger = logging.getLogger(__name__)

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


def eligible_tokens(anno_type: str, tokens: Sequence[Token]) -> List[Token]:
    """
    Tokens a service must predict for. Sentence splitting only looks at plain
    tokens; every other annotation type covers all tokens except supertokens.
    """
    if anno_type == SENTENCE_ANNO_TYPE:
        return [t for t in tokens if t.token_type == TokenType.plain]
    return [t for t in tokens if t.token_type != TokenType.supertoken]


def parse_label(label: str) -> Label:
    if UUID_PATTERN.match(label):
        return UUID(label)
    return label


def _is_pair(item: Any) -> bool:
    return (
        isinstance(item, list)
        and len(item) == 2
        and isinstance(item[0], str)
        and isinstance(item[1], (int, float))
        and not isinstance(item[1], bool)
    )


def parse_response(body: str, sentence_id: str, token_count: int) -> ValidationResult:
    """Parse a raw response body, checking it holds token_count well-formed distributions"""
    try:
        parsed = json.loads(body)
    except (TypeError, ValueError, RecursionError) as e:
        return ValidationResult.bad_data(f"NLP service responded with malformed JSON: {e}")

    if not isinstance(parsed, dict) or "probabilities" not in parsed:
        return ValidationResult.bad_data('The JSON response must have a top-level "probabilities" key.')

    token_probas = parsed["probabilities"]
    if not isinstance(token_probas, list):
        return ValidationResult.bad_data('"probabilities" must be a list with one entry per token.')

    if len(token_probas) != token_count:
        return ValidationResult.bad_data(
            f"Expected {token_count} probas for {sentence_id} but found {len(token_probas)}. "
            "Make sure that you are yielding probas for normal tokens and ellipsis tokens, but not supertokens."
        )

    if not all(isinstance(probas, list) and all(_is_pair(p) for p in probas) for probas in token_probas):
        return ValidationResult.bad_data(
            '"probabilities" key must be a list of list of lists: for each token, there should be '
            "a list of pairs where each pair has a label and its probability"
        )

    try:
        distributions: List[Distribution] = [
            {parse_label(label): float(proba) for label, proba in probas} for probas in token_probas
        ]
    except OverflowError as e:
        return ValidationResult.bad_data(f"Probability too large to store: {e}")
    return ValidationResult.ok(distributions)


def validate(anno_type: str, sentence: Optional[Sentence], body: str) -> ValidationResult:
    """
    Check a service's reply against the sentence it was about.

    Returns a result whose status is
    - dne: the sentence no longer exists
    - bad_data: something was wrong with the reply; `reason` says what
    - ok: `data` holds one distribution per eligible token, in token order
    """
    if sentence is None:
        return ValidationResult.dne()

    tokens = eligible_tokens(anno_type, sentence.tokens)
    result = parse_response(body, sentence.id, len(tokens))
    if result.reason:
        logger.error(result.reason)
    return result
