from typing import List
from ..core.errors import MissingEntityError
from ..core.storage import DocumentStore, Fact
from ..schemas.conllu import Sentence
from ..schemas.jobs import Distribution, probas_key, complete_key
from .validation import eligible_tokens
import logging

logger = logging.getLogger(__name__)


def write_probas(store: DocumentStore, anno_type: str, sentence: Sentence,
                 distributions: List[Distribution]) -> int:
    """
    Attach each distribution to its eligible token under "<anno_type>/probas",
    in a single transaction. Returns the number of tokens written.

    Only the probas key of each token is touched. If any eligible token was
    deleted since the sentence was read, MissingEntityError is raised and
    nothing is written.
    """
    tokens = eligible_tokens(anno_type, sentence.tokens)
    if len(tokens) != len(distributions):
        raise ValueError(
            f"Got {len(distributions)} distributions for {len(tokens)} eligible tokens in {sentence.id}"
        )

    key = probas_key(anno_type)
    facts: List[Fact] = [
        ("set", token.id, key, dict(distribution)) for token, distribution in zip(tokens, distributions)
    ]
    store.write_transaction(facts)
    logger.info("Wrote %s for %d tokens of sentence %s", key, len(facts), sentence.id)
    return len(facts)


def complete_job(store: DocumentStore, anno_type: str, sentence_id: str) -> None:
    """Mark a sentence done for an annotation type. Missing or already complete sentences are left alone."""
    sentence = store.get_entity(sentence_id)
    key = complete_key(anno_type)
    if sentence is None or sentence.get(key):
        return
    try:
        store.write_transaction([("set", sentence_id, key, True)])
    except MissingEntityError:
        logger.info("Sentence %s was deleted before it could be marked complete", sentence_id)
