from typing import Any, Dict
from ..schemas.jobs import PROBAS_SUFFIX, COMPLETE_SUFFIX
from .errors import MissingEntityError
from .storage import DocumentStore
import logging

logger = logging.getLogger(__name__)


def calculate_stats(store: DocumentStore, document_id: str) -> Dict[str, Any]:
    """
    Recompute the statistics of a document from scratch and store them on the
    document record. Returns the new stats, or an empty dict if the document
    no longer exists.
    """
    record = store.pull(document_id)
    if record is None:
        logger.info("Document %s no longer exists, skipping stats", document_id)
        return {}

    sentences = record.get("sentences", [])
    completed: Dict[str, int] = {}
    top_probas: Dict[str, list] = {}
    token_count = 0

    for sentence in sentences:
        for key, value in sentence.items():
            if key.endswith(COMPLETE_SUFFIX) and value:
                anno_type = key[:-len(COMPLETE_SUFFIX)]
                completed[anno_type] = completed.get(anno_type, 0) + 1
        for token in sentence.get("tokens", []):
            token_count += 1
            for key, value in token.items():
                if key.endswith(PROBAS_SUFFIX) and value:
                    anno_type = key[:-len(PROBAS_SUFFIX)]
                    top_probas.setdefault(anno_type, []).append(max(value.values()))

    stats = {
        "sentence_count": len(sentences),
        "token_count": token_count,
        "completed": completed,
        "mean_top_proba": {
            anno_type: sum(values) / len(values) for anno_type, values in top_probas.items()
        },
    }

    try:
        store.write_transaction([("set", document_id, "stats", stats)])
    except MissingEntityError:
        logger.info("Document %s was deleted while its stats were computed", document_id)
    return stats
