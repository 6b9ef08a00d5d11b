from typing import Iterator
from ..core.storage import DocumentStore
from ..schemas.jobs import complete_key


class PendingSentences:
    """
    Sentences still waiting for an annotation type.

    Every iteration starts from a fresh snapshot of the store's sentence ids and
    checks completion lazily, so it can be restarted at any time. Counts are
    advisory: another job may complete a sentence right after it was counted.
    """

    def __init__(self, store: DocumentStore, anno_type: str):
        self.store = store
        self.anno_type = anno_type

    def __iter__(self) -> Iterator[str]:
        key = complete_key(self.anno_type)
        for sentence_id in self.store.find_ids("sentence"):
            sentence = self.store.get_entity(sentence_id)
            if sentence is not None and not sentence.get(key):
                yield sentence_id

    def __len__(self) -> int:
        return sum(1 for _ in self)


def sentences_pending(store: DocumentStore, anno_type: str) -> PendingSentences:
    return PendingSentences(store, anno_type)
