from abc import ABC, abstractmethod
from ..core.storage import DocumentStore


class ProbDistProvider(ABC):
    """Something that can attach predicted probability distributions to a sentence's tokens"""

    anno_type: str

    @abstractmethod
    def predict(self, store: DocumentStore, sentence_id: str) -> "ProbDistProvider":
        """Run one annotation job for a sentence, blocking until it is complete"""
