from pathlib import Path
from typing import Dict, List, Optional, Any, Iterable, Tuple
from uuid import UUID
from ..core.config import settings
from ..core.errors import MissingEntityError, StoreTransactionError
import copy
import json
import logging
import os
import threading

logger = logging.getLogger(__name__)

# ("put", record), ("delete", entity_id) or ("set", entity_id, key, value)
Fact = Tuple[Any, ...]

STORE_FILENAME = "store.json"


def to_jsonable(value: Any) -> Any:
    """Convert UUID keys and values to strings so the value survives json.dumps"""
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, dict):
        return {str(k) if isinstance(k, UUID) else k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


class DocumentStore:
    """
    Entity store for documents, sentences and tokens.

    Records are dicts keyed by their "id". Reads return copies; all mutation goes
    through write_transaction, which applies every fact or none of them. When a
    storage path is given the store is loaded from and flushed to a JSON file.
    """

    def __init__(self, storage_path: Optional[str] = None):
        self.storage_path = Path(storage_path) if storage_path else None
        self._entities: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

        if self.storage_path is not None:
            path = self.storage_path / STORE_FILENAME
            if path.exists():
                with open(path, 'r', encoding='utf-8') as f:
                    self._entities = json.load(f)["entities"]
                logger.info("Loaded %d entities from %s", len(self._entities), path)

    def get_entity(self, entity_id: str) -> Optional[Dict[str, Any]]:
        """Return a copy of the record with this id, or None"""
        record = self._entities.get(entity_id)
        return copy.deepcopy(record) if record is not None else None

    def get_parent(self, relation: str, child_id: str) -> Optional[str]:
        """Return the id of the entity whose `relation` list contains child_id"""
        for entity_id, record in list(self._entities.items()):
            if child_id in record.get(relation, ()):
                return entity_id
        return None

    def find_ids(self, kind: str) -> List[str]:
        """All ids of records of a kind, in insertion order"""
        return [entity_id for entity_id, record in list(self._entities.items())
                if record.get("kind") == kind]

    def pull(self, entity_id: str) -> Optional[Dict[str, Any]]:
        """
        Return a record with its children expanded: a sentence gets its token
        records and its document id, a document gets its pulled sentences.
        """
        record = self.get_entity(entity_id)
        if record is None:
            return None

        kind = record.get("kind")
        if kind == "sentence":
            record["tokens"] = [self.get_entity(token_id) for token_id in record.get("tokens", [])]
            record["tokens"] = [t for t in record["tokens"] if t is not None]
            record["document_id"] = self.get_parent("sentences", entity_id)
        elif kind == "document":
            sentences = [self.pull(sentence_id) for sentence_id in record.get("sentences", [])]
            record["sentences"] = [s for s in sentences if s is not None]
        return record

    def write_transaction(self, facts: Iterable[Fact]) -> None:
        """
        Apply all facts atomically. Raises StoreTransactionError if any fact is invalid.

        A "set" fact changes one key of the current record and leaves the others
        as they are at commit time, so writers of different keys on the same
        entity never undo each other. Setting a key on a missing entity raises
        MissingEntityError.
        """
        facts = list(facts)
        with self._lock:
            staged = dict(self._entities)
            for fact in facts:
                if not isinstance(fact, (list, tuple)) or not fact:
                    raise StoreTransactionError(f"Malformed fact: {fact!r}")
                op = fact[0]
                if op == "put" and len(fact) == 2:
                    record = fact[1]
                    if not isinstance(record, dict) or not record.get("id"):
                        raise StoreTransactionError("A put fact needs a record with an id")
                    staged[record["id"]] = copy.deepcopy(record)
                elif op == "delete" and len(fact) == 2:
                    staged.pop(fact[1], None)
                elif op == "set" and len(fact) == 4:
                    _, entity_id, key, value = fact
                    if entity_id not in staged:
                        raise MissingEntityError(f"Cannot set {key!r} on missing entity {entity_id}")
                    record = dict(staged[entity_id])
                    record[key] = copy.deepcopy(value)
                    staged[entity_id] = record
                elif op in ("put", "delete", "set"):
                    raise StoreTransactionError(f"Malformed fact: {fact!r}")
                else:
                    raise StoreTransactionError(f"Unknown operation {op!r}")

            if self.storage_path is not None:
                self._flush(staged)
            self._entities = staged

    def _flush(self, entities: Dict[str, Dict[str, Any]]) -> None:
        """Write the store to disk through a temporary file so a crash never leaves half a file"""
        self.storage_path.mkdir(parents=True, exist_ok=True)
        path = self.storage_path / STORE_FILENAME
        tmp_path = path.with_suffix(".json.tmp")
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump({"entities": to_jsonable(entities)}, f, indent=2)
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as e:
            tmp_path.unlink(missing_ok=True)
            raise StoreTransactionError(f"Failed to write store to {path}: {e}") from e


# Global store instance
document_store = DocumentStore(settings.STORAGE_PATH)
