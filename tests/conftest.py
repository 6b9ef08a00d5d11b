import sys
import uuid
from pathlib import Path

# Add the project root to the path so tests can import conllu_service
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from conllu_service.core.storage import DocumentStore


def new_id() -> str:
    return str(uuid.uuid4())


def add_document(store, sentences, name="test_doc"):
    """
    Put a document into the store. `sentences` is a list of sentences, each a
    list of (form, token_type) pairs. A supertoken owns the subtokens directly
    following it. Returns (document_id, [sentence ids], [[token ids], ...]).
    """
    document_id = new_id()
    facts = []
    sentence_ids = []
    all_token_ids = []

    for index, tokens in enumerate(sentences):
        sentence_id = new_id()
        records = [
            {"id": new_id(), "kind": "token", "token_type": token_type, "form": form}
            for form, token_type in tokens
        ]
        for position, record in enumerate(records):
            if record["token_type"] == "supertoken":
                subtokens = []
                for following in records[position + 1:]:
                    if following["token_type"] != "subtoken":
                        break
                    subtokens.append(following["id"])
                record["subtokens"] = subtokens
        facts.extend(("put", record) for record in records)
        facts.append(("put", {
            "id": sentence_id,
            "kind": "sentence",
            "metadata": [["sent_id", str(index + 1)]],
            "tokens": [record["id"] for record in records],
        }))
        sentence_ids.append(sentence_id)
        all_token_ids.append([record["id"] for record in records])

    facts.append(("put", {"id": document_id, "kind": "document", "name": name, "sentences": sentence_ids}))
    store.write_transaction(facts)
    return document_id, sentence_ids, all_token_ids


@pytest.fixture
def store():
    """An empty in-memory store"""
    return DocumentStore()


@pytest.fixture
def pos_document(store):
    """A document with one sentence of 3 plain tokens and 1 supertoken"""
    return add_document(store, [[
        ("The", "plain"),
        ("dog", "plain"),
        ("barks", "plain"),
        ("woof", "supertoken"),
    ]])


@pytest.fixture
def mixed_document(store):
    """A document whose sentence uses every token type"""
    return add_document(store, [
        [
            ("I", "plain"),
            ("can't", "supertoken"),
            ("ca", "subtoken"),
            ("n't", "subtoken"),
            ("go", "plain"),
            ("go", "ellipsis"),
            (".", "plain"),
        ],
        [
            ("Yes", "plain"),
            (".", "plain"),
        ],
    ])


@pytest.fixture
def sample_probabilities():
    """A well-formed reply body for pos_document"""
    return {"probabilities": [
        [["NOUN", 0.9], ["VERB", 0.1]],
        [["DET", 0.99]],
        [["NOUN", 0.8]],
    ]}
