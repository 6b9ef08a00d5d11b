"""
CoNLL-U rendering of stored sentences and documents.

Only what the prediction services need is produced: metadata comment lines
followed by the ten token columns. Token ids are computed from the order of
the sentence's tokens: supertokens span the subtokens that follow them and
ellipsis tokens are numbered after the preceding word.
"""
from typing import Dict, List, Optional
from ..schemas.conllu import Document, Sentence, Token, TokenType
from .storage import DocumentStore

COLUMNS = ("form", "lemma", "upos", "xpos", "feats", "head", "deprel", "deps", "misc")


def _conllu_ids(tokens: List[Token]) -> Dict[str, str]:
    ids: Dict[str, str] = {}
    position = 0
    ellipsis_count = 0
    for token in tokens:
        if token.token_type == TokenType.supertoken:
            span = len(token.subtokens)
            ids[token.id] = f"{position + 1}-{position + span}"
        elif token.token_type == TokenType.ellipsis:
            ellipsis_count += 1
            ids[token.id] = f"{position}.{ellipsis_count}"
        else:
            position += 1
            ellipsis_count = 0
            ids[token.id] = str(position)
    return ids


def _column_value(token: Token, column: str, ids: Dict[str, str]) -> str:
    if token.token_type == TokenType.supertoken and column not in ("form", "misc"):
        return "_"
    value: Optional[str] = getattr(token, column)
    if column == "head":
        if token.token_type == TokenType.ellipsis or value is None:
            return "_"
        return "0" if value == "root" else ids.get(value, "_")
    return value or "_"


def sentence_to_conllu(sentence: Sentence) -> str:
    """Render a sentence view as a CoNLL-U block without the trailing blank line"""
    ids = _conllu_ids(sentence.tokens)
    lines = [f"# {key} = {value}" for key, value in sentence.metadata]
    for token in sentence.tokens:
        row = [ids[token.id]] + [_column_value(token, column, ids) for column in COLUMNS]
        lines.append("\t".join(row))
    return "\n".join(lines) + "\n"


def serialize_sentence(store: DocumentStore, sentence_id: str) -> Optional[str]:
    """Serialize a stored sentence, or return None if it no longer exists"""
    sentence = Sentence.from_record(store.pull(sentence_id))
    if sentence is None:
        return None
    return sentence_to_conllu(sentence)


def serialize_document(store: DocumentStore, document_id: str) -> Optional[str]:
    """Serialize every sentence of a document, separated by blank lines"""
    record = store.pull(document_id)
    if record is None:
        return None
    document = Document.model_validate(record)
    return "\n".join(sentence_to_conllu(sentence) for sentence in document.sentences) + "\n"
