from pydantic import BaseModel, ConfigDict
from typing import List, Optional, Any, Dict
from enum import Enum


class TokenType(str, Enum):
    plain = "plain"
    ellipsis = "ellipsis"
    supertoken = "supertoken"
    subtoken = "subtoken"


class Token(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    token_type: TokenType = TokenType.plain
    form: Optional[str] = None
    lemma: Optional[str] = None
    upos: Optional[str] = None
    xpos: Optional[str] = None
    feats: Optional[str] = None
    head: Optional[str] = None
    deprel: Optional[str] = None
    deps: Optional[str] = None
    misc: Optional[str] = None
    subtokens: List[str] = []


class Sentence(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    document_id: Optional[str] = None
    metadata: List[List[str]] = []
    tokens: List[Token] = []

    @classmethod
    def from_record(cls, record: Optional[Dict[str, Any]]) -> Optional["Sentence"]:
        """Build a sentence view from a pulled store record, or None if it is absent"""
        if record is None:
            return None
        return cls.model_validate(record)


class Document(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: Optional[str] = None
    sentences: List[Sentence] = []
    stats: Dict[str, Any] = {}
