from pydantic import BaseModel, Field
from typing import List, Dict, Optional, Union
from enum import Enum
from uuid import UUID

SENTENCE_ANNO_TYPE = "sentence"
PROBAS_SUFFIX = "/probas"
COMPLETE_SUFFIX = "/complete"

Label = Union[UUID, str]
Distribution = Dict[Label, float]


class HttpProviderConfig(BaseModel):
    url: str
    anno_type: str = Field(min_length=1)


class ValidationStatus(str, Enum):
    ok = "ok"
    bad_data = "bad_data"
    dne = "dne"


class ValidationResult(BaseModel):
    status: ValidationStatus
    data: Optional[List[Distribution]] = None
    reason: Optional[str] = None

    @classmethod
    def ok(cls, data: List[Distribution]) -> "ValidationResult":
        return cls(status=ValidationStatus.ok, data=data)

    @classmethod
    def bad_data(cls, reason: str) -> "ValidationResult":
        return cls(status=ValidationStatus.bad_data, reason=reason)

    @classmethod
    def dne(cls) -> "ValidationResult":
        return cls(status=ValidationStatus.dne)


class JobState(str, Enum):
    dispatching = "dispatching"
    validating = "validating"
    retrying = "retrying"
    done = "done"


class JobOutcome(BaseModel):
    anno_type: str
    sentence_id: str
    status: ValidationStatus
    attempts: int = 0
    written: int = 0


def probas_key(anno_type: str) -> str:
    """Token fact holding the predicted distribution, e.g. "upos/probas" """
    return f"{anno_type}{PROBAS_SUFFIX}"


def complete_key(anno_type: str) -> str:
    return f"{anno_type}{COMPLETE_SUFFIX}"
