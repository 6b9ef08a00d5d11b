"""
Reference prediction service for local development and tests.

Implements the prediction protocol for one annotation type by returning a
uniform distribution over a fixed label set for every eligible token.

Usage:
    ANNO_TYPE=upos uvicorn conllu_service.services.dummy_service:app --port 8001
    ANNO_TYPE=upos python -m conllu_service.services.dummy_service
"""
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field
from typing import Any, Dict, List
import os

from ..schemas.conllu import Sentence
from ..nlp.validation import eligible_tokens
from ..schemas.jobs import SENTENCE_ANNO_TYPE

UPOS_LABELS = ["ADJ", "ADP", "ADV", "AUX", "CCONJ", "DET", "INTJ", "NOUN", "NUM",
               "PART", "PRON", "PROPN", "PUNCT", "SCONJ", "SYM", "VERB", "X"]
SENTENCE_LABELS = ["B", "O"]


class PredictionRequest(BaseModel):
    conllu: str
    sentence: Dict[str, Any] = Field(alias="json")
    full_conllu: str = ""


class PredictionResponse(BaseModel):
    probabilities: List[List[List[Any]]]


def uniform_probabilities(anno_type: str, sentence: Sentence, labels: List[str]) -> List[List[List[Any]]]:
    """One uniform distribution over labels per eligible token"""
    tokens = eligible_tokens(anno_type, sentence.tokens)
    proba = 1.0 / len(labels)
    return [[[label, proba] for label in labels] for _ in tokens]


def create_app(anno_type: str, labels: List[str]) -> FastAPI:
    app = FastAPI(title=f"Dummy {anno_type} service", version="0.1.0")

    @app.post("/", response_model=PredictionResponse)
    def predict(request: PredictionRequest) -> PredictionResponse:
        try:
            sentence = Sentence.model_validate(request.sentence)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=f"Invalid sentence: {str(e)}")
        return PredictionResponse(probabilities=uniform_probabilities(anno_type, sentence, labels))

    @app.get("/health")
    def health_check():
        return {"status": "healthy", "anno_type": anno_type}

    return app


ANNO_TYPE = os.getenv("ANNO_TYPE", "upos")
app = create_app(ANNO_TYPE, SENTENCE_LABELS if ANNO_TYPE == SENTENCE_ANNO_TYPE else UPOS_LABELS)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=int(os.getenv("PORT", "8001")))
