from celery import Celery
from typing import Optional
from ..core.config import settings
from ..core.errors import ConfigError
from ..core.storage import DocumentStore, document_store
from ..nlp.http import HttpProbDistProvider
from ..nlp.queue import sentences_pending
import logging

logger = logging.getLogger(__name__)

# Initialize Celery app
celery_app = Celery('conllu_service')
celery_app.conf.broker_url = settings.CELERY_BROKER_URL
celery_app.conf.result_backend = settings.CELERY_RESULT_BACKEND


def get_provider(anno_type: str) -> HttpProbDistProvider:
    """Build the HTTP provider configured for an annotation type"""
    config = settings.service_for(anno_type)
    if config is None:
        raise ConfigError(f"No NLP service configured for annotation type {anno_type!r}")
    return HttpProbDistProvider(config, retry_wait_ms=settings.NLP_RETRY_WAIT_PERIOD_MS)


def run_queue(provider: HttpProbDistProvider, store: DocumentStore, limit: Optional[int] = None) -> int:
    """
    Run jobs one after another until no sentence is pending for the provider's
    annotation type. Returns the number of jobs run.
    """
    processed = 0
    pending = sentences_pending(store, provider.anno_type)
    while limit is None or processed < limit:
        sentence_id = next(iter(pending), None)
        if sentence_id is None:
            break
        provider.predict(store, sentence_id)
        processed += 1
    return processed


@celery_app.task
def predict_sentence_task(anno_type: str, sentence_id: str) -> dict:
    """
    Celery task running a single annotation job
    """
    provider = get_provider(anno_type)
    try:
        provider.predict(document_store, sentence_id)
        outcome = provider.last_outcome
        return {
            "anno_type": anno_type,
            "sentence_id": sentence_id,
            "status": outcome.status.value if outcome else None,
            "attempts": outcome.attempts if outcome else 0,
        }
    except Exception as e:
        logger.error(f"Annotation job failed for sentence {sentence_id}: {str(e)}")
        raise e
    finally:
        provider.close()


@celery_app.task
def process_queue_task(anno_type: str, limit: Optional[int] = None) -> dict:
    """
    Celery task draining the queue of one annotation type. Route each annotation
    type to a single worker so no two jobs run on the same sentence.
    """
    provider = get_provider(anno_type)
    try:
        processed = run_queue(provider, document_store, limit)
        logger.info(f"Processed {processed} {anno_type} jobs")
        return {
            "anno_type": anno_type,
            "processed": processed,
            "remaining": len(sentences_pending(document_store, anno_type)),
        }
    except Exception as e:
        logger.error(f"Queue processing failed for {anno_type}: {str(e)}")
        raise e
    finally:
        provider.close()
