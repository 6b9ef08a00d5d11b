"""
HTTP prediction services.

A job sends one sentence to a service and keeps at it until the service gives
back well-formed probabilities or the sentence disappears from the store.
Transport failures, non-2xx replies and malformed bodies are all handled the
same way: log, wait a fixed period, rebuild the request and try again. There
is no attempt cap; a broken service stalls its queue until an operator fixes it.
"""
from typing import Any, Callable, Dict, Optional
from ..core.config import settings
from ..core.errors import MissingEntityError, StoreTransactionError
from ..core.serialization import serialize_document, serialize_sentence
from ..core.stats import calculate_stats
from ..core.storage import DocumentStore, to_jsonable
from ..schemas.conllu import Sentence
from ..schemas.jobs import HttpProviderConfig, JobOutcome, JobState, ValidationStatus
from .persistence import complete_job, write_probas
from .provider import ProbDistProvider
from .queue import sentences_pending
from .validation import validate
import httpx
import logging
import time

logger = logging.getLogger(__name__)


class RetryLoop:
    """Runs a single annotation job against one service URL."""

    def __init__(
        self,
        store: DocumentStore,
        client: httpx.Client,
        url: str,
        anno_type: str,
        retry_wait_ms: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.store = store
        self.client = client
        self.url = url
        self.anno_type = anno_type
        self.retry_wait_ms = settings.NLP_RETRY_WAIT_PERIOD_MS if retry_wait_ms is None else retry_wait_ms
        self.sleep = sleep

    def build_payload(self, sentence_id: str) -> Optional[Dict[str, Any]]:
        """Request body for a sentence, or None if the sentence is gone"""
        record = self.store.pull(sentence_id)
        if record is None:
            return None
        document_id = self.store.get_parent("sentences", sentence_id)
        full_conllu = serialize_document(self.store, document_id) if document_id else None
        return {
            "conllu": serialize_sentence(self.store, sentence_id),
            "json": to_jsonable(record),
            "full_conllu": full_conllu or "",
        }

    def run(self, sentence_id: str) -> JobOutcome:
        state = JobState.dispatching
        status = ValidationStatus.dne
        attempts = 0
        written = 0
        response: Optional[httpx.Response] = None

        while state != JobState.done:
            if state == JobState.dispatching:
                payload = self.build_payload(sentence_id)
                if payload is None:
                    logger.info("Sentence %s doesn't exist! Considering job complete.", sentence_id)
                    status = ValidationStatus.dne
                    state = JobState.done
                    continue

                attempts += 1
                try:
                    response = self.client.post(self.url, json=payload)
                except httpx.HTTPError as e:
                    logger.error("Exception thrown while attempting to contact NLP service at %s (attempt %d): %s",
                                 self.url, attempts, e)
                    state = JobState.retrying
                    continue

                if not response.is_success:
                    logger.info("Service at %s gave non-2xx response code %d (attempt %d)",
                                self.url, response.status_code, attempts)
                    state = JobState.retrying
                    continue
                state = JobState.validating

            elif state == JobState.validating:
                # The sentence may have changed while the service was working on it
                sentence = Sentence.from_record(self.store.pull(sentence_id))
                result = validate(self.anno_type, sentence, response.text)
                status = result.status

                if result.status == ValidationStatus.dne:
                    logger.info("Sentence %s doesn't exist! Considering job complete.", sentence_id)
                    state = JobState.done
                elif result.status == ValidationStatus.bad_data:
                    logger.info("Bad %s data from %s for sentence %s (attempt %d)",
                                self.anno_type, self.url, sentence_id, attempts)
                    state = JobState.retrying
                else:
                    try:
                        written = write_probas(self.store, self.anno_type, sentence, result.data)
                    except MissingEntityError as e:
                        # Tokens were deleted after validation; the reply no longer fits the sentence
                        logger.info("Sentence %s changed before its %s probas were written, retrying: %s",
                                    sentence_id, self.anno_type, e)
                        status = ValidationStatus.bad_data
                        state = JobState.retrying
                        continue
                    state = JobState.done

            elif state == JobState.retrying:
                logger.info("Retrying %s in %d ms...", self.url, self.retry_wait_ms)
                self.sleep(self.retry_wait_ms / 1000.0)
                state = JobState.dispatching

        return JobOutcome(
            anno_type=self.anno_type,
            sentence_id=sentence_id,
            status=status,
            attempts=attempts,
            written=written,
        )


class HttpProbDistProvider(ProbDistProvider):
    """Prediction provider backed by an HTTP service, one per annotation type."""

    def __init__(
        self,
        config: HttpProviderConfig,
        client: Optional[httpx.Client] = None,
        retry_wait_ms: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.anno_type = config.anno_type
        self.client = client or httpx.Client(timeout=settings.NLP_REQUEST_TIMEOUT_S)
        self.retry_wait_ms = retry_wait_ms
        self.sleep = sleep
        self.clock = clock
        self.last_outcome: Optional[JobOutcome] = None

    def retry_loop(self, store: DocumentStore) -> RetryLoop:
        return RetryLoop(store, self.client, self.config.url, self.anno_type,
                         retry_wait_ms=self.retry_wait_ms, sleep=self.sleep)

    def predict(self, store: DocumentStore, sentence_id: str) -> "HttpProbDistProvider":
        if store.get_entity(sentence_id) is None:
            logger.info("Sentence %s appears to have been deleted before it was able to be processed. "
                        "Marking as completed.", sentence_id)
            complete_job(store, self.anno_type, sentence_id)
            self.last_outcome = JobOutcome(anno_type=self.anno_type, sentence_id=sentence_id,
                                           status=ValidationStatus.dne)
            return self

        document_id = store.get_parent("sentences", sentence_id)
        logger.info("Starting %s job for sentence %s", self.anno_type, sentence_id)
        start = self.clock()
        try:
            self.last_outcome = self.retry_loop(store).run(sentence_id)
        except StoreTransactionError:
            logger.exception("Failed to write %s probas for sentence %s", self.anno_type, sentence_id)
            raise
        end = self.clock()

        complete_job(store, self.anno_type, sentence_id)
        remaining = len(sentences_pending(store, self.anno_type))
        elapsed = end - start
        logger.info("Completed %s job in %.2f seconds. %d remaining. Est. time remaining: %.2f seconds.",
                    self.anno_type, elapsed, remaining, remaining * elapsed)

        if document_id is not None:
            calculate_stats(store, document_id)
        return self

    def close(self) -> None:
        self.client.close()
