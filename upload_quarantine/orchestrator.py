"""
Per-event verdict resolution.

Start -> HashDecoded -> VerdictQueried -> Routed
                                       -> Submitted -> Polling -> Routed
                                                               -> AnalysisTimedOut
Any step may end in Failed. Only SubmissionError escapes handle(); every other
failure is logged and returned as a Resolution so the host does not redeliver
and double-process the event.
"""

import logging
import time
from collections.abc import Callable

from upload_quarantine import hash_codec
from upload_quarantine.config import Settings
from upload_quarantine.errors import DecodeError, MoveError, ServiceUnavailable, StorageError
from upload_quarantine.file_router import FileRouter
from upload_quarantine.models import (
    FileMoveOperation,
    Resolution,
    ResolutionState,
    RoutingDecision,
    UploadEvent,
    Verdict,
    routing_decision,
)
from upload_quarantine.services.submissions import SubmissionClient
from upload_quarantine.services.verdicts import VerdictClient
from upload_quarantine.storage import ObjectStore

logger = logging.getLogger("quarantine.orchestrator")


def _log_fields(
    event: UploadEvent,
    action: str,
    file_hash: str | None = None,
    verdict: Verdict | None = None,
) -> dict:
    """Fields the JSON formatter groups under "quarantine" on every outcome line."""
    return {
        "bucket": event.bucket,
        "object_name": event.name,
        "hash": file_hash,
        "verdict": verdict.kind.value if verdict is not None else None,
        "action": action,
    }


class Orchestrator:
    def __init__(
        self,
        settings: Settings,
        verdicts: VerdictClient,
        submissions: SubmissionClient,
        store: ObjectStore,
        router: FileRouter | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings
        self.verdicts = verdicts
        self.submissions = submissions
        self.store = store
        self.router = router or FileRouter(store)
        self._sleep = sleep

    def _destination(self, decision: RoutingDecision) -> str:
        if decision is RoutingDecision.MOVE_TO_CLEAN:
            return self.settings.clean_bucket
        return self.settings.quarantine_bucket

    def handle(self, event: UploadEvent) -> Resolution:
        if event.bucket in (self.settings.clean_bucket, self.settings.quarantine_bucket):
            logger.info("Ignoring %s: bucket %s is a routing destination", event.name, event.bucket)
            return Resolution(
                state=ResolutionState.ALREADY_RESOLVED,
                object_name=event.name,
                destination=event.bucket,
                detail="object already lives in a destination bucket",
            )

        try:
            file_hash = hash_codec.decode(event.md5_hash)
        except DecodeError as exc:
            logger.error(
                "Cannot decode hash of %s/%s: %s", event.bucket, event.name, exc,
                extra=_log_fields(event, "abort"),
            )
            return Resolution(state=ResolutionState.FAILED, object_name=event.name, detail=str(exc))

        try:
            verdict = self.verdicts.query_by_hash(file_hash)
        except ServiceUnavailable as exc:
            logger.error(
                "Verdict lookup for %s (%s) failed: %s", event.name, file_hash, exc,
                extra=_log_fields(event, "abort", file_hash),
            )
            return Resolution(
                state=ResolutionState.FAILED,
                object_name=event.name,
                hash=file_hash,
                detail=str(exc),
            )

        logger.info(
            "md5 hash: %s, object: %s, verdict: %s", file_hash, event.name, verdict,
            extra=_log_fields(event, "verdict", file_hash, verdict),
        )
        decision = routing_decision(verdict)
        if decision is not RoutingDecision.AWAIT_ANALYSIS:
            return self._route(event, file_hash, verdict, decision, polls=0)

        try:
            content = self.store.read_object(event.bucket, event.name)
        except StorageError as exc:
            state = ResolutionState.ALREADY_RESOLVED if exc.missing else ResolutionState.FAILED
            logger.warning(
                "Cannot read %s/%s for submission: %s", event.bucket, event.name, exc,
                extra=_log_fields(event, state.value, file_hash, verdict),
            )
            return Resolution(
                state=state,
                object_name=event.name,
                hash=file_hash,
                verdict=verdict.kind.value,
                detail=str(exc),
            )

        logger.info(
            "Uploading %s to WildFire for analysis", event.name,
            extra=_log_fields(event, "submit", file_hash, verdict),
        )
        self.submissions.submit(event.name, content)
        return self._poll(event, file_hash, verdict)

    def _poll(self, event: UploadEvent, file_hash: str, verdict: Verdict) -> Resolution:
        polls = 0
        for delay in self.settings.poll.delays():
            self._sleep(delay)
            polls += 1
            try:
                verdict = self.verdicts.query_by_hash(file_hash)
            except ServiceUnavailable as exc:
                logger.warning("Poll %d for %s failed, will retry: %s", polls, file_hash, exc)
                continue

            decision = routing_decision(verdict)
            if decision is RoutingDecision.AWAIT_ANALYSIS:
                logger.info(
                    "Waiting for analysis of %s (poll %d, verdict %s)", event.name, polls, verdict,
                    extra=_log_fields(event, "poll", file_hash, verdict),
                )
                continue

            logger.info(
                "md5 hash: %s, object: %s, verdict: %s", file_hash, event.name, verdict,
                extra=_log_fields(event, "verdict", file_hash, verdict),
            )
            return self._route(event, file_hash, verdict, decision, polls=polls)

        logger.error(
            "Analysis of %s (%s) not finished after %d polls, last verdict %s",
            event.name, file_hash, polls, verdict,
            extra=_log_fields(event, "timeout", file_hash, verdict),
        )
        return Resolution(
            state=ResolutionState.ANALYSIS_TIMED_OUT,
            object_name=event.name,
            hash=file_hash,
            verdict=verdict.kind.value,
            polls=polls,
            detail=f"no terminal verdict after {polls} polls",
        )

    def _route(
        self,
        event: UploadEvent,
        file_hash: str,
        verdict: Verdict,
        decision: RoutingDecision,
        polls: int,
    ) -> Resolution:
        destination = self._destination(decision)
        operation = FileMoveOperation(
            source_bucket=event.bucket,
            destination_bucket=destination,
            object_name=event.name,
        )
        resolution = Resolution(
            state=ResolutionState.ROUTED,
            object_name=event.name,
            hash=file_hash,
            verdict=verdict.kind.value,
            destination=destination,
            polls=polls,
        )
        try:
            self.router.move(operation)
        except MoveError as exc:
            if exc.stage == "copy" and exc.missing_source:
                logger.info(
                    "%s no longer in %s, treating as already resolved", event.name, event.bucket,
                    extra=_log_fields(event, "already_resolved", file_hash, verdict),
                )
                return resolution.model_copy(
                    update={"state": ResolutionState.ALREADY_RESOLVED, "detail": str(exc)}
                )
            logger.error(
                "Moving %s to %s failed at %s: %s", event.name, destination, exc.stage, exc,
                extra=_log_fields(event, f"{exc.stage}_failed", file_hash, verdict),
            )
            return resolution.model_copy(
                update={"state": ResolutionState.FAILED, "detail": f"{exc.stage} failed: {exc}"}
            )

        logger.info(
            "Routed %s (%s, verdict %s) to %s", event.name, file_hash, verdict.kind.value, destination,
            extra=_log_fields(event, decision.value, file_hash, verdict),
        )
        return resolution
