"""
Submission Coordinator.

Runs one asyncio task per accepted submission through the verification
pipeline:

    resolve → ownership → duplicate → freshness → score → payout → finalize

Every record mutation is stored and published before the next stage starts,
so observers see each stage resolve in order.
"""

import asyncio
from typing import Callable, Dict, Optional
import logging

from sentinel.coordinator.broadcast import EVENT_STATUS, EVENT_VERIFIED, EventBroadcaster
from sentinel.coordinator.store import RecordStore
from sentinel.core.workflow import SubmissionWorkflow
from sentinel.models.submission import (
    Stage,
    StageStatus,
    Submission,
    SubmissionRecord,
    SubmissionRequest,
    SubmissionStatus,
    generate_submission_id,
)
from sentinel.payout.orchestrator import PayoutOrchestrator
from sentinel.retrieval.base import ContentUnavailableError
from sentinel.retrieval.resolver import ContentResolver
from sentinel.scoring.scorer import EvaluationResult, score_content
from sentinel.validation.fingerprint import FingerprintRegistry
from sentinel.validation.freshness import EXCERPT_LENGTH, FreshnessOracle
from sentinel.validation.ownership import OwnershipVerifier

logger = logging.getLogger(__name__)

DUPLICATE_REASON = (
    "Duplicate Submission Detected: This research content has already been evaluated "
    "and funded. Grants are only awarded for unique scientific datasets."
)
CONCURRENT_FUNDING_REASON = (
    "Payout withheld: identical content is being funded by a concurrent submission."
)


class SubmissionCoordinator:
    """
    Owns the record store and drives submissions through the pipeline.

    Example:
        ```python
        coordinator = SubmissionCoordinator.from_config(get_config())
        record = await coordinator.submit(SubmissionRequest(cid="bafy..."))
        final = await coordinator.wait_for(record.id)
        print(final.status, final.trust_score)
        ```
    """

    def __init__(
        self,
        resolver: ContentResolver,
        registry: FingerprintRegistry,
        oracle: FreshnessOracle,
        orchestrator: PayoutOrchestrator,
        ownership: Optional[OwnershipVerifier] = None,
        store: Optional[RecordStore] = None,
        broadcaster: Optional[EventBroadcaster] = None,
        scorer: Callable[[str], EvaluationResult] = score_content
    ):
        self.resolver = resolver
        self.registry = registry
        self.oracle = oracle
        self.orchestrator = orchestrator
        self.ownership = ownership or OwnershipVerifier()
        self.store = store or RecordStore()
        self.broadcaster = broadcaster or EventBroadcaster()
        self.scorer = scorer
        self._tasks: Dict[str, asyncio.Task] = {}

    @classmethod
    def from_config(cls, config) -> "SubmissionCoordinator":
        """Wire the production components from configuration."""
        persist = False
        if config.database_url:
            from sentinel.db import init_database
            init_database(config.database_url)
            persist = True

        return cls(
            resolver=ContentResolver.from_config(config),
            registry=FingerprintRegistry(config.funded_registry_path),
            oracle=FreshnessOracle.from_config(config),
            orchestrator=PayoutOrchestrator.from_config(config),
            store=RecordStore(persist=persist),
            broadcaster=EventBroadcaster(queue_size=config.broadcast_queue_size),
        )

    # ========================================================================
    # INGRESS
    # ========================================================================

    async def submit(
        self,
        request: SubmissionRequest,
        client_id: Optional[str] = None
    ) -> SubmissionRecord:
        """
        Accept a validated request and schedule its pipeline.

        Returns:
            The freshly stored record in SCANNING state
        """
        submission_id = generate_submission_id()
        while submission_id in self.store:
            submission_id = generate_submission_id()

        submission = request.to_submission(submission_id, client_id=client_id)
        record = SubmissionRecord.from_submission(submission)
        self.store.add(record)
        self.broadcaster.publish(EVENT_STATUS, record)
        logger.info(f"[{submission_id}] Accepted submission for {submission.locator}")

        task = asyncio.create_task(self._run(submission, record), name=f"submission-{submission_id}")
        self._tasks[submission_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(submission_id, None))
        return record

    async def wait_for(self, submission_id: str) -> SubmissionRecord:
        """
        Wait until a submission's pipeline has settled.

        Raises:
            KeyError: If the submission is unknown
        """
        task = self._tasks.get(submission_id)
        if task is not None:
            await asyncio.shield(task)

        record = self.store.get(submission_id)
        if record is None:
            raise KeyError(f"Unknown submission {submission_id}")
        return record

    @property
    def pending_count(self) -> int:
        return len(self._tasks)

    # ========================================================================
    # PIPELINE
    # ========================================================================

    async def _run(self, submission: Submission, record: SubmissionRecord):
        workflow = SubmissionWorkflow(record)
        try:
            await self.process(submission, workflow)
        except Exception as e:
            logger.exception(f"[{submission.id}] Pipeline crashed: {e}")
            # a record already settled as Verified keeps its outcome
            if workflow.can_transition_to(SubmissionStatus.FAILED):
                workflow.fail(f"Evaluation failed: {e}")
                self._publish(record)

    async def process(self, submission: Submission, workflow: SubmissionWorkflow):
        """
        Run every pipeline stage for one submission.

        Verification failures settle the record as FAILED and return early.
        """
        record = workflow.record

        # 1. Content
        try:
            resolved = await self.resolver.resolve(submission.locator)
        except ContentUnavailableError as e:
            logger.error(f"[{submission.id}] {e}")
            workflow.fail(f"Content retrieval failed: {e}")
            self._publish(record)
            return
        content = resolved.content
        logger.info(f"[{submission.id}] Fetched {len(content)} chars via {resolved.provider}")

        # 2. Ownership
        if submission.has_claim:
            ownership = self.ownership.verify(
                submission.claimant,
                submission.proof,
                submission.locator,
                metadata=resolved.metadata,
                content=content,
            )
            workflow.set_stage(Stage.OWNERSHIP, ownership.status, reason=ownership.reason)
        else:
            workflow.set_stage(Stage.OWNERSHIP, StageStatus.SKIPPED, reason="No ownership claim")
        self._publish(record)
        if workflow.is_terminal:
            return

        # 3. Duplicate
        record.fingerprint = self.registry.fingerprint(content)
        if self.registry.is_duplicate(content):
            logger.error(f"[{submission.id}] Duplicate content {record.fingerprint[:12]}...")
            workflow.set_stage(Stage.DUPLICATE, StageStatus.FAILED, reason=DUPLICATE_REASON)
            self._publish(record)
            return
        workflow.set_stage(Stage.DUPLICATE, StageStatus.VERIFIED)
        self._publish(record)

        # 4. Freshness
        freshness = await self.oracle.check(submission.title, content[:EXCERPT_LENGTH])
        if not freshness.is_original:
            logger.error(f"[{submission.id}] Freshness check failed: {freshness.reason}")
            workflow.set_stage(
                Stage.FRESHNESS,
                StageStatus.FAILED,
                reason=f"Research Freshness Check Failed: {freshness.reason}",
                metadata={"confidence": freshness.confidence},
            )
            self._publish(record)
            return
        workflow.set_stage(
            Stage.FRESHNESS,
            StageStatus.VERIFIED,
            metadata={"confidence": freshness.confidence},
        )
        self._publish(record)

        # 5. Score
        evaluation = self.scorer(content)
        record.apply_scores(evaluation.breakdown)
        record.recommended_destination = evaluation.recommended_destination
        record.impact_category = evaluation.impact_category
        record.decision = evaluation.decision
        record.reasoning = evaluation.reasoning
        record.verification_hash = evaluation.verification_hash
        workflow.set_stage(Stage.DECISION, StageStatus.VERIFIED, reason=evaluation.decision.value)
        self._publish(record)

        # 6. Payout
        if evaluation.fundable:
            await self._fund(submission, workflow, content, evaluation)
        else:
            workflow.transition_to(SubmissionStatus.VERIFIED)

        # 7. Finalize
        self._publish(record)
        self.broadcaster.publish(EVENT_VERIFIED, record)
        logger.info(
            f"[{submission.id}] Settled as {record.status.value} "
            f"(trust {record.trust_score}, {evaluation.decision.value})"
        )

    async def _fund(
        self,
        submission: Submission,
        workflow: SubmissionWorkflow,
        content: str,
        evaluation: EvaluationResult
    ):
        record = workflow.record

        if not self.registry.try_reserve(content):
            logger.warning(f"[{submission.id}] Fingerprint reserved by a concurrent submission")
            workflow.transition_to(
                SubmissionStatus.VERIFIED,
                reason=f"{evaluation.reasoning} {CONCURRENT_FUNDING_REASON}",
            )
            return

        try:
            result = await self.orchestrator.execute(submission.recipient, evaluation.verification_hash)
        except Exception:
            self.registry.release(content)
            raise

        if not result.sent:
            self.registry.release(content)
            workflow.transition_to(
                SubmissionStatus.VERIFIED,
                reason=f"{evaluation.reasoning} {result.reason}",
                metadata={"payout": result.outcome.value},
            )
            return

        self.registry.register_success(content)
        record.payout_tx = result.receipt.signature
        record.payout_instrument = result.receipt.instrument
        workflow.transition_to(
            SubmissionStatus.PAYOUT_SENT,
            metadata={"tx": result.receipt.signature, "instrument": result.receipt.instrument.value},
        )

    def _publish(self, record: SubmissionRecord):
        self.store.update(record)
        self.broadcaster.publish(EVENT_STATUS, record)

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    async def aclose(self):
        """Cancel in-flight pipelines and close network clients."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        await self.resolver.aclose()
        await self.oracle.aclose()
        await self.orchestrator.aclose()
        await self.store.aclose()
