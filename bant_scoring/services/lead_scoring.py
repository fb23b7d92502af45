import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from bant_scoring.core.cache import CacheService
from bant_scoring.core.config import settings
from bant_scoring.core.constants import (
    BANT_CRITERIA,
    MAX_TOTAL_SCORE,
    QUALIFICATION_LABELS,
    RECALCULATION_REASONS,
    SYSTEM_ACTOR,
)
from bant_scoring.core.exceptions import (
    ConfigurationError,
    InvalidAdjustmentError,
    LeadNotFoundError,
    NotFoundError,
    PersistenceError,
    ScoreNotFoundError,
    ValidationError,
)
from bant_scoring.core.locks import KeyedLock
from bant_scoring.models.lead_scoring import LeadScoring
from bant_scoring.repositories.unit_of_work import ScoringUnitOfWork
from bant_scoring.schemas.common import ChangeReason, Dimension
from bant_scoring.schemas.lead import LeadSnapshot
from bant_scoring.schemas.lead_scoring import (
    AggregateScore,
    CriteriaCatalogue,
    LeadScoringDetail,
    LeadScoringOut,
    RecalculationFailure,
    RecalculationResult,
    ScoreHistoryOut,
)
from bant_scoring.schemas.scoring_config import (
    ScoringConfigOut,
    ScoringConfigSnapshot,
    ScoringConfigUpdate,
    parse_dimension_config,
)
from bant_scoring.services.aggregator import aggregate
from bant_scoring.services.qualification import classify

logger = logging.getLogger(__name__)

# Config fields whose change alters computed scores
_RESCORING_FIELDS = frozenset({"weight", "is_active", "rules", "bonus_rules"})

# Shared by every service instance in the process
lead_locks = KeyedLock()


def _clamp_total(score: int) -> int:
    return min(MAX_TOTAL_SCORE, max(0, score))


def _sub_scores(source: Any) -> Dict[str, int]:
    """Per-dimension breakdown of a ``LeadScoring`` row or aggregate."""
    if isinstance(source, AggregateScore):
        return {d.value: source.sub_score(d) for d in Dimension}
    return {d.value: getattr(source, f"{d.value}_score") for d in Dimension}


class LeadScoringService:
    """Stateful side of the BANT engine.

    Reads the lead and the configuration, runs the pure aggregator and
    classifier, then upserts ``lead_scoring`` and appends
    ``lead_score_history`` inside one unit of work.  Writes for the same
    lead are serialised by a per-lead lock plus ``SELECT … FOR UPDATE``.

    Every database failure surfaces as :class:`PersistenceError`; nothing
    is retried here.
    """

    def __init__(
        self,
        uow_factory: Callable[[], ScoringUnitOfWork],
        cache: Optional[CacheService] = None,
        *,
        locks: Optional[KeyedLock] = None,
        max_workers: Optional[int] = None,
        max_adjustment: Optional[int] = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._cache: CacheService = cache or CacheService()
        self._locks = locks if locks is not None else lead_locks
        self._max_workers = max_workers or settings.RECALC_MAX_WORKERS
        self._max_adjustment = (
            settings.MAX_MANUAL_ADJUSTMENT if max_adjustment is None else max_adjustment
        )

    @asynccontextmanager
    async def _transaction(
        self, *, lead_id: Optional[UUID] = None
    ) -> AsyncIterator[ScoringUnitOfWork]:
        try:
            async with self._uow_factory() as uow:
                yield uow
        except SQLAlchemyError as exc:
            logger.error("Scoring storage failure (lead=%s): %s", lead_id, exc)
            raise PersistenceError(
                f"Scoring storage failure: {exc.__class__.__name__}",
                lead_id=lead_id,
            ) from exc

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    async def initialize_default_config(self) -> int:
        """Seed the default rubric if no configuration exists yet.

        Returns the number of inserted dimension rows (0 when already
        initialised).
        """
        async with self._transaction() as uow:
            inserted = await uow.configs.seed_if_empty()
            await uow.commit()
        return inserted

    async def load_config_snapshot(self) -> ScoringConfigSnapshot:
        """Read and validate every dimension config into one snapshot."""
        async with self._transaction() as uow:
            return ScoringConfigSnapshot.from_rows(await uow.configs.get_all())

    async def list_configs(self) -> List[ScoringConfigOut]:
        async with self._transaction() as uow:
            rows = await uow.configs.get_all()
            return [ScoringConfigOut.model_validate(row) for row in rows]

    async def update_config(
        self, dimension: Dimension, update: ScoringConfigUpdate
    ) -> ScoringConfigOut:
        """Validate and store a partial update of one dimension's config.

        The merged result must parse as a valid :class:`DimensionConfig`
        and at least one dimension must stay active, otherwise nothing is
        written.
        """
        fields = update.model_dump(exclude_none=True)

        async with self._transaction() as uow:
            config = await uow.configs.get_by_dimension(dimension.value)
            if config is None:
                raise NotFoundError(
                    f"No scoring configuration for '{dimension.value}'",
                    dimension=dimension.value,
                )

            merged = {
                "dimension": dimension.value,
                "weight": config.weight,
                "is_active": config.is_active,
                "rules": config.rules,
                "thresholds": config.thresholds or {},
                "bonus_rules": config.bonus_rules or {},
                "description": config.description,
            }
            merged.update(fields)
            validated = parse_dimension_config(merged)

            if not validated.is_active:
                others = await uow.configs.get_all()
                if not any(
                    row.is_active
                    for row in others
                    if row.criteria_type != dimension.value
                ):
                    raise ConfigurationError(
                        "At least one scoring dimension must remain active",
                        dimension=dimension.value,
                    )

            await uow.configs.update(config, **fields)
            await uow.commit()
            updated = ScoringConfigOut.model_validate(config)

        logger.info(
            "Scoring config '%s' updated (fields: %s)",
            dimension.value,
            ", ".join(sorted(fields)) or "none",
        )
        return updated

    @staticmethod
    def requires_recalculation(update: ScoringConfigUpdate) -> bool:
        """Whether applying *update* can change any computed score."""
        return bool(_RESCORING_FIELDS.intersection(update.model_dump(exclude_none=True)))

    @staticmethod
    def criteria_catalogue() -> CriteriaCatalogue:
        return CriteriaCatalogue(
            criteria=dict(BANT_CRITERIA),
            qualification_status=dict(QUALIFICATION_LABELS),
        )

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    async def calculate_score(
        self,
        lead_id: UUID,
        reason: ChangeReason = ChangeReason.automatic_calculation,
        changed_by: str = SYSTEM_ACTOR,
        *,
        reset_adjustment: bool = False,
        config: Optional[ScoringConfigSnapshot] = None,
    ) -> LeadScoringOut:
        """Score one lead and persist the result.

        Creates the scoring row on first use (history reason
        ``initial_calculation``); otherwise updates it, replaying the
        stored manual adjustment unless *reset_adjustment* is set, and
        records history only when the total actually changed.

        Raises:
            LeadNotFoundError: the lead does not exist.
            ConfigurationError: no dimension is active.
            PersistenceError: the score or history write failed; neither
                is applied.
        """
        scoring, _ = await self._score_lead(
            lead_id,
            reason,
            changed_by,
            reset_adjustment=reset_adjustment,
            config=config,
        )
        await self._cache.bump_generation(lead_id=lead_id)
        return scoring

    async def _score_lead(
        self,
        lead_id: UUID,
        reason: ChangeReason,
        changed_by: str,
        *,
        reset_adjustment: bool = False,
        config: Optional[ScoringConfigSnapshot] = None,
    ) -> Tuple[LeadScoringOut, bool]:
        if reason.value not in RECALCULATION_REASONS:
            raise ValidationError(
                f"'{reason.value}' is not a recalculation reason", lead_id=lead_id
            )

        async with self._locks.hold(lead_id):
            async with self._transaction(lead_id=lead_id) as uow:
                lead = await uow.leads.get_by_id(lead_id)
                if lead is None:
                    raise LeadNotFoundError(f"Lead {lead_id} not found", lead_id=lead_id)

                snapshot = config
                if snapshot is None:
                    snapshot = ScoringConfigSnapshot.from_rows(await uow.configs.get_all())
                result = aggregate(LeadSnapshot.model_validate(lead), snapshot)

                scoring = await uow.scores.get_by_lead_id(lead_id, for_update=True)
                if scoring is None:
                    scoring, changed = await self._create_scoring(uow, lead_id, result)
                else:
                    changed = await self._update_scoring(
                        uow,
                        scoring,
                        result,
                        reason,
                        changed_by,
                        reset_adjustment=reset_adjustment,
                    )
                await uow.commit()
                result_out = LeadScoringOut.model_validate(scoring)

        return result_out, changed

    async def _create_scoring(
        self, uow: ScoringUnitOfWork, lead_id: UUID, result: AggregateScore
    ) -> Tuple[LeadScoring, bool]:
        status = classify(result.total)
        scoring = LeadScoring(
            lead_id=lead_id,
            total_score=result.total,
            budget_score=result.sub_score(Dimension.budget),
            authority_score=result.sub_score(Dimension.authority),
            need_score=result.sub_score(Dimension.need),
            timeline_score=result.sub_score(Dimension.timeline),
            qualification_status=status.value,
            confidence_level=result.confidence,
            manual_adjustment=0,
            last_calculated_at=datetime.now(timezone.utc),
        )
        await uow.scores.save(scoring)
        await uow.history.append(
            lead_id=lead_id,
            old_score=0,
            new_score=result.total,
            score_change=result.total,
            change_reason=ChangeReason.initial_calculation.value,
            changed_by=SYSTEM_ACTOR,
            details={"initial_scores": _sub_scores(result)},
        )
        logger.info(
            "Lead %s scored for the first time: %d (%s)",
            lead_id,
            result.total,
            status.value,
        )
        return scoring, True

    async def _update_scoring(
        self,
        uow: ScoringUnitOfWork,
        scoring: LeadScoring,
        result: AggregateScore,
        reason: ChangeReason,
        changed_by: str,
        *,
        reset_adjustment: bool,
    ) -> bool:
        old_total = scoring.total_score
        old_scores = _sub_scores(scoring)

        if reset_adjustment:
            scoring.manual_adjustment = 0
        new_total = _clamp_total(result.total + (scoring.manual_adjustment or 0))

        scoring.total_score = new_total
        scoring.budget_score = result.sub_score(Dimension.budget)
        scoring.authority_score = result.sub_score(Dimension.authority)
        scoring.need_score = result.sub_score(Dimension.need)
        scoring.timeline_score = result.sub_score(Dimension.timeline)
        scoring.qualification_status = classify(new_total).value
        scoring.confidence_level = result.confidence
        scoring.last_calculated_at = datetime.now(timezone.utc)
        await uow.scores.save(scoring)

        if new_total == old_total:
            logger.debug("Lead %s recalculated, score unchanged (%d)", scoring.lead_id, new_total)
            return False

        await uow.history.append(
            lead_id=scoring.lead_id,
            old_score=old_total,
            new_score=new_total,
            score_change=new_total - old_total,
            change_reason=reason.value,
            changed_by=changed_by,
            details={"old_scores": old_scores, "new_scores": _sub_scores(result)},
        )
        logger.info(
            "Lead %s score %d -> %d (%s)", scoring.lead_id, old_total, new_total, reason.value
        )
        return True

    async def adjust_score(
        self,
        lead_id: UUID,
        adjustment: int,
        notes: str,
        changed_by: str,
        assigned_to: Optional[str] = None,
    ) -> LeadScoringOut:
        """Apply a manual delta on top of the current total.

        The delta accumulates into ``manual_adjustment`` so later
        recalculations replay it.  A history row is always written, even
        for a zero delta.

        Raises:
            InvalidAdjustmentError: *adjustment* outside ±MAX_MANUAL_ADJUSTMENT.
            ScoreNotFoundError: the lead has never been scored.
        """
        if abs(adjustment) > self._max_adjustment:
            raise InvalidAdjustmentError(
                f"Adjustment must be between -{self._max_adjustment} "
                f"and {self._max_adjustment}, got {adjustment}",
                lead_id=lead_id,
            )

        async with self._locks.hold(lead_id):
            async with self._transaction(lead_id=lead_id) as uow:
                scoring = await uow.scores.get_by_lead_id(lead_id, for_update=True)
                if scoring is None:
                    raise ScoreNotFoundError(
                        f"No scoring found for lead {lead_id}", lead_id=lead_id
                    )

                old_total = scoring.total_score
                old_status = scoring.qualification_status
                new_total = _clamp_total(old_total + adjustment)
                new_status = classify(new_total).value

                scoring.total_score = new_total
                scoring.qualification_status = new_status
                scoring.manual_adjustment = (scoring.manual_adjustment or 0) + adjustment
                scoring.notes = notes
                if assigned_to is not None:
                    scoring.assigned_to = assigned_to
                await uow.scores.save(scoring)

                await uow.history.append(
                    lead_id=lead_id,
                    old_score=old_total,
                    new_score=new_total,
                    score_change=new_total - old_total,
                    change_reason=ChangeReason.manual_adjustment.value,
                    changed_by=changed_by,
                    details={
                        "adjustment": adjustment,
                        "notes": notes,
                        "old_qualification": old_status,
                        "new_qualification": new_status,
                    },
                )
                await uow.commit()
                adjusted = LeadScoringOut.model_validate(scoring)

        logger.info(
            "Lead %s manually adjusted by %+d (%d -> %d) by %s",
            lead_id,
            adjustment,
            old_total,
            new_total,
            changed_by,
        )
        await self._cache.bump_generation(lead_id=lead_id)
        return adjusted

    async def recalculate_all(
        self, reason: ChangeReason = ChangeReason.config_update
    ) -> RecalculationResult:
        """Rescore every lead against one configuration snapshot.

        Leads are processed concurrently, at most ``RECALC_MAX_WORKERS``
        at a time, each in its own unit of work.  A failing lead is
        reported in ``errors`` and does not affect the others.

        Raises:
            ConfigurationError: no dimension is active; nothing is scored.
        """
        snapshot = await self.load_config_snapshot()
        if not snapshot.active():
            raise ConfigurationError(
                "Cannot recalculate: no active scoring dimension configured"
            )

        async with self._transaction() as uow:
            lead_ids = await uow.leads.list_ids()

        semaphore = asyncio.Semaphore(self._max_workers)

        async def _recalculate(lead_id: UUID) -> Optional[RecalculationFailure]:
            async with semaphore:
                try:
                    await self._score_lead(lead_id, reason, SYSTEM_ACTOR, config=snapshot)
                except Exception as exc:
                    logger.warning(
                        "Recalculation failed for lead %s", lead_id, exc_info=True
                    )
                    return RecalculationFailure(lead_id=lead_id, error=str(exc))
            return None

        outcomes = await asyncio.gather(*(_recalculate(i) for i in lead_ids))
        errors = [failure for failure in outcomes if failure is not None]
        updated = len(lead_ids) - len(errors)

        if updated:
            await self._cache.bump_generation(reason=reason.value)
        logger.info(
            "Recalculated %d lead(s) (%s), %d failure(s)",
            updated,
            reason.value,
            len(errors),
        )
        return RecalculationResult(updated_count=updated, errors=errors)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def get_scoring_detail(self, lead_id: UUID) -> LeadScoringDetail:
        """Current scoring of a lead with its chronological history."""
        async with self._transaction(lead_id=lead_id) as uow:
            scoring = await uow.scores.get_by_lead_id(lead_id)
            if scoring is None:
                raise ScoreNotFoundError(
                    f"No scoring found for lead {lead_id}", lead_id=lead_id
                )
            history = await uow.history.list_for_lead(lead_id)

            return LeadScoringDetail(
                **LeadScoringOut.model_validate(scoring).model_dump(),
                history=[ScoreHistoryOut.model_validate(h) for h in history],
            )

    async def list_scorings(
        self, limit: int = 50, status: Optional[str] = None
    ) -> List[LeadScoringOut]:
        async with self._transaction() as uow:
            rows = await uow.scores.list_scorings(limit=limit, status=status)
            return [LeadScoringOut.model_validate(row) for row in rows]

    async def list_recent_history(self, limit: int = 100) -> List[ScoreHistoryOut]:
        async with self._transaction() as uow:
            rows = await uow.history.list_recent(limit=limit)
            return [ScoreHistoryOut.model_validate(row) for row in rows]
