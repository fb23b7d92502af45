import asyncio
import logging
from decimal import Decimal
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from bant_scoring.core.exceptions import (
    ConfigurationError,
    InvalidAdjustmentError,
    InvalidScoringConfigError,
    LeadNotFoundError,
    NotFoundError,
    PersistenceError,
    ScoreNotFoundError,
    ValidationError,
)
from bant_scoring.core.locks import KeyedLock
from bant_scoring.schemas.common import ChangeReason, Dimension
from bant_scoring.schemas.scoring_config import ScoringConfigUpdate
from bant_scoring.services.lead_scoring import LeadScoringService
from tests.fakes import FakeUnitOfWork, InMemoryStore


class TestCalculateScore:
    @pytest.mark.asyncio
    async def test_first_calculation_creates_scoring(self, store, scoring_service, hot_lead):
        store.add_lead(hot_lead)

        scoring = await scoring_service.calculate_score(hot_lead.id)

        assert scoring.total_score == 95
        assert scoring.qualification_status == "hot_lead"
        assert scoring.budget_score == 20
        assert scoring.confidence_level == 47
        assert scoring.manual_adjustment == 0

        history = store.history_for(hot_lead.id)
        assert len(history) == 1
        assert history[0].change_reason == "initial_calculation"
        assert history[0].old_score == 0
        assert history[0].score_change == 95
        assert history[0].changed_by == "system"
        assert history[0].details == {
            "initial_scores": {"budget": 20, "authority": 25, "need": 25, "timeline": 25}
        }

    @pytest.mark.asyncio
    async def test_unchanged_recalculation_writes_no_history(
        self, store, scoring_service, hot_lead
    ):
        store.add_lead(hot_lead)

        await scoring_service.calculate_score(hot_lead.id)
        await scoring_service.calculate_score(hot_lead.id)

        assert len(store.scorings) == 1
        assert len(store.history_for(hot_lead.id)) == 1

    @pytest.mark.asyncio
    async def test_changed_lead_records_breakdown(self, store, scoring_service, hot_lead):
        store.add_lead(hot_lead)
        await scoring_service.calculate_score(hot_lead.id)

        store.add_lead(hot_lead.model_copy(update={"timeline": "plus_12_mois"}))
        scoring = await scoring_service.calculate_score(
            hot_lead.id, reason=ChangeReason.automatic_calculation
        )

        assert scoring.total_score == 78
        history = store.history_for(hot_lead.id)
        assert len(history) == 2
        latest = history[-1]
        assert latest.change_reason == "automatic_calculation"
        assert (latest.old_score, latest.new_score, latest.score_change) == (95, 78, -17)
        assert latest.details["old_scores"]["timeline"] == 25
        assert latest.details["new_scores"]["timeline"] == 8

    @pytest.mark.asyncio
    async def test_missing_lead(self, store, scoring_service):
        missing = uuid4()
        with pytest.raises(LeadNotFoundError) as exc_info:
            await scoring_service.calculate_score(missing)

        assert isinstance(exc_info.value, NotFoundError)
        assert exc_info.value.lead_id == missing
        assert store.scorings == {}
        assert store.history == []

    @pytest.mark.asyncio
    async def test_no_active_dimension(self, store, scoring_service, hot_lead):
        store.add_lead(hot_lead)
        for dimension in Dimension:
            store.set_active(dimension.value, False)

        with pytest.raises(ConfigurationError):
            await scoring_service.calculate_score(hot_lead.id)
        assert store.scorings == {}

    @pytest.mark.asyncio
    async def test_manual_reason_rejected(self, store, scoring_service, hot_lead):
        store.add_lead(hot_lead)
        with pytest.raises(ValidationError):
            await scoring_service.calculate_score(
                hot_lead.id, reason=ChangeReason.manual_adjustment
            )

    @pytest.mark.asyncio
    async def test_concurrent_first_calculations_create_one_row(
        self, store, scoring_service, hot_lead
    ):
        store.add_lead(hot_lead)

        await asyncio.gather(
            *(scoring_service.calculate_score(hot_lead.id) for _ in range(5))
        )

        assert len(store.scorings) == 1
        assert len(store.history_for(hot_lead.id)) == 1

    @pytest.mark.asyncio
    async def test_bumps_analytics_generation(self, store, hot_lead, mock_cache, mock_redis):
        store.add_lead(hot_lead)
        service = LeadScoringService(
            uow_factory=lambda: FakeUnitOfWork(store), cache=mock_cache, locks=KeyedLock()
        )

        await service.calculate_score(hot_lead.id)

        mock_redis.incr.assert_awaited_once_with("bant:scores:generation")

    @pytest.mark.asyncio
    async def test_failed_generation_bump_is_logged(
        self, store, hot_lead, mock_cache, mock_redis, caplog
    ):
        store.add_lead(hot_lead)
        mock_redis.incr = AsyncMock(side_effect=ConnectionError("redis down"))
        service = LeadScoringService(
            uow_factory=lambda: FakeUnitOfWork(store), cache=mock_cache, locks=KeyedLock()
        )

        with caplog.at_level(logging.WARNING, logger="bant_scoring.core.cache"):
            scoring = await service.calculate_score(hot_lead.id)

        assert scoring.total_score == 95
        assert any(
            "Score generation not advanced" in r.getMessage()
            and str(hot_lead.id) in r.getMessage()
            for r in caplog.records
        )


class TestAtomicity:
    @pytest.mark.asyncio
    async def test_history_failure_discards_new_score(
        self, store, scoring_service, hot_lead
    ):
        store.add_lead(hot_lead)
        store.fail_history_for.add(hot_lead.id)

        with pytest.raises(PersistenceError) as exc_info:
            await scoring_service.calculate_score(hot_lead.id)

        assert exc_info.value.lead_id == hot_lead.id
        assert exc_info.value.__cause__ is not None
        assert store.scorings == {}
        assert store.history == []

    @pytest.mark.asyncio
    async def test_commit_failure_keeps_previous_score(
        self, store, scoring_service, hot_lead
    ):
        store.add_lead(hot_lead)
        await scoring_service.calculate_score(hot_lead.id)

        store.add_lead(hot_lead.model_copy(update={"timeline": "plus_12_mois"}))
        store.fail_commit_for.add(hot_lead.id)
        with pytest.raises(PersistenceError):
            await scoring_service.calculate_score(hot_lead.id)

        assert store.scorings[hot_lead.id].total_score == 95
        assert len(store.history_for(hot_lead.id)) == 1


class TestAdjustScore:
    @pytest.mark.asyncio
    async def test_reference_adjustment(self, store, scoring_service, hot_lead):
        store.add_lead(hot_lead)
        await scoring_service.calculate_score(hot_lead.id)

        scoring = await scoring_service.adjust_score(
            hot_lead.id, -20, "price renegotiated", "agent1"
        )

        assert scoring.total_score == 75
        assert scoring.qualification_status == "qualified"
        assert scoring.manual_adjustment == -20
        assert scoring.notes == "price renegotiated"

        history = store.history_for(hot_lead.id)
        assert len(history) == 2
        entry = history[-1]
        assert entry.change_reason == "manual_adjustment"
        assert entry.score_change == -20
        assert entry.changed_by == "agent1"
        assert entry.details == {
            "adjustment": -20,
            "notes": "price renegotiated",
            "old_qualification": "hot_lead",
            "new_qualification": "qualified",
        }

    @pytest.mark.asyncio
    async def test_adjustments_cancel_out(self, store, scoring_service, review_lead):
        store.add_lead(review_lead)
        before = await scoring_service.calculate_score(review_lead.id)
        assert before.total_score == 40

        await scoring_service.adjust_score(review_lead.id, 10, "", "agent1")
        after = await scoring_service.adjust_score(review_lead.id, -10, "", "agent1")

        assert after.total_score == 40
        assert after.manual_adjustment == 0
        assert after.qualification_status == "to_review"

    @pytest.mark.asyncio
    async def test_large_adjustment_jumps_bands(self, store, scoring_service, review_lead):
        store.add_lead(review_lead)
        await scoring_service.calculate_score(review_lead.id)

        scoring = await scoring_service.adjust_score(review_lead.id, 50, "", "agent1")

        assert scoring.total_score == 90
        assert scoring.qualification_status == "hot_lead"

    @pytest.mark.asyncio
    async def test_total_clamped_at_100(self, store, scoring_service, hot_lead):
        store.add_lead(hot_lead)
        await scoring_service.calculate_score(hot_lead.id)

        scoring = await scoring_service.adjust_score(hot_lead.id, 20, "", "agent1")

        assert scoring.total_score == 100
        assert scoring.manual_adjustment == 20
        assert store.history_for(hot_lead.id)[-1].score_change == 5

    @pytest.mark.asyncio
    async def test_zero_delta_still_audited(self, store, scoring_service, hot_lead):
        store.add_lead(hot_lead)
        await scoring_service.calculate_score(hot_lead.id)

        await scoring_service.adjust_score(hot_lead.id, 0, "reviewed", "agent1")

        history = store.history_for(hot_lead.id)
        assert len(history) == 2
        assert history[-1].score_change == 0

    @pytest.mark.asyncio
    async def test_reassigns_owner(self, store, scoring_service, hot_lead):
        store.add_lead(hot_lead)
        await scoring_service.calculate_score(hot_lead.id)

        scoring = await scoring_service.adjust_score(
            hot_lead.id, 5, "call back", "agent1", assigned_to="agent2"
        )
        assert scoring.assigned_to == "agent2"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("delta", [51, -51, 500])
    async def test_delta_out_of_range(self, store, scoring_service, hot_lead, delta):
        store.add_lead(hot_lead)
        await scoring_service.calculate_score(hot_lead.id)

        with pytest.raises(InvalidAdjustmentError):
            await scoring_service.adjust_score(hot_lead.id, delta, "", "agent1")
        assert store.scorings[hot_lead.id].total_score == 95

    @pytest.mark.asyncio
    async def test_requires_existing_scoring(self, store, scoring_service, hot_lead):
        store.add_lead(hot_lead)
        with pytest.raises(ScoreNotFoundError):
            await scoring_service.adjust_score(hot_lead.id, 5, "", "agent1")
        assert store.history == []

    @pytest.mark.asyncio
    async def test_recalculation_replays_adjustment(self, store, scoring_service, hot_lead):
        store.add_lead(hot_lead)
        await scoring_service.calculate_score(hot_lead.id)
        await scoring_service.adjust_score(hot_lead.id, -20, "", "agent1")

        scoring = await scoring_service.calculate_score(hot_lead.id)

        assert scoring.total_score == 75
        assert len(store.history_for(hot_lead.id)) == 2

    @pytest.mark.asyncio
    async def test_reset_adjustment(self, store, scoring_service, hot_lead):
        store.add_lead(hot_lead)
        await scoring_service.calculate_score(hot_lead.id)
        await scoring_service.adjust_score(hot_lead.id, -20, "", "agent1")

        scoring = await scoring_service.calculate_score(hot_lead.id, reset_adjustment=True)

        assert scoring.total_score == 95
        assert scoring.manual_adjustment == 0
        assert store.history_for(hot_lead.id)[-1].score_change == 20


class TestRecalculateAll:
    @pytest.mark.asyncio
    async def test_scores_every_lead(self, store, scoring_service, hot_lead, review_lead):
        store.add_lead(hot_lead)
        store.add_lead(review_lead)

        result = await scoring_service.recalculate_all(ChangeReason.config_update)

        assert result.updated_count == 2
        assert result.errors == []
        assert store.scorings[hot_lead.id].total_score == 95
        assert store.scorings[review_lead.id].total_score == 40

    @pytest.mark.asyncio
    async def test_repeat_run_is_idempotent(self, store, scoring_service, hot_lead, review_lead):
        store.add_lead(hot_lead)
        store.add_lead(review_lead)

        await scoring_service.recalculate_all()
        history_before = len(store.history)
        result = await scoring_service.recalculate_all()

        assert result.updated_count == 2
        assert len(store.history) == history_before

    @pytest.mark.asyncio
    async def test_fault_isolated_to_one_lead(self, store, scoring_service, make_lead):
        leads = [
            store.add_lead(make_lead(project_type="vente_urgente")) for _ in range(5)
        ]
        faulty = leads[2]
        store.fail_commit_for.add(faulty.id)

        result = await scoring_service.recalculate_all()

        assert result.updated_count == 4
        assert [e.lead_id for e in result.errors] == [faulty.id]
        assert faulty.id not in store.scorings
        assert store.history_for(faulty.id) == []
        for lead in leads:
            if lead.id != faulty.id:
                assert len(store.history_for(lead.id)) == 1

    @pytest.mark.asyncio
    async def test_config_change_tagged_config_update(self, store, scoring_service, hot_lead):
        store.add_lead(hot_lead)
        await scoring_service.calculate_score(hot_lead.id)

        store.set_active("budget", False)
        result = await scoring_service.recalculate_all(ChangeReason.config_update)

        assert result.updated_count == 1
        latest = store.history_for(hot_lead.id)[-1]
        assert latest.change_reason == "config_update"
        assert latest.new_score == 75

    @pytest.mark.asyncio
    async def test_no_active_dimension_aborts(self, store, scoring_service, hot_lead):
        store.add_lead(hot_lead)
        for dimension in Dimension:
            store.set_active(dimension.value, False)

        with pytest.raises(ConfigurationError):
            await scoring_service.recalculate_all()


class TestConfiguration:
    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self):
        store = InMemoryStore(seed_config=False)
        service = LeadScoringService(uow_factory=lambda: FakeUnitOfWork(store))

        assert await service.initialize_default_config() == 4
        assert await service.initialize_default_config() == 0
        assert len(store.configs) == 4

    @pytest.mark.asyncio
    async def test_update_weight(self, store, scoring_service):
        update = ScoringConfigUpdate(weight=40)

        config = await scoring_service.update_config(Dimension.need, update)

        assert config.weight == 40
        stored = next(c for c in store.configs if c.criteria_type == "need")
        assert stored.weight == 40
        assert LeadScoringService.requires_recalculation(update)

    @pytest.mark.asyncio
    async def test_description_only_needs_no_recalculation(self, store, scoring_service):
        update = ScoringConfigUpdate(description="Sale motivation")
        await scoring_service.update_config(Dimension.need, update)
        assert not LeadScoringService.requires_recalculation(update)

    @pytest.mark.asyncio
    async def test_invalid_rules_not_written(self, store, scoring_service):
        update = ScoringConfigUpdate(
            rules={"kind": "categorical", "mapping": {"immediate": 99}}
        )

        with pytest.raises(InvalidScoringConfigError):
            await scoring_service.update_config(Dimension.timeline, update)

        stored = next(c for c in store.configs if c.criteria_type == "timeline")
        assert stored.rules["mapping"]["immediate"] == 25

    @pytest.mark.asyncio
    async def test_last_active_dimension_cannot_be_disabled(self, store, scoring_service):
        for dimension in ("budget", "authority", "need"):
            store.set_active(dimension, False)

        with pytest.raises(ConfigurationError):
            await scoring_service.update_config(
                Dimension.timeline, ScoringConfigUpdate(is_active=False)
            )

    @pytest.mark.asyncio
    async def test_unknown_dimension_row(self):
        store = InMemoryStore(seed_config=False)
        service = LeadScoringService(uow_factory=lambda: FakeUnitOfWork(store))

        with pytest.raises(NotFoundError):
            await service.update_config(Dimension.budget, ScoringConfigUpdate(weight=10))

    @pytest.mark.asyncio
    async def test_snapshot_reflects_update(self, store, scoring_service):
        await scoring_service.update_config(
            Dimension.budget,
            ScoringConfigUpdate(bonus_rules={"has_property_estimation": 3}),
        )
        snapshot = await scoring_service.load_config_snapshot()
        assert snapshot.get(Dimension.budget).bonus("has_property_estimation") == 3


class TestLookups:
    @pytest.mark.asyncio
    async def test_detail_includes_history(self, store, scoring_service, hot_lead):
        store.add_lead(hot_lead)
        await scoring_service.calculate_score(hot_lead.id)
        await scoring_service.adjust_score(hot_lead.id, -20, "", "agent1")

        detail = await scoring_service.get_scoring_detail(hot_lead.id)

        assert detail.total_score == 75
        assert [h.change_reason.value for h in detail.history] == [
            "initial_calculation",
            "manual_adjustment",
        ]

    @pytest.mark.asyncio
    async def test_detail_for_unscored_lead(self, scoring_service):
        with pytest.raises(ScoreNotFoundError):
            await scoring_service.get_scoring_detail(uuid4())

    @pytest.mark.asyncio
    async def test_list_orders_by_total(self, store, scoring_service, hot_lead, review_lead):
        store.add_lead(review_lead)
        store.add_lead(hot_lead)
        await scoring_service.recalculate_all()

        scorings = await scoring_service.list_scorings()
        assert [s.lead_id for s in scorings] == [hot_lead.id, review_lead.id]

        hot_only = await scoring_service.list_scorings(status="hot_lead")
        assert [s.lead_id for s in hot_only] == [hot_lead.id]

    def test_criteria_catalogue(self):
        catalogue = LeadScoringService.criteria_catalogue()
        assert set(catalogue.criteria) == {"budget", "authority", "need", "timeline"}
        assert catalogue.qualification_status["hot_lead"] == "Hot lead"


class TestKeyedLock:
    @pytest.mark.asyncio
    async def test_entries_released_after_use(self):
        locks = KeyedLock()
        key = uuid4()

        async with locks.hold(key):
            assert len(locks) == 1
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_same_key_is_serialised(self):
        locks = KeyedLock()
        order = []

        async def worker(name):
            async with locks.hold("lead"):
                order.append(f"{name}-start")
                await asyncio.sleep(0)
                order.append(f"{name}-end")

        await asyncio.gather(worker("a"), worker("b"))

        assert order == ["a-start", "a-end", "b-start", "b-end"]
