from decimal import Decimal

import pytest

from bant_scoring.core.constants import (
    AUTHORITY_DEFAULT_SCORE,
    BUDGET_NO_ESTIMATE_SCORE,
    NEED_DEFAULT_SCORE,
    TIMELINE_DEFAULT_SCORE,
)
from bant_scoring.schemas.common import Dimension
from bant_scoring.schemas.scoring_config import parse_dimension_config
from bant_scoring.services.evaluators import (
    estimate_confidence,
    evaluate_authority,
    evaluate_budget,
    evaluate_need,
    evaluate_timeline,
)


def _with_bonuses(snapshot, dimension, **bonus_rules):
    base = snapshot.get(dimension).model_dump()
    base["bonus_rules"] = bonus_rules
    return parse_dimension_config(base)


class TestBudget:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (Decimal("0.01"), 10),
            (Decimal("149999.99"), 10),
            (Decimal("150000"), 15),
            (Decimal("320000"), 20),
            (Decimal("500000"), 25),
            (Decimal("2500000"), 25),
        ],
    )
    def test_range_lookup(self, make_lead, default_snapshot, value, expected):
        lead = make_lead(estimated_value=value)
        assert evaluate_budget(lead, default_snapshot.get(Dimension.budget)) == expected

    def test_missing_estimate_uses_default(self, make_lead, default_snapshot):
        lead = make_lead()
        score = evaluate_budget(lead, default_snapshot.get(Dimension.budget))
        assert score == BUDGET_NO_ESTIMATE_SCORE == 8

    def test_zero_estimate_counts_as_missing(self, make_lead, default_snapshot):
        config = _with_bonuses(
            default_snapshot, Dimension.budget, has_property_estimation=5
        )
        lead = make_lead(estimated_value=Decimal("0"))
        assert evaluate_budget(lead, config) == BUDGET_NO_ESTIMATE_SCORE

    def test_detailed_property_bonus(self, make_lead, default_snapshot):
        lead = make_lead(estimated_value=Decimal("200000"), surface=85, rooms=4)
        assert evaluate_budget(lead, default_snapshot.get(Dimension.budget)) == 18

    def test_surface_without_rooms_gets_no_bonus(self, make_lead, default_snapshot):
        lead = make_lead(estimated_value=Decimal("200000"), surface=85)
        assert evaluate_budget(lead, default_snapshot.get(Dimension.budget)) == 15

    def test_estimate_bonus_is_configurable(self, make_lead, default_snapshot):
        config = _with_bonuses(
            default_snapshot, Dimension.budget, has_property_estimation=5
        )
        assert evaluate_budget(make_lead(estimated_value=Decimal("200000")), config) == 20
        # no estimate, no estimate bonus
        assert evaluate_budget(make_lead(), config) == 8

    def test_clamped_at_25(self, make_lead, default_snapshot):
        config = _with_bonuses(
            default_snapshot,
            Dimension.budget,
            has_property_estimation=10,
            has_detailed_estimation=10,
        )
        lead = make_lead(estimated_value=Decimal("900000"), surface=120, rooms=6)
        assert evaluate_budget(lead, config) == 25


class TestAuthority:
    @pytest.mark.parametrize(
        "status,expected",
        [
            ("proprietaire_unique", 25),
            ("coproprietaire_majoritaire", 20),
            ("heritier_partage", 12),
            ("mandataire", 8),
            ("non_renseigne", 5),
        ],
    )
    def test_mapping(self, make_lead, default_snapshot, status, expected):
        lead = make_lead(ownership_status=status)
        assert evaluate_authority(lead, default_snapshot.get(Dimension.authority)) == expected

    def test_unmapped_status_uses_default(self, make_lead, default_snapshot):
        lead = make_lead(ownership_status="locataire")
        score = evaluate_authority(lead, default_snapshot.get(Dimension.authority))
        assert score == AUTHORITY_DEFAULT_SCORE

    def test_expert_contact_and_phone_bonuses(self, make_lead, default_snapshot):
        lead = make_lead(
            ownership_status="heritier_partage",
            wants_expert_contact=True,
            phone="+33600000000",
        )
        # 12 + 5 + 2
        assert evaluate_authority(lead, default_snapshot.get(Dimension.authority)) == 19

    def test_bonus_stacking_is_clamped(self, make_lead, default_snapshot):
        lead = make_lead(
            ownership_status="proprietaire_unique",
            wants_expert_contact=True,
            phone="+33600000000",
        )
        assert evaluate_authority(lead, default_snapshot.get(Dimension.authority)) == 25

    def test_negative_bonus_floors_at_zero(self, make_lead, default_snapshot):
        config = _with_bonuses(default_snapshot, Dimension.authority, provided_phone=-25)
        lead = make_lead(ownership_status="mandataire", phone="+33600000000")
        assert evaluate_authority(lead, config) == 0


class TestNeed:
    def test_mapping(self, make_lead, default_snapshot):
        config = default_snapshot.get(Dimension.need)
        assert evaluate_need(make_lead(project_type="vente_urgente"), config) == 25
        assert evaluate_need(make_lead(project_type="curiosite_prix"), config) == 5

    def test_missing_project_type_maps_unspecified(self, make_lead, default_snapshot):
        score = evaluate_need(make_lead(), default_snapshot.get(Dimension.need))
        assert score == NEED_DEFAULT_SCORE == 8

    def test_detailed_submission_bonus(self, make_lead, default_snapshot):
        lead = make_lead(project_type="investissement", lead_type="estimation_detailed")
        assert evaluate_need(lead, default_snapshot.get(Dimension.need)) == 15


class TestTimeline:
    @pytest.mark.parametrize(
        "timeline,expected",
        [
            ("immediate", 25),  # 25 + 2, clamped
            ("1_3_mois", 24),
            ("3_6_mois", 18),
            ("plus_12_mois", 8),
            (None, TIMELINE_DEFAULT_SCORE),
            ("someday", TIMELINE_DEFAULT_SCORE),
        ],
    )
    def test_mapping_and_short_bonus(self, make_lead, default_snapshot, timeline, expected):
        lead = make_lead(timeline=timeline)
        assert evaluate_timeline(lead, default_snapshot.get(Dimension.timeline)) == expected

    def test_falls_back_to_sale_timeline(self, make_lead, default_snapshot):
        lead = make_lead(sale_timeline="3_6_mois")
        assert evaluate_timeline(lead, default_snapshot.get(Dimension.timeline)) == 18

    def test_questionnaire_timeline_wins(self, make_lead, default_snapshot):
        lead = make_lead(timeline="6_12_mois", sale_timeline="immediate")
        assert evaluate_timeline(lead, default_snapshot.get(Dimension.timeline)) == 12

    def test_zero_mapping_is_kept(self, make_lead, default_snapshot):
        base = default_snapshot.get(Dimension.timeline).model_dump()
        base["rules"]["mapping"]["plus_12_mois"] = 0
        config = parse_dimension_config(base)
        assert evaluate_timeline(make_lead(timeline="plus_12_mois"), config) == 0


class TestDisabledDimension:
    @pytest.mark.parametrize(
        "evaluator",
        [evaluate_budget, evaluate_authority, evaluate_need, evaluate_timeline],
    )
    def test_missing_config_scores_zero(self, hot_lead, evaluator):
        assert evaluator(hot_lead, None) == 0

    def test_inactive_config_scores_zero(self, hot_lead, default_snapshot):
        base = default_snapshot.get(Dimension.need).model_dump()
        base["is_active"] = False
        assert evaluate_need(hot_lead, parse_dimension_config(base)) == 0


class TestConfidence:
    def test_empty_lead(self, make_lead):
        lead = make_lead(email=None, first_name=None, last_name=None)
        assert estimate_confidence(lead) == 0

    def test_partial_lead_rounds_to_nearest(self, hot_lead):
        # email, first/last name, phone, ownership, project, timeline: 7 of 15
        assert estimate_confidence(hot_lead) == 47

    def test_complete_lead(self, make_lead):
        lead = make_lead(
            property_type="appartement",
            address="12 rue de la Paix",
            city="Paris",
            surface=70,
            rooms=3,
            phone="+33600000000",
            bedrooms=2,
            bathrooms=1,
            construction_year=1975,
            ownership_status="proprietaire_unique",
            project_type="investissement",
            timeline="3_6_mois",
        )
        assert estimate_confidence(lead) == 100
