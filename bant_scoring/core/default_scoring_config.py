from typing import Any, Dict, List


# The estimate bonus ships at 0: a budget range already rewards the
# estimated value, so a lead is not paid twice for the same field.
DEFAULT_SCORING_CONFIG: List[Dict[str, Any]] = [
    {
        "criteria_type": "budget",
        "weight": 25,
        "is_active": True,
        "description": "Financial capacity from the estimated property value",
        "rules": {
            "kind": "range",
            "ranges": [
                {"min": 0, "max": 150_000, "score": 10, "label": "Limited budget"},
                {"min": 150_000, "max": 300_000, "score": 15, "label": "Moderate budget"},
                {"min": 300_000, "max": 500_000, "score": 20, "label": "Comfortable budget"},
                {"min": 500_000, "max": None, "score": 25, "label": "High budget"},
            ],
        },
        "thresholds": {"qualified": 15, "hot_lead": 20},
        "bonus_rules": {
            "has_property_estimation": 0,
            "has_detailed_estimation": 3,
        },
    },
    {
        "criteria_type": "authority",
        "weight": 25,
        "is_active": True,
        "description": "Decision-making power over the sale",
        "rules": {
            "kind": "categorical",
            "mapping": {
                "proprietaire_unique": 25,
                "coproprietaire_majoritaire": 20,
                "coproprietaire_egalitaire": 15,
                "heritier_principal": 18,
                "heritier_partage": 12,
                "mandataire": 8,
                "non_renseigne": 5,
            },
        },
        "thresholds": {"qualified": 15, "hot_lead": 20},
        "bonus_rules": {
            "wants_expert_contact": 5,
            "provided_phone": 2,
        },
    },
    {
        "criteria_type": "need",
        "weight": 25,
        "is_active": True,
        "description": "Urgency and motivation of the sale",
        "rules": {
            "kind": "categorical",
            "mapping": {
                "vente_urgente": 25,
                "succession_rapide": 22,
                "mutation_professionnelle": 20,
                "optimisation_patrimoine": 18,
                "changement_familial": 15,
                "investissement": 12,
                "curiosite_prix": 5,
                "non_renseigne": 8,
            },
        },
        "thresholds": {"qualified": 15, "hot_lead": 20},
        "bonus_rules": {
            "detailed_submission": 3,
        },
    },
    {
        "criteria_type": "timeline",
        "weight": 25,
        "is_active": True,
        "description": "Desired timeframe for the sale",
        "rules": {
            "kind": "categorical",
            "mapping": {
                "immediate": 25,
                "1_3_mois": 22,
                "3_6_mois": 18,
                "6_12_mois": 12,
                "plus_12_mois": 8,
                "non_renseigne": 10,
            },
        },
        "thresholds": {"qualified": 15, "hot_lead": 20},
        "bonus_rules": {
            "short_timeline": 2,
        },
    },
]
