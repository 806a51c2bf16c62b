"""Advice schemas: the structured response contract with the model provider."""

import copy
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from finora.logging_config import get_logger

logger = get_logger(__name__)


def _drop_path(data: Dict[str, Any], loc: Tuple[Any, ...]) -> None:
    """Remove the innermost object key along an error location."""
    parent, key = data, loc[0]
    for part in loc[1:]:
        child = parent.get(key)
        if not isinstance(child, dict) or part not in child:
            break
        parent, key = child, part
    parent.pop(key, None)


class BudgetPlan(BaseModel):
    """Monthly split of income into necessities, wants and savings."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        allow_inf_nan=False,
    )

    necessities: Optional[float] = None
    wants: Optional[float] = None
    savings: Optional[float] = None


class FinancialAdvice(BaseModel):
    """Advice returned by the model for one profile.

    Every field is optional. The provider enforces the schema, but nothing is
    checked locally, so a missing, mistyped or non-finite field is ``None``
    and the presentation layer must handle that case itself.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        allow_inf_nan=False,
    )

    health_score: Optional[float] = Field(None, description="0-100, not clamped")
    recommended_monthly_savings: Optional[float] = None
    suggested_sip_amount: Optional[float] = Field(None, alias="suggestedSIPAmount")
    emergency_fund_target: Optional[float] = None
    budget_plan: Optional[BudgetPlan] = None
    investment_suggestions: Optional[List[str]] = None
    retirement_readiness: Optional[str] = None
    risk_warnings: Optional[List[str]] = None
    fraud_awareness_tips: Optional[List[str]] = None
    key_advice: Optional[str] = None
    next_best_action: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        """True when no field at all was populated."""
        return all(value is None for value in self.__dict__.values())

    @property
    def missing_fields(self) -> List[str]:
        """Wire names of required fields that are absent."""
        return [
            type(self).model_fields[name].alias or name
            for name, value in self.__dict__.items()
            if value is None
        ]

    @classmethod
    def from_payload(cls, payload: Any) -> "FinancialAdvice":
        """Build advice from decoded JSON, dropping fields that do not fit.

        A payload that is not an object gives an empty result.
        """
        if not isinstance(payload, dict):
            return cls()

        try:
            return cls.model_validate(payload)
        except ValidationError as e:
            errors = [err for err in e.errors() if err["loc"]]
            logger.warning(
                "Advice payload had invalid fields, dropping them",
                fields=sorted(".".join(str(part) for part in err["loc"]) for err in errors),
            )
            cleaned = copy.deepcopy(payload)
            for err in errors:
                _drop_path(cleaned, err["loc"])
            try:
                return cls.model_validate(cleaned)
            except ValidationError:
                return cls()


# Response shape sent to Gemini as ``response_schema``. Field order and
# descriptions are part of the contract.
ADVICE_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "healthScore": {
            "type": "NUMBER",
            "description": "A score from 0-100 representing financial health.",
        },
        "recommendedMonthlySavings": {"type": "NUMBER"},
        "suggestedSIPAmount": {"type": "NUMBER"},
        "emergencyFundTarget": {"type": "NUMBER"},
        "budgetPlan": {
            "type": "OBJECT",
            "properties": {
                "necessities": {"type": "NUMBER"},
                "wants": {"type": "NUMBER"},
                "savings": {"type": "NUMBER"},
            },
            "required": ["necessities", "wants", "savings"],
        },
        "investmentSuggestions": {"type": "ARRAY", "items": {"type": "STRING"}},
        "retirementReadiness": {"type": "STRING"},
        "riskWarnings": {"type": "ARRAY", "items": {"type": "STRING"}},
        "fraudAwarenessTips": {"type": "ARRAY", "items": {"type": "STRING"}},
        "keyAdvice": {"type": "STRING"},
        "nextBestAction": {"type": "STRING"},
    },
    "required": [
        "healthScore",
        "recommendedMonthlySavings",
        "suggestedSIPAmount",
        "emergencyFundTarget",
        "budgetPlan",
        "investmentSuggestions",
        "retirementReadiness",
        "riskWarnings",
        "fraudAwarenessTips",
        "keyAdvice",
        "nextBestAction",
    ],
}
