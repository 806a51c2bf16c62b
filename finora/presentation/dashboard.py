"""Dashboard view model built from advice.

Turns ``FinancialAdvice`` into display-ready strings. Missing fields are
handled here explicitly: lists become empty, amounts render as zero and the
health score reads "Not available" in the session's language. Each budget
slice also carries a stable ``key`` for clients that localize on their own.
"""

import math
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from finora.schemas.advice import FinancialAdvice
from finora.schemas.profile import Language

RUPEE_SIGN = "₹"
SCORE_UNAVAILABLE = "Not available"

BUDGET_KEYS = ("necessities", "wants", "savings")

# Display text per language, keyed like the budget slices plus the
# placeholder for a missing score.
DASHBOARD_LABELS: Dict[Language, Dict[str, str]] = {
    Language.ENGLISH: {
        "necessities": "Necessities",
        "wants": "Wants",
        "savings": "Savings",
        "notAvailable": SCORE_UNAVAILABLE,
    },
    Language.HINDI: {
        "necessities": "आवश्यकताएँ",
        "wants": "इच्छाएँ",
        "savings": "बचत",
        "notAvailable": "उपलब्ध नहीं",
    },
    Language.TAMIL: {
        "necessities": "அத்தியாவசியங்கள்",
        "wants": "விருப்பங்கள்",
        "savings": "சேமிப்பு",
        "notAvailable": "கிடைக்கவில்லை",
    },
    Language.TELUGU: {
        "necessities": "అవసరాలు",
        "wants": "కోరికలు",
        "savings": "పొదుపు",
        "notAvailable": "అందుబాటులో లేదు",
    },
    Language.KANNADA: {
        "necessities": "ಅಗತ್ಯಗಳು",
        "wants": "ಆಸೆಗಳು",
        "savings": "ಉಳಿತಾಯ",
        "notAvailable": "ಲಭ್ಯವಿಲ್ಲ",
    },
    Language.MALAYALAM: {
        "necessities": "ആവശ്യങ്ങൾ",
        "wants": "ആഗ്രഹങ്ങൾ",
        "savings": "സമ്പാദ്യം",
        "notAvailable": "ലഭ്യമല്ല",
    },
    Language.MARATHI: {
        "necessities": "गरजा",
        "wants": "इच्छा",
        "savings": "बचत",
        "notAvailable": "उपलब्ध नाही",
    },
    Language.BENGALI: {
        "necessities": "প্রয়োজনীয়তা",
        "wants": "ইচ্ছা",
        "savings": "সঞ্চয়",
        "notAvailable": "পাওয়া যায়নি",
    },
}

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HealthBand(str, Enum):
    """Colour band of the health score gauge."""

    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    UNKNOWN = "unknown"


class BudgetSlice(BaseModel):
    """One slice of the budget chart."""

    model_config = _CAMEL

    key: str
    name: str
    value: float
    display: str


class RankedSuggestion(BaseModel):
    """Investment suggestion with its 1-based rank."""

    model_config = _CAMEL

    rank: int
    text: str


class DashboardView(BaseModel):
    """Everything the dashboard renders."""

    model_config = _CAMEL

    health_score: Optional[float]
    health_score_label: str
    health_band: HealthBand
    health_bar_percent: float
    recommended_monthly_savings: str
    suggested_sip_amount: str = Field(alias="suggestedSIPAmount")
    emergency_fund_target: str
    budget_plan: List[BudgetSlice]
    investment_suggestions: List[RankedSuggestion]
    retirement_readiness: str
    risk_warnings: List[str]
    fraud_awareness_tips: List[str]
    key_advice: str
    next_best_action: str
    is_complete: bool


def _group_indian(digits: str) -> str:
    """Group an integer string the en-IN way: last three, then pairs."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs + [tail])


def _finite(value: Optional[float]) -> Optional[float]:
    """Treat NaN and infinities as missing."""
    if value is None or not math.isfinite(value):
        return None
    return value


def labels_for(language: Language) -> Dict[str, str]:
    """Display labels for ``language``, English when none are defined."""
    return DASHBOARD_LABELS.get(language, DASHBOARD_LABELS[Language.ENGLISH])


def format_inr(amount: Optional[float]) -> str:
    """Format an amount as rupees with no decimal places.

    Examples:
        15000 -> "₹15,000"
        150000 -> "₹1,50,000"
        None -> "₹0"
    """
    amount = _finite(amount)
    if amount is None:
        amount = 0
    rounded = Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if rounded < 0 else ""
    return f"{sign}{RUPEE_SIGN}{_group_indian(str(abs(int(rounded))))}"


def format_score(score: Optional[float], unavailable: str = SCORE_UNAVAILABLE) -> str:
    """Render the health score as "75 / 100"."""
    score = _finite(score)
    if score is None:
        return unavailable
    if float(score).is_integer():
        return f"{int(score)} / 100"
    return f"{score:g} / 100"


def health_band(score: Optional[float]) -> HealthBand:
    """Classify the score: above 70 is good, above 40 fair, else poor."""
    score = _finite(score)
    if score is None:
        return HealthBand.UNKNOWN
    if score > 70:
        return HealthBand.GOOD
    if score > 40:
        return HealthBand.FAIR
    return HealthBand.POOR


def build_dashboard(
    advice: FinancialAdvice,
    language: Language = Language.ENGLISH,
) -> DashboardView:
    """Build the dashboard view for a piece of advice.

    Values are shown as received; only the gauge width is bounded so the
    bar never overflows.

    Args:
        advice: Advice to render
        language: Language of the slice names and placeholders

    Returns:
        Display-ready dashboard
    """
    labels = labels_for(language)
    score = _finite(advice.health_score)
    plan = advice.budget_plan

    slices = []
    for key in BUDGET_KEYS:
        amount = _finite(getattr(plan, key) if plan else None)
        if amount is None:
            amount = 0.0
        slices.append(
            BudgetSlice(key=key, name=labels[key], value=amount, display=format_inr(amount))
        )

    return DashboardView(
        health_score=score,
        health_score_label=format_score(score, labels["notAvailable"]),
        health_band=health_band(score),
        health_bar_percent=min(max(score, 0.0), 100.0) if score is not None else 0.0,
        recommended_monthly_savings=format_inr(advice.recommended_monthly_savings),
        suggested_sip_amount=format_inr(advice.suggested_sip_amount),
        emergency_fund_target=format_inr(advice.emergency_fund_target),
        budget_plan=slices,
        investment_suggestions=[
            RankedSuggestion(rank=index, text=text)
            for index, text in enumerate(advice.investment_suggestions or [], start=1)
        ],
        retirement_readiness=advice.retirement_readiness or "",
        risk_warnings=list(advice.risk_warnings or []),
        fraud_awareness_tips=list(advice.fraud_awareness_tips or []),
        key_advice=advice.key_advice or "",
        next_best_action=advice.next_best_action or "",
        is_complete=not advice.missing_fields,
    )
