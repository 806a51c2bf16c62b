"""
Prompt assembly for the FINORA advisor.

Builds the advice prompt, the fixed advice persona and the per-session chat
instruction. Profile values are embedded by value; nothing here talks to the
network.
"""

import json
import re

from finora.schemas.profile import UserProfile

# Emoji and pictographic blocks, dingbats, misc symbols, plus the joiners
# and variation selectors that glue emoji sequences together.
DECORATIVE_SYMBOL_PATTERN = re.compile(
    "["
    "\U0001F000-\U0001FAFF"
    "\U00002600-\U000027BF"
    "\U00002B00-\U00002BFF"
    "\U0000FE0E-\U0000FE0F"
    "\U0000200D"
    "\U000020E3"
    "]"
)

ADVISOR_NAME = "FINORA"

ADVICE_SYSTEM_INSTRUCTION = (
    f"You are {ADVISOR_NAME}, a trusted vernacular financial mentor for India. "
    "You provide clear, practical, and safe financial advice. "
    "You never use emojis. "
    "You focus on long-term discipline and fraud prevention."
)

ADVICE_REQUIREMENTS = (
    "Respond in {language}.",
    "Use simple, non-jargon language suitable for common Indian households.",
    "Do not use any emojis.",
    "Provide a health score (0-100).",
    "Suggest a budget plan (50/30/20 rule or similar).",
    "Calculate emergency fund (typically 6 months of expenses).",
    "Suggest SIP amounts based on goals and risk.",
    "Include fraud awareness tips relevant to India (e.g., UPI scams, fake investment apps).",
    "Warn about high debt if applicable.",
)


def contains_decorative_symbols(text: str) -> bool:
    """Check whether ``text`` contains emoji or similar pictographs."""
    return DECORATIVE_SYMBOL_PATTERN.search(text or "") is not None


def strip_decorative_symbols(text: str) -> str:
    """Remove emoji and pictographs, collapsing the gaps they leave."""
    if not text:
        return text
    cleaned = DECORATIVE_SYMBOL_PATTERN.sub("", text)
    cleaned = re.sub(r"[ \t]{2,}", " ", cleaned)
    return "\n".join(line.strip() for line in cleaned.splitlines()).strip()


def _amount(value: float) -> str:
    if float(value).is_integer():
        return f"INR {int(value)}"
    return f"INR {value:.2f}"


def build_advice_prompt(profile: UserProfile) -> str:
    """Build the structured-advice instruction for one profile.

    Args:
        profile: User financial profile

    Returns:
        Prompt text naming the target language, local conventions and the
        numbered content requirements
    """
    language = profile.language.value
    requirements = "\n".join(
        f"{index}. {line.format(language=language)}"
        for index, line in enumerate(ADVICE_REQUIREMENTS, start=1)
    )
    goals = strip_decorative_symbols(profile.financial_goals) or "Not specified"

    return (
        "Analyze the following financial profile for an Indian user and provide "
        f"structured advice in {language}.\n"
        "Use Indian currency (INR) and financial practices (like SIP, PPF, FD, Gold).\n"
        "\n"
        "User Profile:\n"
        f"- Age: {profile.age}\n"
        f"- Monthly Income: {_amount(profile.monthly_income)}\n"
        f"- Monthly Expenses: {_amount(profile.monthly_expenses)}\n"
        f"- Current Savings: {_amount(profile.current_savings)}\n"
        f"- Existing Investments: {_amount(profile.existing_investments)}\n"
        f"- Debt/Loans: {_amount(profile.debt)}\n"
        f"- Dependents: {profile.dependents}\n"
        f"- Goals: {goals}\n"
        f"- Risk Tolerance: {profile.risk_tolerance.value}\n"
        "\n"
        "Requirements:\n"
        f"{requirements}\n"
    )


def build_chat_system_instruction(profile: UserProfile) -> str:
    """Build the chat persona with the serialized profile as context."""
    language = profile.language.value
    profile_json = DECORATIVE_SYMBOL_PATTERN.sub(
        "", json.dumps(profile.to_context(), ensure_ascii=False)
    )

    return "\n".join(
        [
            f"You are {ADVISOR_NAME}, a trusted financial mentor for India.",
            f"The user's profile is: {profile_json}.",
            f"Always respond in {language}.",
            "Do not use emojis.",
            "Keep advice simple, practical, and culturally relevant to India.",
            "Focus on safety, long-term wealth, and avoiding scams.",
            "If the user asks for illegal advice or high-risk speculation, "
            "politely decline and explain why it is risky.",
        ]
    )
