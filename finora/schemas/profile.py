"""Profile schemas for the user's financial situation."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Language(str, Enum):
    """Languages the advisor can respond in."""

    ENGLISH = "English"
    HINDI = "Hindi"
    TAMIL = "Tamil"
    TELUGU = "Telugu"
    KANNADA = "Kannada"
    MALAYALAM = "Malayalam"
    MARATHI = "Marathi"
    BENGALI = "Bengali"


class RiskTolerance(str, Enum):
    """Investment risk appetite."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class UserProfile(BaseModel):
    """Financial profile submitted from the profile form.

    Amounts are monthly or absolute figures in INR. The model is frozen:
    a profile never changes once a request has been built from it.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        use_enum_values=False,
    )

    age: int = Field(..., gt=0, le=120, description="Age in years")
    monthly_income: float = Field(..., ge=0, description="Monthly income")
    monthly_expenses: float = Field(..., ge=0, description="Monthly expenses")
    current_savings: float = Field(default=0, ge=0, description="Current savings")
    existing_investments: float = Field(default=0, ge=0, description="Existing investments")
    debt: float = Field(default=0, ge=0, description="Outstanding debt and loans")
    dependents: int = Field(default=0, ge=0, description="Number of dependents")
    financial_goals: str = Field(default="", max_length=2000, description="Goals in free text")
    risk_tolerance: RiskTolerance = Field(default=RiskTolerance.MEDIUM)
    language: Language = Field(default=Language.ENGLISH)

    def with_language(self, language: Language) -> "UserProfile":
        """Return a copy of the profile that targets ``language``."""
        if language == self.language:
            return self
        return self.model_copy(update={"language": language})

    def to_context(self) -> dict:
        """Serialize with camelCase keys for embedding in model instructions."""
        data = self.model_dump(mode="json", by_alias=True)
        # 50000.0 reads as 50000 to the model and to people
        return {
            key: int(value) if isinstance(value, float) and value.is_integer() else value
            for key, value in data.items()
        }


DEFAULT_PROFILE = UserProfile(
    age=30,
    monthly_income=50000,
    monthly_expenses=30000,
    current_savings=100000,
    existing_investments=50000,
    debt=0,
    dependents=2,
    financial_goals="Buy a house in 10 years, save for children education",
    risk_tolerance=RiskTolerance.MEDIUM,
    language=Language.ENGLISH,
)
