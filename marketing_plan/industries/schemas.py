"""Industry catalogue schemas.

Industries seed the questionnaire's industry picker and give the prompts
a vocabulary of typical challenges, metrics and channels.
"""

from pydantic import Field

from marketing_plan.plans.schemas import CamelModel


class Industry(CamelModel):
    """One selectable industry."""

    id: str = Field(..., description="Stable slug, e.g. 'b2b-software'")
    name: str
    description: str = ""
    common_challenges: list[str] = Field(default_factory=list)
    key_metrics: list[str] = Field(default_factory=list)
    marketing_channels: list[str] = Field(default_factory=list)
