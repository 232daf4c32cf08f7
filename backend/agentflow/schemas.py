from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class FormPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    industry: str = Field("", description="Industry the AI Agent works in")
    main_goal: str = Field("", alias="mainGoal", description="What the AI Agent should achieve")
    guardrails: str = Field("", description="Rules the AI Agent must follow")
    tone_of_voice: str = Field("", alias="toneOfVoice", description="Preferred tone of voice")
    lead_score: str = Field("", alias="leadScore", description="Free-text lead scoring hints")
    lead_enabled: bool = Field(False, alias="leadEnabled", description="Lead scoring toggle (basic variant)")
    exit_conditions: str = Field("", alias="exitConditions", description="When to end or hand over")
    business_url: str = Field("", alias="businessUrl", description="Optional business website to summarize")
    variant: Optional[Literal["basic", "extended"]] = Field(None, description="Overrides the server default")

    @field_validator(
        "industry",
        "main_goal",
        "guardrails",
        "tone_of_voice",
        "lead_score",
        "exit_conditions",
        "business_url",
        mode="before",
    )
    @classmethod
    def _trim(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()

    @model_validator(mode="after")
    def _clear_disabled_lead(self) -> "FormPayload":
        if not self.lead_enabled:
            self.lead_score = ""
        return self


class SummarizeRequest(BaseModel):
    url: Optional[str] = Field(None, description="Business website to fetch and summarize")


class GenerateResponse(BaseModel):
    variant: str
    sections: Dict[str, str]
