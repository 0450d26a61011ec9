"""
Intent classification models.

The classifier asks the model for a reply followed by a JSON block; that
block is validated into a ``ClassificationResult`` in one step.
"""

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

NO_TASK = "none"
"""Sentinel ``suggested_next_task`` meaning "do not delegate"."""


class ClassificationResult(BaseModel):
    """Structured interpretation of a single user message."""

    model_config = ConfigDict(extra="ignore")

    intent: str = Field(default="clarification_needed", description="Intent label")
    entities: dict[str, Any] = Field(
        default_factory=dict, description="Semantic slot name -> extracted value"
    )
    suggested_next_task: str = Field(
        default=NO_TASK, description="Task to delegate to, or 'none'"
    )
    confidence_score: float = Field(default=0.0, description="Confidence in [0, 1]")

    @field_validator("suggested_next_task", mode="before")
    @classmethod
    def _none_task(cls, value: Any) -> Any:  # noqa: ANN401
        if value is None or (isinstance(value, str) and not value.strip()):
            return NO_TASK
        return value

    @field_validator("entities", mode="before")
    @classmethod
    def _null_entities(cls, value: Any) -> Any:  # noqa: ANN401
        return {} if value is None else value

    @field_validator("confidence_score", mode="after")
    @classmethod
    def _clamp(cls, value: float) -> float:
        return min(1.0, max(0.0, value))

    @classmethod
    def fallback(cls) -> "ClassificationResult":
        """Default classification used when the model output cannot be parsed."""
        return cls(
            intent="clarification_needed",
            entities={},
            suggested_next_task=NO_TASK,
            confidence_score=0.1,
        )

    @property
    def wants_delegation(self) -> bool:
        """True when the model suggested a downstream task."""
        return self.suggested_next_task != NO_TASK


@dataclass
class ClassifiedTurn:
    """Classifier output: user-facing reply plus its classification."""

    text_response: str
    classification: ClassificationResult
    parsed: bool = True
    """False when the fallback classification was used."""

    prompt: str = ""
    raw_completion: str = field(default="", repr=False)
