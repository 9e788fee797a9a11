"""Pydantic models for expression evaluation requests and results."""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rational_calculator.core.display import DisplayFormat


class EvaluationRequest(BaseModel):
    """Represents a single expression to evaluate and how to render its value."""

    model_config = ConfigDict(frozen=True)

    expression: str = Field(..., description="Arithmetic expression as a string")
    display_format: Optional[DisplayFormat] = Field(
        default=None, description="Rendering of the result, defaults to the result's own format"
    )
    simplify: bool = Field(default=True, description="Reduce the result to lowest terms before rendering")
    show_steps: bool = Field(default=False, description="Record every intermediate reduction step")

    @field_validator("expression")
    def expression_must_not_be_empty(cls, v: str) -> str:
        """Ensure that the expression is not empty."""
        if not v.strip():
            raise ValueError("Expression cannot be empty")
        return v


class EvaluationResult(BaseModel):
    """Represents the outcome of an evaluated expression: a rendered value or an error message."""

    expression: str = Field(..., description="Original arithmetic expression")
    result: Optional[str] = Field(default=None, description="Rendered value of the expression")
    error: Optional[str] = Field(default=None, description="Error message when evaluation failed")
    steps: List[str] = Field(default_factory=list, description="Intermediate expressions, in order")

    @property
    def ok(self) -> bool:
        return self.error is None

    def __str__(self) -> str:
        if self.ok:
            return f"{self.expression} = {self.result}"
        return f"{self.expression} -> ERROR: {self.error}"
