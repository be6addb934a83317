"""Orchestration result model."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OrchestrationResult(BaseModel):
    """Successful orchestration outcome.

    Never constructed from empty or whitespace-only content: the
    validator rejects it with a pydantic ValidationError.

    Attributes:
        content: Generated text.
        backend_name: Backend that produced the text.
        model_id: Model the backend used.
    """

    model_config = ConfigDict(frozen=True)

    content: str = Field(..., description="Generated text")
    backend_name: str = Field(..., description="Backend that produced the text")
    model_id: str = Field(..., description="Model used by the backend")

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        """Reject empty or whitespace-only content.

        Raises:
            ValueError: If content has no non-whitespace characters.
        """
        if not v.strip():
            msg = "content must not be empty or whitespace-only"
            raise ValueError(msg)
        return v
