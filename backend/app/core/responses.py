"""Response envelope models.

Success responses from the BFF's own endpoints use ``{"data": ...}``.
Errors use a flat ``{"error": <message>, "code": <code>}`` payload so the
dashboard can show ``error`` directly and branch on ``code``. Proxied
upstream responses are relayed untouched and use neither.
"""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    """Standard response envelope for single resources.

    Usage:
        @router.get("/auth/me")
        async def get_me() -> DataResponse[SessionInfo]:
            return DataResponse(data=session)
    """

    data: T


class ErrorResponse(BaseModel):
    """Standard error payload.

    Attributes:
        error: Human-readable error message, safe to display.
        code: Machine-readable error code (e.g., "TOKEN_EXPIRED").
        details: Optional field-level errors or upstream detail.
        can_retry: Serialized as ``canRetry``; present only for retryable errors.
    """

    model_config = ConfigDict(populate_by_name=True)

    error: str
    code: str | None = None
    details: list[dict] | str | None = None
    can_retry: bool | None = Field(default=None, serialization_alias="canRetry")

    def to_content(self) -> dict:
        """Dump for a JSONResponse, omitting unset optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)
