from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorMessage(BaseModel):
    path: str = Field(..., description="Field the error refers to")
    message: str = Field(..., description="Human readable explanation")


class ErrorResponse(BaseModel):
    """
    Error body returned for domain and storage errors.

    Serialized with camelCase keys: {"statusCode", "message", "errorMessages"}.
    """

    model_config = ConfigDict(populate_by_name=True)

    status_code: int = Field(..., alias="statusCode")
    message: str
    error_messages: list[ErrorMessage] = Field(default_factory=list, alias="errorMessages")
    request_id: Optional[str] = Field(None, alias="requestId")
