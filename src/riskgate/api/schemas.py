"""API Schemas - Request/Response models for the API Gateway.

Request field names follow the existing client: camelCase for auth and
transfer bodies, snake_case for the operator endpoints.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class LoginRequest(BaseModel):
    """Request body for POST /auth/login and POST /auth/logout."""
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId", min_length=1)
    password: Optional[str] = Field(
        default=None, description="Credential secret (ignored on logout)"
    )
    country: Optional[str] = Field(default=None, description="Client country code")


class TransferRequest(BaseModel):
    """Request body for POST /api/transfer."""
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId", min_length=1)
    amount: StrictInt = Field(..., gt=0, description="Amount in minor currency units")
    country: Optional[str] = Field(default=None)
    verified: bool = Field(
        default=False, description="Caller completed additional verification"
    )


class RiskReportRequest(BaseModel):
    """Request body for POST /user/update-risk."""
    user_id: str = Field(..., min_length=1)
    risk_level: str = Field(..., description="LOW, MEDIUM or HIGH")


class UserActionRequest(BaseModel):
    """Request body for POST /user/block, /user/unblock and /user/set-mid."""
    user_id: str = Field(..., min_length=1)


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class AuthResponse(BaseModel):
    """Outcome of a login or logout."""
    model_config = ConfigDict(populate_by_name=True)

    outcome: str
    message: str
    user_id: str = Field(..., alias="userId")
    status: Optional[str] = Field(default=None, description="Published result tag")
    decision_id: str = Field(..., alias="decisionId")


class TransferResponse(BaseModel):
    """Outcome of a transfer. Destination fields are echoed for rendering."""
    model_config = ConfigDict(populate_by_name=True)

    outcome: str
    message: str
    user_id: str = Field(..., alias="userId")
    amount: int
    to_bank: str = Field(..., alias="toBank")
    to_account: str = Field(..., alias="toAccount")
    risk_level: Optional[str] = Field(default=None, alias="riskLevel")
    velocity_count: Optional[int] = Field(default=None, alias="velocityCount")
    status: Optional[str] = Field(default=None, description="Published result tag")
    decision_id: str = Field(..., alias="decisionId")


class UserStatusResponse(BaseModel):
    """Result of an operator action or status query."""
    user_id: str
    status: str
    previous_status: Optional[str] = None
    changed: Optional[bool] = None
    message: str


class ErrorResponse(BaseModel):
    """Error response body."""
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Human-readable error message")
    request_id: Optional[str] = Field(default=None, description="Request ID for tracing")
