"""API - HTTP gateway and service for the risk decision engine.

Endpoints:
    POST /auth/login, POST /auth/logout
    POST /api/transfer
    POST /user/update-risk, /user/block, /user/unblock, /user/set-mid
    GET  /user/status/{user_id}

Policy outcomes are 200 responses. Scores and reason codes are never
exposed through this API.
"""

from riskgate.api.gateway import app
from riskgate.api.schemas import (
    AuthResponse,
    ErrorResponse,
    LoginRequest,
    RiskReportRequest,
    TransferRequest,
    TransferResponse,
    UserActionRequest,
    UserStatusResponse,
)
from riskgate.api.service import RiskGateService

__all__ = [
    "app",
    "AuthResponse",
    "ErrorResponse",
    "LoginRequest",
    "RiskReportRequest",
    "TransferRequest",
    "TransferResponse",
    "UserActionRequest",
    "UserStatusResponse",
    "RiskGateService",
]
