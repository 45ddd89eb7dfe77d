# ─────────────────────────────────────────────────────────────────────────────
# /api/auth — account registration and token issuance
# ─────────────────────────────────────────────────────────────────────────────

from fastapi import APIRouter, Depends

from cereal_api.dependencies import get_account_service
from cereal_api.schemas import LoginRequest, MessageResponse, RegisterRequest, TokenResponse
from cereal_api.services.accounts import AccountService

router = APIRouter(prefix="/api/auth")


@router.post("/register", response_model=MessageResponse, responses={400: {}})
def register(
    request: RegisterRequest,
    accounts: AccountService = Depends(get_account_service),
) -> MessageResponse:
    accounts.register(request)
    return MessageResponse(message="User created successfully!")


@router.post("/login", response_model=TokenResponse, responses={401: {}})
def login(
    request: LoginRequest,
    accounts: AccountService = Depends(get_account_service),
) -> TokenResponse:
    """Exchange credentials for a bearer token valid for three hours."""
    return TokenResponse(token=accounts.login(request))
