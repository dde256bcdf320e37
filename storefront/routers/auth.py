# storefront/routers/auth.py
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.concurrency import run_in_threadpool
from fastapi.security import HTTPAuthorizationCredentials

from storefront.core.auth import bearer_scheme, decode_access_token
from storefront.core.config import get_settings
from storefront.core.supabase_client import supabase_admin, supabase_public
from storefront.schemas.user import IdentityRead, LoginRequest, SignUpRequest, TokenRead
from storefront.services.identity import AuthFailedError, AuthTokens, SupabaseAuthGateway

router = APIRouter(prefix="/auth", tags=["Auth"])


def get_auth_gateway() -> SupabaseAuthGateway:
    """
    Build the gateway on first use so the app can start without
    reaching Supabase.
    """
    settings = get_settings()
    admin = supabase_admin() if settings.SUPABASE_SERVICE_ROLE_KEY else None
    return SupabaseAuthGateway(supabase_public(), admin)


def _token_read(tokens: AuthTokens) -> TokenRead:
    identity = tokens.identity
    return TokenRead(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        user=IdentityRead(
            user_id=identity.user_id,
            email=identity.email,
            display_name=identity.display_name,
        ),
    )


@router.post("/signup", response_model=TokenRead, status_code=status.HTTP_201_CREATED)
async def sign_up(
    payload: SignUpRequest,
    gateway: SupabaseAuthGateway = Depends(get_auth_gateway),
):
    """
    Create an account with email + password (Supabase Auth).
    """
    try:
        tokens = await run_in_threadpool(
            gateway.sign_up, payload.email, payload.password, payload.display_name
        )
    except AuthFailedError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return _token_read(tokens)


@router.post("/login", response_model=TokenRead)
async def log_in(
    payload: LoginRequest,
    gateway: SupabaseAuthGateway = Depends(get_auth_gateway),
):
    """
    Sign in with email + password.

    Sending the returned access token on the next cart request switches
    the device from its guest cart to the account cart.
    """
    try:
        tokens = await run_in_threadpool(gateway.sign_in, payload.email, payload.password)
    except AuthFailedError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc))
    return _token_read(tokens)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def log_out(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    gateway: SupabaseAuthGateway = Depends(get_auth_gateway),
):
    """
    Revoke the session behind the bearer token.

    The next request without a token gets the device's guest cart back.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    decode_access_token(credentials.credentials)
    try:
        await run_in_threadpool(gateway.sign_out, credentials.credentials)
    except AuthFailedError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return None
