"""Authentication endpoints: password accounts, tokens and Google sign-in."""
import logging
import os
import secrets
from typing import Optional, Tuple
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, status, Request, Response, Body
from fastapi.responses import RedirectResponse
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from feedback_api.database import get_db
from .models import User
from .oauth import GoogleOAuthClient
from .schemas import Token, UserCreate, UserResponse, ChangePassword
from .service import AuthService, get_current_active_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

OAUTH_STATE_COOKIE = "oauth_state"
OAUTH_STATE_MAX_AGE = 600


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(db)


def client_info(request: Request) -> Tuple[Optional[str], Optional[str]]:
    """User agent and IP address recorded against tokens and login attempts."""
    return request.headers.get("user-agent"), request.client.host if request.client else None


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register_user(
    user_data: UserCreate,
    service: AuthService = Depends(get_auth_service)
):
    """Create a student or professor account."""
    return service.register_user(user_data)


@router.post("/login", response_model=Token)
async def login_for_access_token(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    service: AuthService = Depends(get_auth_service)
):
    """OAuth2 password flow; the username field carries the email."""
    user_agent, ip_address = client_info(request)
    return service.login(form_data.username, form_data.password, user_agent=user_agent, ip_address=ip_address)


@router.post("/refresh", response_model=Token)
async def refresh_access_token(
    refresh_token: str = Body(embed=True),
    service: AuthService = Depends(get_auth_service)
):
    return service.refresh_tokens(refresh_token)


@router.post("/logout")
async def logout(
    refresh_token: str = Body(embed=True),
    service: AuthService = Depends(get_auth_service)
):
    service.revoke_refresh_token(refresh_token)
    return {"message": "Successfully logged out"}


@router.post("/change-password", status_code=status.HTTP_204_NO_CONTENT)
async def change_password(
    password_data: ChangePassword,
    current_user: User = Depends(get_current_active_user),
    service: AuthService = Depends(get_auth_service)
):
    service.change_password(current_user, password_data.current_password, password_data.new_password)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=UserResponse)
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    return current_user


@router.get("/oauth/google/login")
async def google_login(request: Request):
    """Redirect to Google's consent screen."""
    google = GoogleOAuthClient.from_env()
    state = google.new_state()
    response = RedirectResponse(google.authorization_url(state), status_code=status.HTTP_307_TEMPORARY_REDIRECT)
    # Checked against the state echoed back on callback
    response.set_cookie(
        OAUTH_STATE_COOKIE,
        state,
        httponly=True,
        max_age=OAUTH_STATE_MAX_AGE,
        samesite="lax",
        secure=request.url.scheme == "https",
    )
    return response


@router.get("/oauth/google/callback")
async def google_callback(
    request: Request,
    code: str,
    state: str,
    service: AuthService = Depends(get_auth_service),
):
    """Finish Google sign-in and hand tokens to the frontend, or return them as JSON."""
    google = GoogleOAuthClient.from_env()
    expected_state = request.cookies.get(OAUTH_STATE_COOKIE)
    if not expected_state or not secrets.compare_digest(expected_state, state):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid OAuth state")

    identity = google.fetch_identity(code)
    user = service.upsert_oauth_user(email=identity.email, full_name=identity.name, provider=google.provider)
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")

    user_agent, ip_address = client_info(request)
    tokens = service.issue_tokens(user, user_agent=user_agent, ip_address=ip_address)

    frontend_redirect = os.getenv("FRONTEND_OAUTH_REDIRECT_URI")
    if frontend_redirect:
        fragment = urlencode({
            "access_token": tokens.access_token,
            "refresh_token": tokens.refresh_token,
            "token_type": tokens.token_type,
        })
        response = RedirectResponse(f"{frontend_redirect}#{fragment}")
        response.delete_cookie(OAUTH_STATE_COOKIE)
        return response
    return {
        **tokens.model_dump(),
        "email": user.email,
        "name": user.full_name,
    }
