"""Google OAuth authorization code flow."""
import logging
import os
import secrets
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

import requests
from fastapi import HTTPException, status

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
PROVIDER_TIMEOUT = 10


@dataclass
class GoogleIdentity:
    email: str
    name: Optional[str]


class GoogleOAuthClient:
    provider = "google"

    def __init__(self, client_id: str, client_secret: str, redirect_uri: str):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri

    @classmethod
    def from_env(cls) -> "GoogleOAuthClient":
        client_id = os.getenv("GOOGLE_CLIENT_ID")
        client_secret = os.getenv("GOOGLE_CLIENT_SECRET")
        redirect_uri = os.getenv("GOOGLE_REDIRECT_URI")
        if not client_id or not client_secret or not redirect_uri:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Google OAuth not configured"
            )
        return cls(client_id, client_secret, redirect_uri)

    @staticmethod
    def new_state() -> str:
        return secrets.token_urlsafe(24)

    def authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": "openid email profile",
            "access_type": "offline",
            "include_granted_scopes": "true",
            "state": state,
            "prompt": "consent",
        }
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    def fetch_identity(self, code: str) -> GoogleIdentity:
        """Exchange the authorization code and read the signed-in user's profile.

        Provider failures surface as 401; a profile without an email as 400.
        """
        token_resp = self._call(
            "token exchange",
            requests.post,
            GOOGLE_TOKEN_URL,
            data={
                "code": code,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "redirect_uri": self.redirect_uri,
                "grant_type": "authorization_code",
            },
        )
        access_token = token_resp.json().get("access_token")
        if not access_token:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="No access token returned by provider"
            )

        userinfo = self._call(
            "userinfo request",
            requests.get,
            GOOGLE_USERINFO_URL,
            headers={"Authorization": f"Bearer {access_token}"},
        ).json()
        email = userinfo.get("email")
        if not email:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email not provided by provider"
            )
        return GoogleIdentity(email=email, name=userinfo.get("name") or userinfo.get("given_name"))

    def _call(self, what: str, send, url: str, **kwargs):
        try:
            response = send(url, timeout=PROVIDER_TIMEOUT, **kwargs)
        except requests.RequestException as e:
            logger.error(f"Google {what} failed: {e}")
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=f"Google {what} failed")
        if response.status_code != 200:
            logger.warning(f"Google {what} returned {response.status_code}")
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=f"Google {what} failed")
        return response
