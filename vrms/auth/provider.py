"""Authentication provider client - administrative account operations only."""

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from vrms.config import settings
from vrms.utils.normalization import normalize_email

logger = logging.getLogger(__name__)

ALREADY_REGISTERED_CODES = {"email_exists", "user_already_exists"}


class AuthProviderError(Exception):
    """Provider failure other than an already-registered email."""


@dataclass(frozen=True)
class AuthAccount:
    """Credential record owned by the auth provider."""

    id: str
    email: str
    confirmed: bool = False

    def __post_init__(self):
        if not self.id:
            raise ValueError("auth account id is required")
        email = normalize_email(self.email)
        if not email:
            raise ValueError("auth account email is required")
        object.__setattr__(self, "email", email)


@dataclass(frozen=True)
class DuplicateAccount:
    """Create rejected - an account is already registered for this email."""

    email: str
    detail: str = ""


class AuthProvider(Protocol):
    async def create_account(
        self,
        email: str,
        password: str,
        confirmed: bool,
        metadata: dict[str, Any],
    ) -> AuthAccount | DuplicateAccount: ...

    async def find_account_by_email(self, email: str) -> AuthAccount | None: ...

    async def generate_verification_link(self, email: str) -> str: ...


def _account_from_payload(payload: dict) -> AuthAccount:
    user = payload.get("user", payload)
    return AuthAccount(
        id=str(user["id"]),
        email=user.get("email") or "",
        confirmed=bool(user.get("email_confirmed_at") or user.get("confirmed_at")),
    )


def _error_detail(response: httpx.Response) -> tuple[str | None, str]:
    try:
        body = response.json()
    except ValueError:
        return None, response.text
    if not isinstance(body, dict):
        return None, str(body)
    code = body.get("error_code") or body.get("code")
    message = body.get("msg") or body.get("message") or body.get("error_description") or ""
    return (str(code) if code is not None else None), str(message)


def is_already_registered(response: httpx.Response) -> bool:
    """Provider-specific "already registered" signal on a failed create."""
    if response.status_code not in (400, 409, 422):
        return False
    code, message = _error_detail(response)
    return code in ALREADY_REGISTERED_CODES or "already been registered" in message.lower()


@dataclass
class GoTrueAuthProvider:
    """Client for a GoTrue (Supabase Auth) admin API, authenticated with the service key."""

    base_url: str = field(default_factory=lambda: settings.auth_url)
    service_key: str = field(default_factory=lambda: settings.auth_service_key)
    timeout: float = field(default_factory=lambda: settings.auth_timeout_seconds)
    page_size: int = field(default_factory=lambda: settings.auth_list_page_size)
    redirect_url: str | None = field(default_factory=lambda: settings.verification_redirect_url)
    transport: httpx.AsyncBaseTransport | None = None

    @property
    def headers(self) -> dict[str, str]:
        return {
            "apikey": self.service_key,
            "Authorization": f"Bearer {self.service_key}",
        }

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.headers,
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                return await client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("Auth provider request %s %s failed: %s", method, path, exc)
            raise AuthProviderError(f"Auth provider unreachable: {exc}") from exc

    async def create_account(
        self,
        email: str,
        password: str,
        confirmed: bool,
        metadata: dict[str, Any],
    ) -> AuthAccount | DuplicateAccount:
        email = normalize_email(email)
        response = await self._request(
            "POST",
            "/auth/v1/admin/users",
            json={
                "email": email,
                "password": password,
                "email_confirm": confirmed,
                "user_metadata": metadata,
            },
        )
        if response.is_success:
            return _account_from_payload(response.json())
        if is_already_registered(response):
            _, message = _error_detail(response)
            return DuplicateAccount(email=email, detail=message)
        code, message = _error_detail(response)
        raise AuthProviderError(
            f"Account creation failed ({response.status_code} {code}): {message}"
        )

    async def find_account_by_email(self, email: str) -> AuthAccount | None:
        """Scan the provider's account pages for an email match."""
        email = normalize_email(email)
        page = 1
        while True:
            response = await self._request(
                "GET",
                "/auth/v1/admin/users",
                params={"page": page, "per_page": self.page_size},
            )
            if not response.is_success:
                code, message = _error_detail(response)
                raise AuthProviderError(
                    f"Account listing failed ({response.status_code} {code}): {message}"
                )
            users = response.json().get("users") or []
            for user in users:
                if normalize_email(user.get("email")) == email:
                    return _account_from_payload(user)
            if len(users) < self.page_size:
                return None
            page += 1

    async def generate_verification_link(self, email: str) -> str:
        payload: dict[str, Any] = {"type": "magiclink", "email": normalize_email(email)}
        if self.redirect_url:
            payload["redirect_to"] = self.redirect_url
        response = await self._request("POST", "/auth/v1/admin/generate_link", json=payload)
        if not response.is_success:
            code, message = _error_detail(response)
            raise AuthProviderError(
                f"Link generation failed ({response.status_code} {code}): {message}"
            )
        body = response.json()
        link = body.get("action_link") or (body.get("properties") or {}).get("action_link")
        if not link:
            raise AuthProviderError("Link generation returned no action_link")
        return link
