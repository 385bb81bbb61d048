"""
Session gate: turns a bearer token into a caller identity.

The identity provider is pluggable. "local" validates the JWTs issued by /auth/login;
"hosted" asks a backend-as-a-service auth endpoint ("who is this token?") and sends
the caller's token as the Authorization header of that request.
"""
import json
import logging
from dataclasses import dataclass
from typing import Protocol
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.core.config import Settings
from app.core.errors import AuthenticationError, AuthorizationError, ConfigurationError
from app.core.security import decode_access_token
from app.models import User

logger = logging.getLogger(__name__)

HOSTED_AUTH_TIMEOUT = 10.0


@dataclass(frozen=True)
class Identity:
    id: str
    email: str | None = None


@dataclass(frozen=True)
class CallerContext:
    """Request-scoped credential context; lives only for one request."""

    token: str
    identity: Identity | None = None

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}

    def with_identity(self, identity: Identity) -> "CallerContext":
        return CallerContext(token=self.token, identity=identity)


class IdentityProviderError(Exception):
    """Provider could not answer (network, bad payload, server error)."""


class IdentityProvider(Protocol):
    name: str

    def get_user(self, context: CallerContext) -> Identity | None: ...


class LocalIdentityProvider:
    name = "local"

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def get_user(self, context: CallerContext) -> Identity | None:
        user_id = decode_access_token(context.token)
        if not user_id:
            return None
        try:
            with Session(self._engine) as db:
                user = db.get(User, user_id)
        except SQLAlchemyError as e:
            raise IdentityProviderError(str(e)) from e
        if not user:
            return None
        return Identity(id=user.id, email=user.email)


class HostedIdentityProvider:
    name = "hosted"

    def __init__(self, base_url: str, anon_key: str, timeout: float = HOSTED_AUTH_TIMEOUT) -> None:
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self.timeout = timeout

    def get_user(self, context: CallerContext) -> Identity | None:
        headers = {"apikey": self.anon_key, "Accept": "application/json", **context.headers}
        req = Request(f"{self.base_url}/auth/v1/user", headers=headers, method="GET")
        try:
            with urlopen(req, timeout=self.timeout) as r:
                data = json.loads(r.read().decode())
        except HTTPError as e:
            if e.code in (401, 403):
                return None
            raise IdentityProviderError(f"auth endpoint returned {e.code}") from e
        except (URLError, OSError, ValueError) as e:
            raise IdentityProviderError(str(e)) from e
        user_id = data.get("id") if isinstance(data, dict) else None
        if not user_id:
            return None
        return Identity(id=str(user_id), email=data.get("email"))


class SessionGate:
    def __init__(self, provider: IdentityProvider) -> None:
        self.provider = provider

    def authenticate(self, bearer_token: str | None) -> CallerContext:
        token = (bearer_token or "").strip()
        if not token:
            raise AuthenticationError("Unauthorized", reason="no-credential")
        context = CallerContext(token=token)
        try:
            identity = self.provider.get_user(context)
        except IdentityProviderError as e:
            logger.warning("Identity provider %s failed: %s", self.provider.name, e)
            raise AuthenticationError("Unauthorized", reason="invalid-credential") from e
        if identity is None:
            raise AuthenticationError("Unauthorized", reason="invalid-credential")
        return context.with_identity(identity)

    @staticmethod
    def authorize_owner(identity: Identity, claimed_user_id: str) -> None:
        if identity.id != claimed_user_id:
            raise AuthorizationError("user ID mismatch")


def build_session_gate(settings: Settings, engine: Engine) -> SessionGate:
    if settings.auth_provider == "hosted":
        if not settings.backend_url or not settings.backend_anon_key:
            raise ConfigurationError("BACKEND_URL and BACKEND_ANON_KEY are required for AUTH_PROVIDER=hosted.")
        return SessionGate(HostedIdentityProvider(settings.backend_url, settings.backend_anon_key))
    if settings.auth_provider != "local":
        raise ConfigurationError(f"Unknown AUTH_PROVIDER: {settings.auth_provider}")
    return SessionGate(LocalIdentityProvider(engine))
