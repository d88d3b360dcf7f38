from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Set

import jwt
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from storefront.core.config import settings

logger = logging.getLogger(__name__)

_ROLE_CUSTOMER = settings.ROLE_CUSTOMER
_ROLE_ADMIN = settings.ROLE_ADMIN

_bearer = HTTPBearer(auto_error=False)


@dataclass
class AuthContext:
    """Identity of the caller, built once per request."""

    user: str
    email: Optional[str] = None
    roles: List[str] = field(default_factory=list)

    @property
    def customer_id(self) -> str:
        return self.user

    @property
    def is_admin(self) -> bool:
        return _ROLE_ADMIN in self.roles

    def scope(self) -> Optional[str]:
        """Owner filter for order lookups: admins see every order."""
        return None if self.is_admin else self.user


def _roles_from_claims(payload: Dict[str, Any]) -> Set[str]:
    roles: Set[str] = set()
    role = payload.get("role")
    if isinstance(role, str) and role:
        roles.add(role)
    roles.update(payload.get("roles") or [])
    roles.update((payload.get("realm_access") or {}).get("roles", []))
    return roles


class _Verifier:
    def __init__(self, secret: str, algorithm: str, issuer: Optional[str] = None):
        if not secret or not algorithm:
            raise RuntimeError("JWT_SECRET / JWT_ALGORITHM are not configured")
        self.secret = secret
        self.algorithm = algorithm
        self.issuer = issuer

    def decode(self, token: str) -> Dict[str, Any]:
        options = {"require": ["exp", "sub"]}
        if self.issuer:
            return jwt.decode(
                token, self.secret, algorithms=[self.algorithm], issuer=self.issuer, options=options
            )
        return jwt.decode(token, self.secret, algorithms=[self.algorithm], options=options)


_verifier: Optional[_Verifier] = None


def _get_verifier() -> _Verifier:
    global _verifier
    if _verifier is None:
        _verifier = _Verifier(settings.JWT_SECRET, settings.JWT_ALGORITHM, settings.JWT_ISSUER)
    return _verifier


def issue_token(
    customer_id: str,
    role: Optional[str] = None,
    email: Optional[str] = None,
    expires_in: Optional[timedelta] = None,
) -> str:
    """Signs a bearer token with the same key and claims the verifier expects."""
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "sub": str(customer_id),
        "role": role or _ROLE_CUSTOMER,
        "iat": now,
        "exp": now + (expires_in or timedelta(minutes=settings.JWT_EXPIRES_MINUTES)),
    }
    if email:
        payload["email"] = email
    verifier = _get_verifier()
    if verifier.issuer:
        payload["iss"] = verifier.issuer
    return jwt.encode(payload, verifier.secret, algorithm=verifier.algorithm)


def require_user(
    x_auth_request_user: Optional[str] = Header(default=None),
    x_auth_request_email: Optional[str] = Header(default=None),
    x_auth_request_groups: Optional[str] = Header(default=None),
    creds: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> AuthContext:
    # Gateway mode: identity already checked upstream
    if settings.AUTH_TRUST_GATEWAY and x_auth_request_user:
        groups = [g.strip() for g in (x_auth_request_groups or "").split(",") if g.strip()]
        return AuthContext(user=x_auth_request_user, email=x_auth_request_email, roles=groups)

    if creds is None or not creds.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = _get_verifier().decode(creds.credentials)
    except jwt.PyJWTError as exc:
        logger.warning("JWT invalid: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return AuthContext(
        user=str(payload.get("sub")),
        email=payload.get("email"),
        roles=sorted(_roles_from_claims(payload)),
    )


def require_customer(auth: AuthContext = Depends(require_user)) -> AuthContext:
    if _ROLE_CUSTOMER not in auth.roles and _ROLE_ADMIN not in auth.roles:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Customer role required")
    return auth


def require_admin(auth: AuthContext = Depends(require_user)) -> AuthContext:
    if _ROLE_ADMIN not in auth.roles:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required")
    return auth
