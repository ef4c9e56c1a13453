"""
Identities issued by the external identity provider.

Requests authenticate with ``Authorization: Bearer <token>`` where the
token is a JWT signed by the provider. Verified identities get a
Profile upserted and their admin role looked up; anything else is
treated as an anonymous visitor.
"""
import logging
from dataclasses import dataclass

import jwt
from django.db import DatabaseError

from .conf import blog_settings
from .models import Profile, UserRole

logger = logging.getLogger(__name__)

NAME_CLAIMS = ("full_name", "name", "username")


@dataclass(frozen=True)
class Identity:
    """The signed-in user as known to the blog."""

    user_id: str
    full_name: str = "Anonymous"
    email: str = ""
    is_admin: bool = False


def get_bearer_token(request):
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def decode_token(token):
    """
    Verify a provider token and return its claims.

    Raises jwt.InvalidTokenError if the token cannot be trusted, or
    another jwt.PyJWTError if the configured key cannot be used.
    """
    options = {"require": ["sub", "exp"]}
    kwargs = {}
    if blog_settings.IDENTITY_AUDIENCE:
        kwargs["audience"] = blog_settings.IDENTITY_AUDIENCE
    else:
        options["verify_aud"] = False
    if blog_settings.IDENTITY_ISSUER:
        kwargs["issuer"] = blog_settings.IDENTITY_ISSUER

    return jwt.decode(
        token,
        blog_settings.IDENTITY_PUBLIC_KEY,
        algorithms=blog_settings.IDENTITY_ALGORITHMS,
        options=options,
        **kwargs,
    )


def identity_from_claims(claims):
    full_name = next(
        (claims[c].strip() for c in NAME_CLAIMS if isinstance(claims.get(c), str) and claims[c].strip()),
        "Anonymous",
    )
    return Identity(
        user_id=str(claims["sub"]),
        full_name=full_name,
        email=claims.get("email") or "",
    )


def sync_identity(identity):
    """
    Upsert the profile and resolve the admin role.

    Database failures are logged and leave the identity without
    admin rights.
    """
    try:
        Profile.sync(identity.user_id, identity.full_name)
    except DatabaseError:
        logger.exception("Failed to upsert profile for %s", identity.user_id)
        return identity

    try:
        is_admin = UserRole.has_role(identity.user_id, blog_settings.ADMIN_ROLE)
    except DatabaseError:
        logger.exception("Failed to fetch admin role for %s", identity.user_id)
        is_admin = False

    if is_admin == identity.is_admin:
        return identity
    return Identity(
        user_id=identity.user_id,
        full_name=identity.full_name,
        email=identity.email,
        is_admin=is_admin,
    )


def authenticate(request):
    """Return the Identity for a request, or None for anonymous visitors."""
    token = get_bearer_token(request)
    if token is None:
        return None

    if not blog_settings.auth_enabled:
        logger.debug("Ignoring bearer token: authentication is disabled")
        return None

    try:
        claims = decode_token(token)
    except jwt.InvalidTokenError as exc:
        logger.warning("Rejected identity token: %s", exc)
        return None
    except jwt.PyJWTError as exc:
        # Unusable key or algorithm configuration
        logger.error("Cannot verify identity tokens: %s", exc)
        return None

    return sync_identity(identity_from_claims(claims))


def get_identity(request):
    if not hasattr(request, "identity"):
        request.identity = authenticate(request)
    return request.identity


class IdentityMiddleware:
    """Attach request.identity for every request."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        get_identity(request)
        return self.get_response(request)
