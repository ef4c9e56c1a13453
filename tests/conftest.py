"""
Shared fixtures for django-storyblog tests.
"""
import io
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from django.core.files.uploadedfile import SimpleUploadedFile
from PIL import Image

from storyblog.identity import Identity
from storyblog.models import Post, Profile, UserRole


@pytest.fixture(scope="session")
def signing_key():
    """RSA key standing in for the identity provider's signing key."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def public_key_pem(signing_key):
    return signing_key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()


@pytest.fixture
def blog_config(settings, public_key_pem):
    """Enable token verification for the test."""
    settings.STORYBLOG = {
        **settings.STORYBLOG,
        "IDENTITY_PUBLIC_KEY": public_key_pem,
    }
    return settings.STORYBLOG


@pytest.fixture
def make_token(signing_key):
    """Build a provider token for a user."""

    def _make_token(user_id="user_author", full_name="Ada Lovelace", expires_in=3600, **claims):
        payload = {
            "sub": user_id,
            "full_name": full_name,
            "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
        }
        payload.update(claims)
        return jwt.encode(payload, signing_key, algorithm="RS256")

    return _make_token


@pytest.fixture
def auth_headers(db, blog_config, make_token):
    """Authorization headers for a test client request."""

    def _auth_headers(user_id="user_author", full_name="Ada Lovelace"):
        return {"HTTP_AUTHORIZATION": f"Bearer {make_token(user_id, full_name)}"}

    return _auth_headers


@pytest.fixture
def author(db):
    """Create the profile of a post author."""
    return Profile.objects.create(user_id="user_author", full_name="Ada Lovelace")


@pytest.fixture
def reader(db):
    return Profile.objects.create(user_id="user_reader", full_name="Grace Hopper")


@pytest.fixture
def admin_profile(db):
    profile = Profile.objects.create(user_id="user_admin", full_name="Site Admin")
    UserRole.objects.create(user=profile, role="admin")
    return profile


@pytest.fixture
def author_identity(author):
    return Identity(user_id=author.user_id, full_name=author.full_name)


@pytest.fixture
def post(db, author):
    """Create a test post."""
    return Post.objects.create(
        title="Test Post",
        content="First paragraph.\nSecond paragraph.",
        author=author,
    )


@pytest.fixture
def png_file():
    """Build a small valid PNG upload."""

    def _png_file(name="cover.png"):
        buffer = io.BytesIO()
        Image.new("RGB", (8, 8), "red").save(buffer, format="PNG")
        return SimpleUploadedFile(name, buffer.getvalue(), content_type="image/png")

    return _png_file
