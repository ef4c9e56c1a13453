"""
Configuration settings for django-storyblog.

Override these in your Django settings.py:

    STORYBLOG = {
        'POSTS_PER_PAGE': 10,
        'MAX_IMAGE_SIZE': 470 * 1024,
        ...
    }

Values supplied by the deployment environment (identity provider key,
upload signer, public storage domain) may also come from environment
variables, e.g. STORYBLOG_IDENTITY_PUBLIC_KEY. Django settings win over
the environment.
"""
import logging
import os

import jwt
from django.conf import settings
from jwt.algorithms import get_default_algorithms

logger = logging.getLogger(__name__)

DEFAULTS = {
    # Identity provider
    "IDENTITY_PUBLIC_KEY": None,
    "IDENTITY_ALGORITHMS": ["RS256"],
    "IDENTITY_AUDIENCE": None,
    "IDENTITY_ISSUER": None,
    "ADMIN_ROLE": "admin",

    # Object storage
    "UPLOAD_SIGNER_URL": None,
    "STORAGE_PUBLIC_URL": None,
    "UPLOAD_TIMEOUT": 30,
    "MAX_IMAGE_SIZE": 470 * 1024,

    # Visitors
    "VISITOR_COOKIE_NAME": "visitor_id",
    "VISITOR_COOKIE_MAX_AGE": 10 * 365 * 24 * 60 * 60,

    # Posts
    "POSTS_PER_PAGE": 10,
    "FEATURED_POST_COUNT": 5,
    "EXCERPT_LENGTH": 200,

    # Comments
    "COMMENT_MAX_LENGTH": 1000,
    "COMMENT_AUTHOR_MAX_LENGTH": 100,
}

# Settings that fall back to the process environment
ENVIRONMENT_SETTINGS = {
    "IDENTITY_PUBLIC_KEY": "STORYBLOG_IDENTITY_PUBLIC_KEY",
    "IDENTITY_AUDIENCE": "STORYBLOG_IDENTITY_AUDIENCE",
    "IDENTITY_ISSUER": "STORYBLOG_IDENTITY_ISSUER",
    "UPLOAD_SIGNER_URL": "STORYBLOG_UPLOAD_SIGNER_URL",
    "STORAGE_PUBLIC_URL": "STORYBLOG_STORAGE_PUBLIC_URL",
}

# Closed set of reactions: (value, label, emoji)
REACTION_TYPES = [
    ("like", "Like", "👍"),
    ("love", "Love", "❤️"),
    ("haha", "Haha", "😂"),
    ("wow", "Wow", "😮"),
    ("sad", "Sad", "😢"),
    ("angry", "Angry", "😠"),
]


class StoryBlogSettings:
    """
    Lazy settings object that reads from Django settings.

    Access via: from storyblog.conf import blog_settings
    """

    def __getattr__(self, name):
        if name not in DEFAULTS:
            raise AttributeError(f"Invalid storyblog setting: {name}")

        user_settings = getattr(settings, "STORYBLOG", {})
        if name in user_settings:
            return user_settings[name]

        env_name = ENVIRONMENT_SETTINGS.get(name)
        if env_name and os.environ.get(env_name):
            return os.environ[env_name]

        return DEFAULTS[name]

    @property
    def auth_enabled(self):
        """Whether bearer tokens can be verified."""
        return bool(self.IDENTITY_PUBLIC_KEY)

    @property
    def uploads_enabled(self):
        """Whether image uploads can be signed and published."""
        return bool(self.UPLOAD_SIGNER_URL and self.STORAGE_PUBLIC_URL)


blog_settings = StoryBlogSettings()


def identity_key_is_usable():
    """Whether the configured key loads for every configured algorithm."""
    algorithms = get_default_algorithms()
    try:
        for name in blog_settings.IDENTITY_ALGORITHMS:
            algorithms[name].prepare_key(blog_settings.IDENTITY_PUBLIC_KEY)
    except (KeyError, ValueError, jwt.PyJWTError):
        return False
    return True


def check_configuration():
    """
    Warn about missing deployment configuration.

    Missing values degrade features instead of stopping the app.
    Returns the list of warning messages that were logged.
    """
    warnings = []
    if not blog_settings.auth_enabled:
        warnings.append(
            "STORYBLOG_IDENTITY_PUBLIC_KEY is not set; authentication is disabled."
        )
    elif not identity_key_is_usable():
        warnings.append(
            "STORYBLOG_IDENTITY_PUBLIC_KEY could not be loaded; authentication is disabled."
        )
    if not blog_settings.UPLOAD_SIGNER_URL:
        warnings.append(
            "STORYBLOG_UPLOAD_SIGNER_URL is not set; image uploads are disabled."
        )
    if not blog_settings.STORAGE_PUBLIC_URL:
        warnings.append(
            "STORYBLOG_STORAGE_PUBLIC_URL is not set; image uploads are disabled."
        )

    for message in warnings:
        logger.warning(message)
    return warnings
