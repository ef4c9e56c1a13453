"""
Models for django-storyblog.

All models are importable from storyblog.models:

    from storyblog.models import Post, PostView, Comment, Reaction, Profile
"""
from .posts import Post, PostView
from .comments import Comment, Reaction
from .profiles import Profile, UserRole

__all__ = [
    # Posts
    "Post",
    "PostView",
    # Comments
    "Comment",
    "Reaction",
    # Profiles
    "Profile",
    "UserRole",
]
