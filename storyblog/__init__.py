"""
django-storyblog - A small multi-author blog for Django.

Features:
- Posts with optional cover images uploaded through pre-signed URLs
- Hide/unhide instead of deleting, archive and author listings
- Comments from named visitors
- Emoji reactions with one active reaction per reader
- Per-browser view counting deduplicated by visitor cookie
- Bearer-token identities issued by an external provider
"""

__version__ = "0.1.0"
