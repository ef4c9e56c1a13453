"""
Per-browser visitor identifiers.

Each browser gets a random token stored in a long-lived cookie. The
token is not a credential; it only deduplicates post views.
"""
import uuid

from .conf import blog_settings


def new_visitor_id():
    return str(uuid.uuid4())


def is_valid_visitor_id(value):
    try:
        return str(uuid.UUID(value)) == value
    except (TypeError, ValueError, AttributeError):
        return False


def get_visitor_id(request):
    """
    Return the visitor token for a request, creating one if needed.

    A browser that drops cookies gets a new token on every request.
    """
    visitor_id = getattr(request, "visitor_id", None)
    if visitor_id:
        return visitor_id

    visitor_id = request.COOKIES.get(blog_settings.VISITOR_COOKIE_NAME)
    if not is_valid_visitor_id(visitor_id):
        visitor_id = new_visitor_id()
    request.visitor_id = visitor_id
    return visitor_id


class VisitorMiddleware:
    """Attach request.visitor_id and persist it in a cookie."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        visitor_id = get_visitor_id(request)
        response = self.get_response(request)

        cookie_name = blog_settings.VISITOR_COOKIE_NAME
        if request.COOKIES.get(cookie_name) != visitor_id:
            response.set_cookie(
                cookie_name,
                visitor_id,
                max_age=blog_settings.VISITOR_COOKIE_MAX_AGE,
                httponly=True,
                samesite="Lax",
            )
        return response
