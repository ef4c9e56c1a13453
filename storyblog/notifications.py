"""
Transient notifications for the reader.

Every mutating endpoint reports its outcome both in the JSON body and
through Django's messages framework.
"""
from django.contrib import messages
from django.http import JsonResponse

LEVELS = {
    "success": messages.SUCCESS,
    "info": messages.INFO,
    "error": messages.ERROR,
}


def notify(request, level, title, description="", status=200, **payload):
    """Queue a message and return a JSON response carrying it."""
    text = f"{title}: {description}" if description else title
    messages.add_message(request, LEVELS[level], text, fail_silently=True)

    body = {"notification": {"level": level, "title": title, "description": description}}
    body.update(payload)
    return JsonResponse(body, status=status)


def success(request, title, description="", **payload):
    return notify(request, "success", title, description, **payload)


def error(request, title, description="", status=400, **payload):
    return notify(request, "error", title, description, status=status, **payload)
