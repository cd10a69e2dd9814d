"""Caller identification for the JSON API.

A request is authenticated either by the Django session or by an
``Authorization: Bearer <token>`` header carrying an HS256 JWT with the
user's primary key under ``id``.
"""

import logging
from datetime import datetime, timedelta, timezone
from functools import wraps

import jwt
from django.conf import settings
from django.contrib.auth import get_user_model
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def issue_access_token(user) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "id": user.pk,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(days=settings.JWT_TTL_DAYS)).timestamp()),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def user_from_bearer(request):
    """Return the active user named by the bearer token, or ``None``."""
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return None
    token = auth.split(" ", 1)[1].strip()
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=["HS256"])
    except jwt.PyJWTError as e:
        logger.info("Rejected bearer token: %s", e)
        return None
    User = get_user_model()
    return User.objects.filter(pk=payload.get("id"), is_active=True).first()


def api_login_required(view):
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            user = user_from_bearer(request)
            if user is None:
                return JsonResponse({"message": "Not authorized, token failed"}, status=401)
            request.user = user
        return view(request, *args, **kwargs)
    return wrapper


def staff_required(view):
    @api_login_required
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_staff:
            return JsonResponse({"message": "Access denied. Admin only."}, status=403)
        return view(request, *args, **kwargs)
    return wrapper
