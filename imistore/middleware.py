import logging

from django.conf import settings
from django.core.exceptions import PermissionDenied
from django.http import Http404, JsonResponse, RawPostDataException, UnreadablePostError

from .exceptions import ShopError

logger = logging.getLogger(__name__)


class ApiErrorMiddleware:
    """Render domain errors raised by views as JSON responses."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request, exception):
        if isinstance(exception, ShopError):
            if exception.status_code >= 500:
                logger.error(
                    "%s on %s txnid=%s: %s",
                    type(exception).__name__,
                    request.path,
                    _posted_txnid(request),
                    exception.message,
                )
            return JsonResponse(exception.as_dict(), status=exception.status_code)

        if isinstance(exception, (Http404, PermissionDenied)):
            return None

        logger.exception("Unhandled error on %s txnid=%s", request.path, _posted_txnid(request))
        if settings.DEBUG:
            return None
        return JsonResponse({"message": "Internal Server Error"}, status=500)


def _posted_txnid(request) -> str:
    # Gateway callbacks are form-encoded; JSON bodies leave POST empty.
    try:
        return request.POST.get("txnid", "") or request.GET.get("txnid", "")
    except (RawPostDataException, UnreadablePostError):
        return ""
