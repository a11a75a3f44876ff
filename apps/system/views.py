from django.core.cache import cache
from rest_framework.decorators import api_view
from rest_framework.response import Response

from apps.backend.client import BackendClient, BackendHTTPError, BackendUnauthorized, BackendUnavailable


@api_view(["GET"])
def health(request):
    """健康检查：Redis、远端后端（能返回任意 HTTP 响应即视为在线）"""
    result = {"status": "UP", "redis": "DOWN", "backend": "DOWN"}
    try:
        cache.set("health_check", 1, 5)
        cache.delete("health_check")
        result["redis"] = "UP"
    except Exception as e:
        result["redis"] = f"DOWN: {e}"
    try:
        BackendClient(timeout=3).get("/auth/verify")
        result["backend"] = "UP"
    except (BackendHTTPError, BackendUnauthorized):
        result["backend"] = "UP"
    except BackendUnavailable as e:
        result["backend"] = f"DOWN: {e}"
    return Response(result)
