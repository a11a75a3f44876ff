# -*- coding: utf-8 -*-
"""页面内 JSON 接口鉴权：沿用管理后台登录会话，未登录 401，角色不符 403"""
from functools import wraps

from rest_framework import status
from rest_framework.response import Response

from apps.account import session_store
from apps.account.auth import ADMIN_ROLES


def _result(code=0, message="success", data=None):
    return {"code": code, "message": message, "data": data}


def admin_api_required(view_func=None, roles=ADMIN_ROLES):
    """可直接 @admin_api_required 或 @admin_api_required(roles=("SUPER_ADMIN",))"""
    if isinstance(roles, str):
        roles = (roles,)

    def decorator(func):
        @wraps(func)
        def wrapped(request, *args, **kwargs):
            if not session_store.is_authenticated(request):
                return Response(_result(401, "Not authenticated"), status=status.HTTP_401_UNAUTHORIZED)
            if not session_store.has_role(request, roles):
                return Response(_result(403, "Forbidden"), status=status.HTTP_403_FORBIDDEN)
            return func(request, *args, **kwargs)
        return wrapped

    if view_func is not None:
        return decorator(view_func)
    return decorator
