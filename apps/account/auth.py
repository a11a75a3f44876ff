# -*- coding: utf-8 -*-
"""页面鉴权：未登录跳登录页，角色不符跳 redirect"""
from functools import wraps

from django.shortcuts import redirect as redirect_to
from django.urls import reverse
from django.utils.http import urlencode

from . import session_store

ADMIN_ROLES = ("ADMIN", "SUPER_ADMIN")


def login_url(request):
    return reverse("account:login") + "?" + urlencode({"next": request.get_full_path()})


def role_required(roles=ADMIN_ROLES, redirect="dashboard:home"):
    """要求已登录且角色在 roles 内；未登录带 next 跳登录页，角色不符跳 redirect"""
    if isinstance(roles, str):
        roles = (roles,)

    def decorator(view_func):
        @wraps(view_func)
        def wrapped(request, *args, **kwargs):
            if not session_store.is_authenticated(request):
                return redirect_to(login_url(request))
            if not session_store.has_role(request, roles):
                return redirect_to(redirect)
            return view_func(request, *args, **kwargs)
        return wrapped
    return decorator


def protected(view_func=None, roles=ADMIN_ROLES, redirect="account:login"):
    """仅 ADMIN / SUPER_ADMIN 可访问；可直接 @protected 或 @protected(roles=...)"""
    decorator = role_required(roles, redirect)
    if view_func is not None:
        return decorator(view_func)
    return decorator
