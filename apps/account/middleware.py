# -*- coding: utf-8 -*-
"""后端返回 401（登录接口除外）时清本地会话并跳登录页；/api/ 下返回 JSON"""
import logging

from django.contrib import messages
from django.http import JsonResponse
from django.shortcuts import redirect

from apps.backend.client import BackendUnauthorized

from . import session_store

logger = logging.getLogger(__name__)


class BackendUnauthorizedMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request, exception):
        if not isinstance(exception, BackendUnauthorized):
            return None
        logger.info("后端 token 失效，清除会话: %s", exception.path)
        session_store.logout(request)
        if request.path.startswith("/api/"):
            return JsonResponse(
                {"code": 401, "message": "Session expired", "data": None},
                status=401,
            )
        messages.warning(request, "Your session has expired. Please sign in again.")
        return redirect("account:login")
