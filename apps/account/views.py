import logging
import re

from django.contrib import messages
from django.shortcuts import redirect, render
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.decorators.http import require_http_methods

from apps.backend import auth as auth_api
from apps.backend.client import BackendClient, BackendError, BackendHTTPError, client_for, server_message

from . import session_store
from .auth import ADMIN_ROLES

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
TOTP_PATTERN = re.compile(r"^\d{6}$")
TOTP_EMAIL_KEY = "login_totp_email"


def _next_url(request):
    nxt = request.POST.get("next") or request.GET.get("next") or ""
    if nxt and url_has_allowed_host_and_scheme(nxt, allowed_hosts={request.get_host()}):
        return nxt
    return None


def _login_error_message(exc, show_totp):
    """把登录失败映射为提示；返回 (message, need_totp)"""
    if isinstance(exc, auth_api.MalformedLoginResponse):
        return "Unexpected server response. Please try again later.", show_totp
    if isinstance(exc, BackendHTTPError):
        code = auth_api.login_error_code(exc)
        if exc.status == 401:
            if code == "TOTP_INVALID":
                return "Invalid two-factor code. Please try again.", True
            if code == "TOTP_REQUIRED":
                return "Two-factor code required. Please enter the 6-digit code.", True
            return "Invalid email or password.", show_totp
        return server_message(exc, "Login failed. Please check your credentials."), show_totp
    return "Login failed. Please check your credentials.", show_totp


@require_http_methods(["GET", "POST"])
def login(request):
    """邮箱+密码登录；后端要求两步验证时（401 TOTP_REQUIRED）展开 6 位验证码输入框"""
    if request.method == "GET":
        if session_store.is_authenticated(request):
            if session_store.has_role(request, ADMIN_ROLES):
                return redirect("dashboard:home")
            # 非管理员会话：清掉后重新登录
            session_store.logout(request)
        request.session.pop(TOTP_EMAIL_KEY, None)
        return render(request, "account/login.html", {"next": _next_url(request) or ""})

    email = (request.POST.get("email") or "").strip()
    password = request.POST.get("password") or ""
    remember = request.POST.get("remember_me") in ("on", "1", "true")
    totp_code = (request.POST.get("totp_code") or "").strip()
    show_totp = request.session.get(TOTP_EMAIL_KEY) == email and bool(email)
    ctx = {"email": email, "remember_me": remember, "show_totp": show_totp, "next": _next_url(request) or "", "errors": {}}

    if not EMAIL_PATTERN.match(email):
        ctx["errors"]["email"] = "Please enter a valid email"
    if not password:
        ctx["errors"]["password"] = "Password is required"
    if show_totp and not TOTP_PATTERN.match(totp_code):
        ctx["errors"]["totp_code"] = "Please enter a valid 6-digit code"
    if ctx["errors"]:
        return render(request, "account/login.html", ctx, status=400)

    client = BackendClient()
    try:
        result = auth_api.login(client, email, password, totp_code if show_totp else None)
    except BackendError as e:
        # 第一次提交不带验证码，后端提示需要两步验证时只展开输入框，不算失败
        if not show_totp and auth_api.login_error_code(e) == "TOTP_REQUIRED":
            request.session[TOTP_EMAIL_KEY] = email
            messages.info(request, "Two-factor authentication is enabled for this account. Enter your 6-digit code.")
            ctx["show_totp"] = True
            return render(request, "account/login.html", ctx)
        message, need_totp = _login_error_message(e, show_totp)
        if need_totp:
            request.session[TOTP_EMAIL_KEY] = email
        ctx["show_totp"] = need_totp
        logger.warning("登录失败 %s: %s", email, e)
        messages.error(request, message)
        status = 401 if isinstance(e, BackendHTTPError) and e.status == 401 else 400
        return render(request, "account/login.html", ctx, status=status)

    request.session.pop(TOTP_EMAIL_KEY, None)
    if result["user"]["role"] not in ADMIN_ROLES:
        logger.warning("非管理员账号尝试登录 %s role=%s", email, result["user"]["role"])
        messages.error(request, "You are not authorized to access the admin dashboard.")
        ctx["show_totp"] = False
        return render(request, "account/login.html", ctx, status=403)
    session_store.set_auth(request, result["user"], result["token"], remember=remember)
    messages.success(request, "Login successful!")
    return redirect(_next_url(request) or "dashboard:home")


@require_http_methods(["POST"])
def logout(request):
    if session_store.get_token(request):
        try:
            auth_api.logout(client_for(request))
        except BackendError as e:
            logger.info("后端注销失败，仅清除本地会话: %s", e)
    session_store.logout(request)
    messages.success(request, "You have been signed out.")
    return redirect("account:login")
