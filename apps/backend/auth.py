# -*- coding: utf-8 -*-
"""
登录鉴权接口。后端登录返回 {token, message, user: {email, name, role}}，有时包在 {"data": ...} 里；
不返回 id / createdAt / refreshToken，这里补齐占位，页面按统一结构使用。
"""
from django.utils import timezone

from .client import BackendError, BackendHTTPError
from .shapes import unwrap

ROLES = ("ADMIN", "SUPER_ADMIN")


class MalformedLoginResponse(BackendError):
    pass


def map_backend_user_to_admin(u):
    role = (u.get("role") or "").upper() or "ADMIN"
    return {
        "id": u.get("id") or u.get("email"),
        "name": u.get("name") or "",
        "email": u.get("email"),
        "role": role,
        "profile_picture": u.get("profilePicture") or u.get("imageUrl"),
        "created_at": u.get("createdAt") or timezone.now().isoformat(),
    }


def login(client, email, password, totp_code=None):
    payload = {"email": email, "password": password}
    if totp_code:
        payload["totpCode"] = totp_code
    body = client.post("/auth/login", json=payload)
    raw = body
    if isinstance(body, dict) and isinstance(body.get("data"), dict):
        raw = body["data"]
    if not isinstance(raw, dict) or not raw.get("token") or not isinstance(raw.get("user"), dict):
        raise MalformedLoginResponse("Malformed login response")
    return {
        "user": map_backend_user_to_admin(raw["user"]),
        "token": raw["token"],
        "refresh_token": "",
    }


def login_error_code(exc):
    """401 响应体里的 error / code，如 TOTP_REQUIRED、TOTP_INVALID"""
    if not isinstance(exc, BackendHTTPError) or not isinstance(exc.payload, dict):
        return None
    return exc.payload.get("error") or exc.payload.get("code")


def logout(client):
    client.post("/auth/logout")


def refresh_token(client, token):
    return unwrap(client.post("/auth/refresh", json={"refreshToken": token}))


def verify_token(client):
    try:
        data = unwrap(client.get("/auth/verify"))
    except BackendError:
        return False
    return bool(isinstance(data, dict) and data.get("valid"))


def change_password(client, current_password, new_password):
    client.post("/auth/change-password", json={"currentPassword": current_password, "newPassword": new_password})


def forgot_password(client, email):
    client.post("/auth/forgot-password", json={"email": email})


def reset_password(client, token, new_password):
    client.post("/auth/reset-password", json={"token": token, "newPassword": new_password})
