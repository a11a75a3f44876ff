# -*- coding: utf-8 -*-
"""两步验证（TOTP）接口"""
from .shapes import unwrap


def status(client):
    data = unwrap(client.get("/2fa/status")) or {}
    return {"enabled": bool(data.get("enabled")), "has_secret": bool(data.get("hasSecret"))}


def generate(client):
    """返回密钥与二维码（data:image/png;base64,...）"""
    data = unwrap(client.get("/2fa/generate")) or {}
    return {"secret_key": data.get("secretKey"), "qr_image": data.get("qrImage")}


def _message(body, default):
    data = unwrap(body)
    if isinstance(data, dict) and data.get("message"):
        return data["message"]
    if isinstance(data, str) and data.strip():
        return data.strip()
    return default


def verify(client, code):
    return _message(client.post("/2fa/verify", params={"code": code}), "Two-factor authentication enabled")


def disable(client, code):
    return _message(client.post("/2fa/disable", params={"code": code}), "Two-factor authentication disabled")
