# -*- coding: utf-8 -*-
"""管理员账号与个人资料接口"""
from .client import BackendHTTPError
from .shapes import unwrap


def create(client, name, email, password, role, profile_picture=None):
    payload = {"name": name, "email": email, "password": password, "role": role}
    if profile_picture:
        payload["profilePicture"] = profile_picture
    return unwrap(client.post("/admins", json=payload))


def check_profile_exists(client):
    data = unwrap(client.get("/admin-profile/exists"))
    if isinstance(data, dict):
        data = data.get("exists")
    if isinstance(data, str):
        return data.strip().lower() == "true"
    return bool(data)


def get_profile(client):
    """资料未创建时后端返回 404，此处返回 None"""
    try:
        data = unwrap(client.get("/admin-profile/me"))
    except BackendHTTPError as e:
        if e.status == 404:
            return None
        raise
    return data if isinstance(data, dict) else None


def save_profile(client, full_name, email, contact_number=None, bio=None, image_url=None):
    payload = {
        "fullName": full_name,
        "email": email,
        "contactNumber": contact_number,
        "bio": bio,
        "imageUrl": image_url,
    }
    return unwrap(client.post("/admin-profile", json=payload))


def change_password(client, new_password):
    client.post("/admin-profile/change-password", json={"newPassword": new_password})


def get_admin_image_url(client):
    data = unwrap(client.get("/admin-profile/image"))
    if isinstance(data, dict):
        data = data.get("imageUrl")
    if isinstance(data, str) and data.strip():
        return data.strip()
    return None
