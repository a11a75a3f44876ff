# -*- coding: utf-8 -*-
"""公告接口；后端字段有时叫 isActive 有时叫 active，统一成 is_active"""
from .shapes import parse_list, unwrap

TITLE_MAX = 200
CONTENT_MAX = 5000


def normalize(item):
    if not isinstance(item, dict):
        return item
    active = item.get("isActive")
    if active is None:
        active = item.get("active")
    return {
        "id": item.get("id"),
        "title": item.get("title") or "",
        "content": item.get("content") or "",
        "author": item.get("author") or "",
        "created_at": item.get("createdAt"),
        "is_active": True if active is None else bool(active),
    }


def validate(title, content):
    """返回 {字段: 错误信息}，为空表示通过"""
    errors = {}
    title = title or ""
    content = content or ""
    if not title.strip():
        errors["title"] = "Title is required"
    elif len(title) > TITLE_MAX:
        errors["title"] = f"Title cannot exceed {TITLE_MAX} characters"
    if not content.strip():
        errors["content"] = "Content is required"
    elif len(content) > CONTENT_MAX:
        errors["content"] = f"Content cannot exceed {CONTENT_MAX} characters"
    return errors


def list_announcements(client, only_active=None):
    params = {"onlyActive": only_active} if isinstance(only_active, bool) else None
    return [normalize(a) for a in parse_list(client.get("/announcements", params=params), "announcements")]


def get_by_author(client):
    return [normalize(a) for a in parse_list(client.get("/announcements/authorannouncements"), "announcements")]


def get_by_id(client, announcement_id):
    return normalize(unwrap(client.get(f"/announcements/{announcement_id}")))


def create(client, title, content, is_active=True):
    body = client.post("/announcements", json={"title": title, "content": content, "isActive": is_active})
    return normalize(unwrap(body))


def update(client, announcement_id, title=None, content=None, is_active=None):
    payload = {k: v for k, v in (("title", title), ("content", content), ("isActive", is_active)) if v is not None}
    return normalize(unwrap(client.put(f"/announcements/{announcement_id}", json=payload)))


def remove(client, announcement_id):
    client.delete(f"/announcements/{announcement_id}")
