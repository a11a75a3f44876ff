# -*- coding: utf-8 -*-
"""学生管理接口；DEBUG_STUDENT=1 时本模块日志提升到 DEBUG"""
import logging

from .client import BackendError, UnexpectedShape
from .shapes import first_success, parse_count, parse_list, parse_percent, to_number, unwrap

logger = logging.getLogger(__name__)

GROWTH_PATHS = ["/student-profile/growthstudent/last-month", "/student-profile/growth/last-month"]


def fetch_all_students(client):
    logger.debug("fetch_all_students -> /student-profile/all")
    data = client.get("/student-profile/all")
    students = parse_list(data, "students")
    logger.debug("fetch_all_students: %s 条", len(students))
    return students


def _is_entity(val):
    return isinstance(val, dict) and "studentId" in val


def fetch_student_by_id(client, student_id):
    """先请求 /student-profile/{id}，失败或结构不对时从全量列表里找"""
    try:
        data = client.get(f"/student-profile/{student_id}")
        if _is_entity(data):
            return data
        if isinstance(data, dict) and _is_entity(data.get("data")):
            return data["data"]
    except BackendError as e:
        logger.debug("fetch_student_by_id: 直接接口失败，走列表兜底 %s", e)
    try:
        all_students = fetch_all_students(client)
    except BackendError:
        logger.exception("fetch_student_by_id: 列表兜底失败 %s", student_id)
        return None
    return next((s for s in all_students if s.get("studentId") == student_id), None)


def ban_student(client, student_id):
    logger.debug("ban_student %s", student_id)
    client.post("/student-profile/ban", params={"studentId": student_id})


def unban_student(client, student_id):
    logger.debug("unban_student %s", student_id)
    client.post("/student-profile/unban", params={"studentId": student_id})


def fetch_student_total_spent(client, student_id):
    data = unwrap(client.get("/payments/totalspent", params={"studentId": student_id}))
    if isinstance(data, dict):
        return {
            "student_id": data.get("studentId") or student_id,
            "total_spent": to_number(data.get("totalSpent"), 0),
            "currency": data.get("currency") or "LKR",
        }
    n = to_number(data)
    if n is None:
        raise UnexpectedShape("Unexpected total spent response shape")
    return {"student_id": student_id, "total_spent": n, "currency": "LKR"}


def fetch_student_modules(client, student_id):
    data = client.get("/enrollment/studentmodule", params={"studentId": student_id})
    return parse_list(data, "student modules")


def fetch_student_count(client):
    data = client.get("/student-profile/count")
    n = parse_count(data, keys=("totalCount", "count", "total"))
    if n is None:
        raise UnexpectedShape("Unexpected student count response shape")
    return n


def fetch_student_growth_percent_last_month(client):
    return first_success(client, GROWTH_PATHS, parse_percent, "students growth")


def map_student_entity_to_ui(entity):
    user = entity.get("user") or {}
    created = entity.get("createdAt") or ""
    return {
        "id": entity.get("studentId"),
        "name": f"{entity.get('firstName') or ''} {entity.get('lastName') or ''}".strip(),
        "email": user.get("email") or "",
        "profile_picture": entity.get("imageUrl"),
        "modules_enrolled": [],
        "status": "banned" if entity.get("isActive") is False else "active",
        "enrolled_at": created.split("T")[0],
        "total_spent": 0,
        "phone": entity.get("phoneNumber"),
    }
