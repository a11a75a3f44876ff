# -*- coding: utf-8 -*-
"""
名师（tutor）管理接口。
后端没有按 id 查询的接口，详情从全量列表里取；全量列表放 Django cache，同进程并发加载用锁去重。
"""
import logging
import threading

from django.conf import settings
from django.core.cache import cache

from .client import BackendError, UnexpectedShape
from .shapes import first_success, parse_count, parse_list, parse_percent, to_number, unwrap

logger = logging.getLogger(__name__)

TUTORS_CACHE_KEY = "backend:tutors:all"
GROWTH_PATHS = ["/tutor-profile/growthtutor/last-month", "/tutor-profile/growth/last-month"]
STATUS_LABELS = {"PENDING": "Pending", "APPROVED": "Approved", "BANNED": "Banned"}
STATUS_COLORS = {
    "PENDING": "bg-yellow-100 text-yellow-800",
    "APPROVED": "bg-green-100 text-green-800",
    "BANNED": "bg-red-100 text-red-800",
}

_load_lock = threading.Lock()


class TutorNotFound(BackendError):
    pass


def get_all_tutors(client, force=False):
    if not force:
        cached = cache.get(TUTORS_CACHE_KEY)
        if cached is not None:
            return cached
    with _load_lock:
        if not force:
            # 等锁期间可能已被其它请求加载
            cached = cache.get(TUTORS_CACHE_KEY)
            if cached is not None:
                return cached
        tutors = parse_list(client.get("/tutor-profile/all"), "tutors")
        cache.set(TUTORS_CACHE_KEY, tutors, timeout=settings.TUTORS_CACHE_TTL)
        return tutors


def invalidate_tutors_cache():
    cache.delete(TUTORS_CACHE_KEY)


def get_modules_by_tutor(client, tutor_id):
    if not tutor_id:
        raise ValueError("tutorId is required")
    data = client.get("/modules/getmodtutor", params={"tutorId": tutor_id})
    return parse_list(data, "tutor modules")


def _count(data, what):
    n = to_number(unwrap(data))
    if n is None:
        n = parse_count(data, keys=("count", "totalCount"))
    if n is None:
        raise UnexpectedShape(f"Unexpected {what} response shape")
    return n


def get_enrollment_count(client, module_id):
    return _count(client.get("/enrollment/count", params={"moduleId": module_id}), "enrollment count")


def get_payment_count(client, module_id):
    if not module_id:
        raise ValueError("moduleId is required")
    return _count(client.get("/payments/count", params={"moduleId": module_id}), "payment count")


def ban_tutor(client, tutor_id):
    client.post("/tutor-profile/ban", json={"tutorId": tutor_id})


def approve_tutor(client, tutor_id):
    client.post("/tutor-profile/approve", json={"tutorId": tutor_id})


def get_tutor_count(client):
    data = unwrap(client.get("/tutor-profile/count"))
    if not isinstance(data, dict):
        raise UnexpectedShape("Unexpected tutor count response shape")
    return {k: to_number(data.get(k), 0) for k in ("total", "banned", "pending", "approved")}


def fetch_tutor_total_count(client):
    return get_tutor_count(client)["total"]


def fetch_tutor_growth_percent_last_month(client):
    return first_success(client, GROWTH_PATHS, parse_percent, "tutors growth")


def get_tutor_by_id(client, tutor_id):
    if not tutor_id:
        raise ValueError("tutorId is required")
    match = next((t for t in get_all_tutors(client) if t.get("tutorId") == tutor_id), None)
    if match is None:
        raise TutorNotFound("Tutor not found")
    return match


def sum_module_counts(client, modules, tutor_id=None):
    """汇总各课程的报名数与付款数；单个课程失败记日志后跳过"""
    students_count = 0
    total_earnings = 0
    failed = False
    for m in modules:
        module_id = m.get("moduleId")
        try:
            students_count += get_enrollment_count(client, module_id)
        except BackendError as e:
            failed = True
            logger.warning("enrollment count 失败 tutor=%s module=%s: %s", tutor_id, module_id, e)
        try:
            total_earnings += get_payment_count(client, module_id)
        except (BackendError, ValueError) as e:
            failed = True
            logger.warning("payment count 失败 tutor=%s module=%s: %s", tutor_id, module_id, e)
    return students_count, total_earnings, failed


def get_enriched_tutor(client, tutor_id):
    base = get_tutor_by_id(client, tutor_id)
    modules = []
    modules_error = None
    try:
        modules = get_modules_by_tutor(client, tutor_id)
    except BackendError as e:
        modules_error = str(e)
        logger.warning("获取 tutor 课程失败 %s: %s", tutor_id, e)
    students_count, total_earnings, counts_error = sum_module_counts(client, modules, tutor_id)
    return {
        **base,
        "modules": modules,
        "students_count": students_count,
        "total_earnings": total_earnings,
        "modules_error": modules_error,
        "counts_error": counts_error,
    }


def tutor_full_name(tutor):
    return f"{tutor.get('firstName') or ''} {tutor.get('lastName') or ''}".strip()


def format_tutor_status(status):
    return STATUS_LABELS.get(status, status)


def tutor_status_color(status):
    return STATUS_COLORS.get(status, "bg-gray-100 text-gray-800")
