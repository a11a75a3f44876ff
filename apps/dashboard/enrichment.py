# -*- coding: utf-8 -*-
"""
列表页补全：学生的累计消费与已报课程、名师的课程与报名/付款汇总。
按 settings.ENRICH_* 分批并发；超过时间预算的批次不再启动，对应行保持 loading，由页面轮询 JSON 接口补齐。
"""
import logging

from django.conf import settings
from django.core.cache import cache

from apps.backend import students as students_api
from apps.backend import tutors as tutors_api
from apps.backend.batching import deadline, run_batched, with_retry
from apps.backend.client import BackendError

logger = logging.getLogger(__name__)

TUTOR_MODULES_KEY = "dashboard:tutor-modules:{}"


def _batch_options(prefix):
    return {
        "batch_size": getattr(settings, f"ENRICH_{prefix}_BATCH"),
        "delay": getattr(settings, f"ENRICH_{prefix}_DELAY"),
        "retries": settings.ENRICH_RETRIES,
        "backoff": settings.ENRICH_BACKOFF,
    }


def _group_by_id(rows, key="id"):
    """同一 id 可能出现多行（后端返回重复数据），结果写回每一行"""
    groups = {}
    for r in rows:
        groups.setdefault(r[key], []).append(r)
    return groups


def _update_all(groups, ident, **fields):
    for r in groups[ident]:
        r.update(**fields)


def enrich_students(client, students, should_stop=None):
    """原地补全学生行；返回同一列表"""
    if should_stop is None:
        should_stop = deadline(settings.ENRICH_TIME_BUDGET)
    by_id = _group_by_id(students)
    for s in students:
        s.update(total_spent_loading=True, total_spent_error=False)
    pending_modules = _group_by_id(s for s in students if not s["modules_enrolled"])
    for rows in pending_modules.values():
        for s in rows:
            s.update(modules_loading=True, modules_error=False)

    def spent_ok(student_id, res):
        _update_all(by_id, student_id, total_spent=res["total_spent"], total_spent_loading=False)

    def spent_failed(student_id, err):
        logger.debug("total spent 失败 %s: %s", student_id, err)
        _update_all(by_id, student_id, total_spent_loading=False, total_spent_error=True)

    run_batched(
        list(by_id),
        lambda sid: students_api.fetch_student_total_spent(client, sid),
        spent_ok,
        spent_failed,
        should_stop=should_stop,
        **_batch_options("SPENT"),
    )

    def modules_ok(student_id, modules):
        _update_all(
            pending_modules,
            student_id,
            modules_enrolled=[m.get("name") for m in modules if isinstance(m, dict) and m.get("name")],
            modules_loaded=True,
            modules_loading=False,
        )

    def modules_failed(student_id, err):
        logger.debug("student modules 失败 %s: %s", student_id, err)
        _update_all(pending_modules, student_id, modules_loading=False, modules_error=True)

    run_batched(
        list(pending_modules),
        lambda sid: students_api.fetch_student_modules(client, sid),
        modules_ok,
        modules_failed,
        should_stop=should_stop,
        **_batch_options("STUDENT_MODULES"),
    )
    return students


def student_details(client, student_id):
    """单个学生的消费与课程，两项互不影响；各自按 ENRICH_RETRIES 重试"""
    retries, backoff = settings.ENRICH_RETRIES, settings.ENRICH_BACKOFF
    try:
        spent = with_retry(
            lambda sid: students_api.fetch_student_total_spent(client, sid), student_id, retries, backoff
        )["total_spent"]
    except BackendError as e:
        logger.info("student details total spent 失败 %s: %s", student_id, e)
        spent = None
    try:
        modules = with_retry(lambda sid: students_api.fetch_student_modules(client, sid), student_id, retries, backoff)
    except BackendError as e:
        logger.info("student details modules 失败 %s: %s", student_id, e)
        modules = []
    return {
        "id": student_id,
        "total_spent": spent,
        "modules_enrolled": [m.get("name") for m in modules if isinstance(m, dict) and m.get("name")],
        "modules_loaded": True,
    }


def _merge_modules(tutor_id, modules):
    """新结果为空时沿用上一次的非空课程列表"""
    key = TUTOR_MODULES_KEY.format(tutor_id)
    if modules:
        cache.set(key, modules, timeout=settings.TUTORS_CACHE_TTL)
        return modules
    previous = cache.get(key)
    if previous:
        logger.info("tutor %s 本次课程为空，沿用上次结果 %s 条", tutor_id, len(previous))
        return previous
    return modules


def enrich_tutors(client, tutors, should_stop=None):
    """返回补全后的名师列表（新字典，不改动缓存里的原始数据）"""
    if should_stop is None:
        should_stop = deadline(settings.ENRICH_TIME_BUDGET)
    rows = [
        {
            **t,
            "full_name": tutors_api.tutor_full_name(t),
            "modules": [],
            "students_count": 0,
            "total_earnings": 0,
            "modules_error": None,
            "counts_error": False,
            "loading": True,
        }
        for t in tutors
    ]
    for r in rows:
        if not r.get("tutorId"):
            r["loading"] = False
    by_id = _group_by_id((r for r in rows if r.get("tutorId")), key="tutorId")

    def fetch(tutor_id):
        modules = tutors_api.get_modules_by_tutor(client, tutor_id)
        counts = tutors_api.sum_module_counts(client, modules, tutor_id)
        return modules, counts

    def ok(tutor_id, value):
        modules, (students_count, total_earnings, counts_error) = value
        _update_all(
            by_id,
            tutor_id,
            modules=_merge_modules(tutor_id, modules),
            students_count=students_count,
            total_earnings=total_earnings,
            counts_error=counts_error,
            loading=False,
        )

    def failed(tutor_id, err):
        _update_all(
            by_id,
            tutor_id,
            modules=_merge_modules(tutor_id, []),
            modules_error=str(err) or "Unknown modules fetch error",
            loading=False,
        )

    run_batched(
        list(by_id),
        fetch,
        ok,
        failed,
        should_stop=should_stop,
        **_batch_options("TUTOR_MODULES"),
    )
    return rows
