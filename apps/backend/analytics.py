# -*- coding: utf-8 -*-
"""
数据看板接口。/admin/analytics/* 九个汇总接口并发请求后拼成页面使用的 overview 结构；
任一失败则整体失败。
"""
from .batching import gather
from .shapes import to_number, unwrap


def _summary(client, name, params=None):
    data = unwrap(client.get(f"/admin/analytics/{name}", params=params))
    return data if data is not None else {}


def get_users_summary(client):
    return _summary(client, "users")


def get_students_summary(client):
    return _summary(client, "students")


def get_tutors_summary(client):
    return _summary(client, "tutors")


def get_modules_summary(client):
    return _summary(client, "modules")


def get_enrollments_count(client):
    return to_number(_summary(client, "enrollments"), 0)


def get_revenue_summary(client):
    return _summary(client, "revenue")


def get_ratings_summary(client):
    return _summary(client, "ratings")


def get_schedules_summary(client):
    return _summary(client, "schedules")


def get_top_modules_by_revenue(client, limit=5):
    return _summary(client, "top-modules", params={"limit": limit})


def _n(d, key):
    return to_number(d.get(key), 0) if isinstance(d, dict) else 0


def _top_module(item):
    ident = item.get("id")
    if ident is None:
        ident = item.get("moduleId")
    if ident is None:
        ident = item.get("name")
    value = item.get("value")
    if value is None:
        value = item.get("revenue")
    return {
        "id": str(ident if ident is not None else "unknown"),
        "name": str(item.get("name") or item.get("title") or "Unknown"),
        "value": to_number(value, 0),
    }


def get_admin_analytics_overview(client):
    results = gather(
        {
            "users": lambda: get_users_summary(client),
            "students": lambda: get_students_summary(client),
            "tutors": lambda: get_tutors_summary(client),
            "modules": lambda: get_modules_summary(client),
            "enrollments": lambda: get_enrollments_count(client),
            "revenue": lambda: get_revenue_summary(client),
            "ratings": lambda: get_ratings_summary(client),
            "schedules": lambda: get_schedules_summary(client),
            "top_modules": lambda: get_top_modules_by_revenue(client, 5),
        },
        raise_errors=True,
    )
    users, students, tutors, modules, enrollments, revenue, ratings, schedules, top = (
        results[k][0]
        for k in ("users", "students", "tutors", "modules", "enrollments", "revenue", "ratings", "schedules", "top_modules")
    )
    items = top.get("items") if isinstance(top, dict) else top
    last_6 = revenue.get("last6Months") if isinstance(revenue, dict) else None
    return {
        # 后端暂未提供近 7/30 天新增用户，置 0
        "users": {"total": _n(users, "totalUsers"), "last_30_days": 0, "last_7_days": 0},
        "admins": _n(users, "admins"),
        "tutors": _n(users, "tutors"),
        "students": _n(users, "students"),
        "users_with_2fa": _n(users, "usersWith2FA"),
        "active_students": _n(students, "activeStudents"),
        "inactive_students": _n(students, "inactiveStudents"),
        "tutor_statuses": {
            "approved": _n(tutors, "approved"),
            "pending": _n(tutors, "pending"),
            "banned": _n(tutors, "banned"),
        },
        "modules": {
            "total": _n(modules, "total"),
            "last_30_days": _n(modules, "last30Days"),
            "last_7_days": _n(modules, "last7Days"),
        },
        "active_modules": _n(modules, "active"),
        "enrollments": enrollments,
        "total_revenue": _n(revenue, "totalRevenue"),
        "revenue_last_30_days": _n(revenue, "revenueLast30Days"),
        "revenue_last_6_months": [
            {"month": p.get("month"), "amount": to_number(p.get("amount"), 0)}
            for p in (last_6 or [])
            if isinstance(p, dict)
        ],
        "average_rating": _n(ratings, "averageRating"),
        "upcoming_schedules": _n(schedules, "upcomingSchedules"),
        "top_modules_by_revenue": [_top_module(i) for i in (items or []) if isinstance(i, dict)],
    }


# ---------- 旧版统计接口 ----------
def get_dashboard_stats(client):
    return unwrap(client.get("/analytics/dashboard"))


def get_recent_activities(client, limit=10):
    return unwrap(client.get("/analytics/activities", params={"limit": limit}))


def get_analytics_data(client, date_from=None, date_to=None):
    return unwrap(client.get("/analytics/data", params={"from": date_from, "to": date_to}))


def get_enrollment_growth(client, months=6):
    return unwrap(client.get("/analytics/enrollment-growth", params={"months": months}))


def get_revenue_over_time(client, months=6):
    return unwrap(client.get("/analytics/revenue", params={"months": months}))


def get_top_modules(client, limit=5):
    return unwrap(client.get("/analytics/top-modules", params={"limit": limit}))
