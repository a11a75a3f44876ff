# -*- coding: utf-8 -*-
"""管理后台页面：首页看板、学生、名师、提现、数据分析、管理员与公告、个人设置"""
import csv
import logging
import re

from django.conf import settings
from django.contrib import messages
from django.http import Http404, HttpResponse
from django.shortcuts import redirect, render
from django.urls import reverse
from django.utils import timezone
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from apps.account import session_store
from apps.account.auth import protected, role_required
from apps.backend import admin as admin_api
from apps.backend import analytics as analytics_api
from apps.backend import announcements as announcements_api
from apps.backend import modules as modules_api
from apps.backend import payments as payments_api
from apps.backend import reports as reports_api
from apps.backend import students as students_api
from apps.backend import tutors as tutors_api
from apps.backend import twofa as twofa_api
from apps.backend.batching import gather
from apps.backend.client import BackendError, BackendHTTPError, client_for, server_message
from apps.system.oss_upload import ImageUploadError, upload_image

from . import enrichment

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
TOTP_PATTERN = re.compile(r"^\d{6}$")
NOTIFICATIONS_KEY = "notification_settings"
DEFAULT_NOTIFICATIONS = {
    "email_alerts": True,
    "payment_notifications": True,
    "tutor_approvals": True,
    "student_activity": False,
}


def _back(request, default):
    """操作完成后回到来源页（仅站内）"""
    nxt = request.POST.get("next") or ""
    if nxt.startswith("/") and not nxt.startswith("//"):
        return redirect(nxt)
    return redirect(default)


# ---------- 首页看板 ----------
@protected
@require_GET
def home(request):
    """各卡片独立加载，某项失败只显示 “—”"""
    client = client_for(request)
    results = gather({
        "student_count": lambda: students_api.fetch_student_count(client),
        "student_growth": lambda: students_api.fetch_student_growth_percent_last_month(client),
        "tutor_count": lambda: tutors_api.fetch_tutor_total_count(client),
        "tutor_growth": lambda: tutors_api.fetch_tutor_growth_percent_last_month(client),
        "module_count": lambda: modules_api.fetch_module_count(client),
        "module_growth": lambda: modules_api.fetch_module_growth_percent_last_month(client),
        "total_revenue": lambda: payments_api.get_total_revenue(client),
        "pending_payments": lambda: payments_api.get_total_pending(client),
        "reports": lambda: reports_api.list_reports(client),
        "announcements": lambda: announcements_api.list_announcements(client, only_active=True),
        "admin_image": lambda: admin_api.get_admin_image_url(client),
    })
    value = {name: res[0] for name, res in results.items()}
    failed = {name for name, res in results.items() if res[1] is not None}
    stats = [
        {"title": "Total Students", "value": value["student_count"], "change": value["student_growth"],
         "error": "student_count" in failed, "change_error": "student_growth" in failed, "icon": "users"},
        {"title": "Total Tutors", "value": value["tutor_count"], "change": value["tutor_growth"],
         "error": "tutor_count" in failed, "change_error": "tutor_growth" in failed, "icon": "graduation-cap"},
        {"title": "Total Modules", "value": value["module_count"], "change": value["module_growth"],
         "error": "module_count" in failed, "change_error": "module_growth" in failed, "icon": "book-open"},
    ]
    reports = value["reports"] or []
    for r in reports:
        r["can_review"] = reports_api.can_review(r)
        r["can_resolve"] = reports_api.can_resolve(r)
    return render(request, "dashboard/home.html", {
        "stats": stats,
        "total_revenue": value["total_revenue"],
        "revenue_error": "total_revenue" in failed,
        "pending_payments": value["pending_payments"],
        "pending_error": "pending_payments" in failed,
        "reports": reports,
        "reports_error": "reports" in failed,
        "announcements": value["announcements"] or [],
        "announcements_error": "announcements" in failed,
        "admin_image_url": value["admin_image"],
    })


@protected
@require_POST
def report_review(request, report_id):
    try:
        reports_api.review_report(client_for(request), report_id)
        messages.success(request, "Report marked as reviewed")
    except BackendError as e:
        messages.error(request, server_message(e, "Failed to update report"))
    return _back(request, "dashboard:home")


@protected
@require_POST
def report_resolve(request, report_id):
    try:
        reports_api.resolve_report(client_for(request), report_id)
        messages.success(request, "Report resolved")
    except BackendError as e:
        messages.error(request, server_message(e, "Failed to update report"))
    return _back(request, "dashboard:home")


# ---------- 学生 ----------
def _load_students(request):
    """返回 (rows, error)；rows 已补全消费与课程"""
    client = client_for(request)
    try:
        entities = students_api.fetch_all_students(client)
    except BackendError as e:
        logger.warning("加载学生列表失败: %s", e)
        return [], str(e) or "Failed to load students"
    rows = [students_api.map_student_entity_to_ui(e) for e in entities]
    logger.debug("students mapped: %s", len(rows))
    return enrichment.enrich_students(client, rows), None


def _filter_students(rows, search, status):
    search = search.lower()
    return [
        s for s in rows
        if (search in s["name"].lower() or search in s["email"].lower())
        and (status == "all" or s["status"] == status)
    ]


@protected
@require_GET
def students_list(request):
    search = (request.GET.get("search") or "").strip()
    status = (request.GET.get("status") or "all").strip().lower()
    rows, error = _load_students(request)
    if error:
        messages.error(request, error)
    stats = {
        "total": len(rows),
        "active": sum(1 for s in rows if s["status"] == "active"),
        "banned": sum(1 for s in rows if s["status"] == "banned"),
        "total_revenue": sum(s.get("total_spent") or 0 for s in rows),
    }
    return render(request, "dashboard/students.html", {
        "students": _filter_students(rows, search, status),
        "stats": stats,
        "search": search,
        "status": status,
        "error": error,
    })


@protected
@require_GET
def students_export(request):
    """导出当前筛选结果为 CSV"""
    search = (request.GET.get("search") or "").strip()
    status = (request.GET.get("status") or "all").strip().lower()
    rows, error = _load_students(request)
    if error:
        messages.error(request, error)
        return redirect("dashboard:students")
    response = HttpResponse(content_type="text/csv; charset=utf-8")
    filename = f"students_export_{timezone.localdate().isoformat()}.csv"
    response["Content-Disposition"] = f'attachment; filename="{filename}"'
    writer = csv.writer(response)
    writer.writerow(["Name", "Email", "Modules", "Status", "Total Spent", "Enrolled Date"])
    for s in _filter_students(rows, search, status):
        writer.writerow([
            s["name"],
            s["email"],
            "; ".join(s["modules_enrolled"]),
            s["status"],
            f"LKR {s.get('total_spent') or 0}",
            s["enrolled_at"],
        ])
    return response


@protected
@require_GET
def student_detail(request, student_id):
    client = client_for(request)
    entity = students_api.fetch_student_by_id(client, student_id)
    if entity is None:
        raise Http404("Student not found")
    student = students_api.map_student_entity_to_ui(entity)
    student.update(enrichment.student_details(client, student_id))
    return render(request, "dashboard/student_detail.html", {"student": student, "entity": entity})


@protected
@require_POST
def student_ban(request, student_id):
    try:
        students_api.ban_student(client_for(request), student_id)
        messages.error(request, "Student has been banned.")
    except BackendError as e:
        messages.error(request, server_message(e, "Failed to ban student"))
    return _back(request, "dashboard:students")


@protected
@require_POST
def student_unban(request, student_id):
    try:
        students_api.unban_student(client_for(request), student_id)
        messages.success(request, "Student has been unbanned.")
    except BackendError as e:
        messages.error(request, server_message(e, "Failed to unban student"))
    return _back(request, "dashboard:students")


# ---------- 名师 ----------
@protected
@require_GET
def tutors_list(request):
    """?refresh=1 强制重新拉取全量列表"""
    search = (request.GET.get("search") or "").strip()
    status = (request.GET.get("status") or "ALL").strip().upper()
    client = client_for(request)
    rows = []
    try:
        tutors = tutors_api.get_all_tutors(client, force=request.GET.get("refresh") == "1")
        rows = enrichment.enrich_tutors(client, tutors)
    except BackendError as e:
        logger.warning("加载名师列表失败: %s", e)
        messages.error(request, "Failed to load tutors")
    for t in rows:
        t["status_label"] = tutors_api.format_tutor_status(t.get("status"))
        t["status_color"] = tutors_api.tutor_status_color(t.get("status"))
    stats = {
        "total": len(rows),
        "approved": sum(1 for t in rows if t.get("status") == "APPROVED"),
        "pending": sum(1 for t in rows if t.get("status") == "PENDING"),
        "banned": sum(1 for t in rows if t.get("status") == "BANNED"),
    }
    q = search.lower()
    filtered = [
        t for t in rows
        if (q in t["full_name"].lower() or q in ((t.get("user") or {}).get("email") or "").lower())
        and (status == "ALL" or t.get("status") == status)
    ]
    return render(request, "dashboard/tutors.html", {
        "tutors": filtered,
        "stats": stats,
        "search": search,
        "status": status,
    })


@protected
@require_GET
def tutor_detail(request, tutor_id):
    try:
        tutor = tutors_api.get_enriched_tutor(client_for(request), tutor_id)
    except tutors_api.TutorNotFound:
        raise Http404("Tutor not found")
    except BackendError as e:
        messages.error(request, server_message(e, "Failed to load tutor"))
        return redirect("dashboard:tutors")
    tutor["full_name"] = tutors_api.tutor_full_name(tutor)
    tutor["status_label"] = tutors_api.format_tutor_status(tutor.get("status"))
    tutor["status_color"] = tutors_api.tutor_status_color(tutor.get("status"))
    return render(request, "dashboard/tutor_detail.html", {"tutor": tutor})


@protected
@require_POST
def tutor_approve(request, tutor_id):
    try:
        tutors_api.approve_tutor(client_for(request), tutor_id)
        tutors_api.invalidate_tutors_cache()
        messages.success(request, "Tutor approved successfully")
    except BackendError as e:
        logger.warning("审核名师失败 %s: %s", tutor_id, e)
        messages.error(request, "Failed to approve tutor")
    return _back(request, "dashboard:tutors")


@protected
@require_POST
def tutor_ban(request, tutor_id):
    try:
        tutors_api.ban_tutor(client_for(request), tutor_id)
        tutors_api.invalidate_tutors_cache()
        messages.success(request, "Tutor banned successfully")
    except BackendError as e:
        logger.warning("封禁名师失败 %s: %s", tutor_id, e)
        messages.error(request, "Failed to ban tutor")
    return _back(request, "dashboard:tutors")


# ---------- 提现 ----------
@protected
@require_GET
def payments(request):
    status = (request.GET.get("status") or "all").strip().lower()
    search = (request.GET.get("search") or "").strip()
    client = client_for(request)
    results = gather({
        "pending_amount": lambda: payments_api.get_total_pending(client),
        "approved_amount": lambda: payments_api.get_total_approved(client),
        "pending_count": lambda: payments_api.get_pending_count(client),
        "withdrawals": lambda: payments_api.get_all_withdrawals(client),
    })
    if any(err is not None for _, err in results.values()):
        messages.error(request, "Failed to load payment data")
    withdrawals = results["withdrawals"][0] or []
    q = search.lower()
    filtered = [
        w for w in withdrawals
        if (status == "all" or (w.get("status") or "").lower() == status)
        and (
            not q
            or q in (w.get("tutorName") or "").lower()
            or q in (w.get("accountName") or "").lower()
            or q in (w.get("method") or "").lower()
        )
    ]
    return render(request, "dashboard/payments.html", {
        "summary": {
            "pending_amount": results["pending_amount"][0],
            "approved_amount": results["approved_amount"][0],
            "pending_count": results["pending_count"][0],
        },
        "withdrawals": filtered,
        "status": status,
        "search": search,
        "statuses": payments_api.WITHDRAWAL_STATUSES,
    })


@protected
@require_POST
def withdrawal_status(request, withdrawal_id):
    """审核后回到列表页，汇总数据随页面重新加载"""
    new_status = (request.POST.get("status") or "").strip().upper()
    try:
        payments_api.update_withdrawal_status(client_for(request), withdrawal_id, new_status)
    except ValueError:
        messages.error(request, "Invalid withdrawal status")
    except BackendError as e:
        logger.warning("更新提现状态失败 %s -> %s: %s", withdrawal_id, new_status, e)
        messages.error(request, "Failed to approve payment" if new_status == "APPROVED" else "Failed to reject payment")
    else:
        if new_status == "APPROVED":
            messages.success(request, "Payment approved successfully!")
        elif new_status == "REJECTED":
            messages.error(request, "Payment rejected.")
        else:
            messages.success(request, f"Withdrawal marked as {new_status.lower()}")
    return _back(request, "dashboard:payments")


# ---------- 数据分析 ----------
@protected
@require_GET
def manage(request):
    overview = None
    try:
        overview = analytics_api.get_admin_analytics_overview(client_for(request))
    except BackendError as e:
        logger.warning("加载数据看板失败: %s", e)
        messages.error(request, server_message(e, "Failed to load analytics"))
    charts = None
    if overview:
        statuses = overview["tutor_statuses"]
        charts = {
            "revenue": {
                "labels": [p["month"] for p in overview["revenue_last_6_months"]],
                "values": [p["amount"] for p in overview["revenue_last_6_months"]],
            },
            "tutor_statuses": {
                "labels": ["Approved", "Pending", "Banned"],
                "values": [statuses["approved"], statuses["pending"], statuses["banned"]],
            },
            "top_modules": {
                "labels": [m["name"] for m in overview["top_modules_by_revenue"]],
                "values": [m["value"] for m in overview["top_modules_by_revenue"]],
            },
        }
    return render(request, "dashboard/manage.html", {"overview": overview, "charts": charts})


# ---------- 管理员与公告 ----------
@protected
@require_GET
def admin_panel(request):
    return render(request, "dashboard/admin/panel.html")


@role_required("SUPER_ADMIN", redirect="dashboard:admin_panel")
@require_http_methods(["GET", "POST"])
def admin_create(request):
    """超级管理员才能创建 SUPER_ADMIN；后端字段错误回填到表单"""
    can_assign_super = session_store.is_super_admin(request)
    roles = ["ADMIN", "SUPER_ADMIN"] if can_assign_super else ["ADMIN"]
    form = {"name": "", "email": "", "role": "ADMIN"}
    errors = {}
    if request.method == "POST":
        form = {
            "name": (request.POST.get("name") or "").strip(),
            "email": (request.POST.get("email") or "").strip(),
            "role": (request.POST.get("role") or "ADMIN").strip().upper(),
        }
        password = request.POST.get("password") or ""
        confirm = request.POST.get("confirm_password") or ""
        if len(form["name"]) < 2:
            errors["name"] = "Name too short"
        if not EMAIL_PATTERN.match(form["email"]):
            errors["email"] = "Invalid email"
        if len(password) < 8:
            errors["password"] = "Minimum 8 characters"
        if password != confirm:
            errors["confirm_password"] = "Passwords do not match"
        if form["role"] not in roles:
            errors["role"] = "You are not allowed to assign this role"
        if not errors:
            try:
                admin_api.create(client_for(request), form["name"], form["email"], password, form["role"])
            except BackendError as e:
                messages.error(request, server_message(e, "Failed to create admin"))
                payload = getattr(e, "payload", None)
                field_errors = payload.get("errors") if isinstance(payload, dict) else None
                if isinstance(field_errors, dict):
                    for field, msgs in field_errors.items():
                        if msgs:
                            key = "confirm_password" if field == "confirmPassword" else field
                            errors[key] = msgs[0] if isinstance(msgs, list) else str(msgs)
            else:
                messages.success(request, "Admin created successfully")
                return redirect("dashboard:admin_create")
    status = 400 if errors else 200
    return render(request, "dashboard/admin/create.html", {
        "form": form,
        "errors": errors,
        "roles": roles,
    }, status=status)


@protected
@require_http_methods(["GET", "POST"])
def announcements(request):
    """公告列表 + 新建"""
    client = client_for(request)
    form = {"title": "", "content": "", "is_active": True}
    errors = {}
    if request.method == "POST":
        form = {
            "title": (request.POST.get("title") or "").strip(),
            "content": (request.POST.get("content") or "").strip(),
            "is_active": request.POST.get("is_active") in ("on", "1", "true"),
        }
        errors = announcements_api.validate(form["title"], form["content"])
        if not errors:
            try:
                announcements_api.create(client, form["title"], form["content"], form["is_active"])
            except BackendError as e:
                messages.error(request, server_message(e, "Failed to create announcement"))
            else:
                messages.success(request, "Announcement created")
                return redirect("dashboard:announcements")
    items = []
    try:
        items = announcements_api.list_announcements(client)
    except BackendError as e:
        logger.warning("加载公告失败: %s", e)
        messages.error(request, "Failed to load announcements")
    return render(request, "dashboard/admin/announcements.html", {
        "announcements": items,
        "form": form,
        "errors": errors,
        "title_max": announcements_api.TITLE_MAX,
        "content_max": announcements_api.CONTENT_MAX,
    }, status=400 if errors else 200)


@protected
@require_http_methods(["GET", "POST"])
def announcement_edit(request, announcement_id):
    client = client_for(request)
    errors = {}
    if request.method == "POST":
        form = {
            "id": announcement_id,
            "title": (request.POST.get("title") or "").strip(),
            "content": (request.POST.get("content") or "").strip(),
            "is_active": request.POST.get("is_active") in ("on", "1", "true"),
        }
        errors = announcements_api.validate(form["title"], form["content"])
        if not errors:
            try:
                announcements_api.update(client, announcement_id, form["title"], form["content"], form["is_active"])
            except BackendError as e:
                messages.error(request, server_message(e, "Failed to update announcement"))
            else:
                messages.success(request, "Announcement updated")
                return redirect("dashboard:announcements")
    else:
        try:
            form = announcements_api.get_by_id(client, announcement_id)
        except BackendHTTPError as e:
            if e.status == 404:
                raise Http404("Announcement not found")
            messages.error(request, server_message(e, "Failed to load announcement"))
            return redirect("dashboard:announcements")
        except BackendError as e:
            messages.error(request, server_message(e, "Failed to load announcement"))
            return redirect("dashboard:announcements")
    return render(request, "dashboard/admin/announcement_edit.html", {
        "form": form,
        "errors": errors,
        "title_max": announcements_api.TITLE_MAX,
        "content_max": announcements_api.CONTENT_MAX,
    }, status=400 if errors else 200)


@protected
@require_POST
def announcement_delete(request, announcement_id):
    try:
        announcements_api.remove(client_for(request), announcement_id)
        messages.success(request, "Announcement deleted")
    except BackendError as e:
        messages.error(request, server_message(e, "Failed to delete announcement"))
    return redirect("dashboard:announcements")


# ---------- 个人设置 ----------
def _profile_context(request, client):
    user = session_store.get_user(request) or {}
    profile = {"full_name": user.get("name") or "", "email": user.get("email") or "",
               "contact_number": "", "bio": "", "image_url": None}
    exists = False
    try:
        exists = admin_api.check_profile_exists(client)
        data = admin_api.get_profile(client) if exists else None
    except BackendError as e:
        logger.warning("加载管理员资料失败: %s", e)
        messages.error(request, "Could not load profile")
        data = None
    if data:
        profile.update(
            full_name=data.get("fullName") or profile["full_name"],
            email=data.get("email") or profile["email"],
            contact_number=data.get("contactNumber") or "",
            bio=data.get("bio") or "",
            image_url=data.get("imageUrl"),
        )
        session_store.update_user(request, name=data.get("fullName"), email=data.get("email"),
                                  profile_picture=data.get("imageUrl"))
    else:
        exists = False
    return profile, exists


def _twofa_context(request, client):
    try:
        return twofa_api.status(client)
    except BackendError as e:
        logger.info("获取 2FA 状态失败: %s", e)
        return None


def _settings_page(request, client, tab="profile", status=200, **extra):
    profile, exists = _profile_context(request, client)
    ctx = {
        "tab": tab,
        "profile": profile,
        "profile_exists": exists,
        "twofa": _twofa_context(request, client),
        "notifications": request.session.get(NOTIFICATIONS_KEY) or DEFAULT_NOTIFICATIONS,
        "image_max_mb": settings.PROFILE_IMAGE_MAX_BYTES // (1024 * 1024),
    }
    ctx.update(extra)
    return render(request, "dashboard/settings.html", ctx, status=status)


@protected
@require_GET
def settings_page(request):
    tab = request.GET.get("tab") or "profile"
    return _settings_page(request, client_for(request), tab=tab)


@protected
@require_POST
def settings_profile(request):
    client = client_for(request)
    full_name = (request.POST.get("full_name") or "").strip()
    email = (request.POST.get("email") or "").strip()
    contact_number = (request.POST.get("contact_number") or "").strip() or None
    bio = (request.POST.get("bio") or "").strip() or None
    image_url = (request.POST.get("image_url") or "").strip() or None
    image = request.FILES.get("image")
    if image:
        try:
            image_url = upload_image(image, prefix="admin")
        except ImageUploadError as e:
            messages.error(request, str(e))
            return redirect("dashboard:settings")
    try:
        saved = admin_api.save_profile(client, full_name, email, contact_number, bio, image_url) or {}
    except BackendError as e:
        messages.error(request, server_message(e, "Failed to save profile"))
        return redirect("dashboard:settings")
    session_store.update_user(
        request,
        name=saved.get("fullName") or full_name,
        email=saved.get("email") or email,
        profile_picture=saved.get("imageUrl") or image_url,
    )
    messages.success(request, "Profile saved")
    return redirect("dashboard:settings")


@protected
@require_POST
def settings_password(request):
    new_password = request.POST.get("new_password") or ""
    confirm = request.POST.get("confirm_password") or ""
    if new_password != confirm:
        messages.error(request, "Passwords do not match!")
    elif len(new_password) < 6:
        messages.error(request, "Password must be at least 6 characters!")
    else:
        try:
            admin_api.change_password(client_for(request), new_password)
            messages.success(request, "Password changed successfully")
        except BackendError as e:
            messages.error(request, server_message(e, "Failed to change password"))
    return redirect(f"{reverse('dashboard:settings')}?tab=security")


@protected
@require_POST
def settings_twofa(request):
    """action=generate|verify|disable"""
    client = client_for(request)
    action = request.POST.get("action") or ""
    code = (request.POST.get("code") or "").strip()
    if action == "generate":
        try:
            setup = twofa_api.generate(client)
        except BackendError as e:
            messages.error(request, server_message(e, "Failed to generate 2FA secret"))
        else:
            return _settings_page(request, client, tab="security", twofa_setup=setup)
    elif action in ("verify", "disable"):
        if not TOTP_PATTERN.match(code):
            messages.error(request, "Please enter a valid 6-digit code")
        else:
            fn = twofa_api.verify if action == "verify" else twofa_api.disable
            try:
                messages.success(request, fn(client, code))
            except BackendError as e:
                messages.error(request, server_message(e, "Invalid two-factor code"))
    else:
        messages.error(request, "Unknown action")
    return redirect(f"{reverse('dashboard:settings')}?tab=security")


@protected
@require_POST
def settings_notifications(request):
    request.session[NOTIFICATIONS_KEY] = {
        key: request.POST.get(key) in ("on", "1", "true") for key in DEFAULT_NOTIFICATIONS
    }
    messages.success(request, "Notification settings updated!")
    return redirect(f"{reverse('dashboard:settings')}?tab=notifications")

