# -*- coding: utf-8 -*-
"""页面轮询与图表用的 JSON 接口：看板统计、学生/名师补全、数据分析、提现汇总"""
import logging

from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from apps.backend import analytics as analytics_api
from apps.backend import modules as modules_api
from apps.backend import payments as payments_api
from apps.backend import students as students_api
from apps.backend import tutors as tutors_api
from apps.backend.batching import gather
from apps.backend.client import BackendError, client_for, server_message
from apps.dashboard import enrichment

from .auth import admin_api_required, _result

logger = logging.getLogger(__name__)


def _backend_failed(e, default):
    return Response(_result(502, server_message(e, default)), status=status.HTTP_502_BAD_GATEWAY)


@api_view(["GET"])
@admin_api_required
def dashboard_stats(request):
    """首页卡片：每项独立，失败的项为 null 并列在 errors 里"""
    client = client_for(request)
    results = gather({
        "studentCount": lambda: students_api.fetch_student_count(client),
        "studentGrowthPercent": lambda: students_api.fetch_student_growth_percent_last_month(client),
        "tutorCount": lambda: tutors_api.fetch_tutor_total_count(client),
        "tutorGrowthPercent": lambda: tutors_api.fetch_tutor_growth_percent_last_month(client),
        "moduleCount": lambda: modules_api.fetch_module_count(client),
        "moduleGrowthPercent": lambda: modules_api.fetch_module_growth_percent_last_month(client),
        "totalRevenue": lambda: payments_api.get_total_revenue(client),
        "pendingPayments": lambda: payments_api.get_total_pending(client),
    })
    data = {name: value for name, (value, _) in results.items()}
    data["errors"] = sorted(name for name, (_, err) in results.items() if err is not None)
    return Response(_result(data=data))


@api_view(["GET"])
@admin_api_required
def students_enriched(request):
    client = client_for(request)
    try:
        entities = students_api.fetch_all_students(client)
    except BackendError as e:
        return _backend_failed(e, "Failed to load students")
    rows = enrichment.enrich_students(client, [students_api.map_student_entity_to_ui(x) for x in entities])
    return Response(_result(data=rows))


@api_view(["GET"])
@admin_api_required
def student_details(request, student_id):
    """单行补全：列表页对仍在 loading 的行逐个请求"""
    return Response(_result(data=enrichment.student_details(client_for(request), student_id)))


@api_view(["GET"])
@admin_api_required
def tutors_enriched(request):
    client = client_for(request)
    try:
        tutors = tutors_api.get_all_tutors(client, force=request.GET.get("refresh") == "1")
    except BackendError as e:
        return _backend_failed(e, "Failed to load tutors")
    return Response(_result(data=enrichment.enrich_tutors(client, tutors)))


@api_view(["GET"])
@admin_api_required
def tutor_detail(request, tutor_id):
    try:
        tutor = tutors_api.get_enriched_tutor(client_for(request), tutor_id)
    except tutors_api.TutorNotFound:
        return Response(_result(404, "Tutor not found"), status=status.HTTP_404_NOT_FOUND)
    except BackendError as e:
        return _backend_failed(e, "Failed to load tutor")
    return Response(_result(data=tutor))


@api_view(["GET"])
@admin_api_required
def analytics_overview(request):
    try:
        data = analytics_api.get_admin_analytics_overview(client_for(request))
    except BackendError as e:
        logger.warning("数据看板接口失败: %s", e)
        return _backend_failed(e, "Failed to load analytics")
    return Response(_result(data=data))


@api_view(["GET"])
@admin_api_required
def payments_summary(request):
    client = client_for(request)
    try:
        results = gather(
            {
                "totalPendingAmount": lambda: payments_api.get_total_pending(client),
                "totalApprovedAmount": lambda: payments_api.get_total_approved(client),
                "pendingRequests": lambda: payments_api.get_pending_count(client),
            },
            raise_errors=True,
        )
    except BackendError as e:
        return _backend_failed(e, "Failed to load payment summary")
    return Response(_result(data={name: value for name, (value, _) in results.items()}))
