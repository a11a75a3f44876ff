# -*- coding: utf-8 -*-
from django.urls import path
from . import views

urlpatterns = [
    path("dashboard/stats", views.dashboard_stats),
    path("students/enriched", views.students_enriched),
    path("students/<str:student_id>/details", views.student_details),
    path("tutors/enriched", views.tutors_enriched),
    path("tutors/<str:tutor_id>", views.tutor_detail),
    path("analytics/overview", views.analytics_overview),
    path("payments/summary", views.payments_summary),
]
