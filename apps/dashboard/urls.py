from django.urls import path
from . import views

app_name = "dashboard"

urlpatterns = [
    path("", views.home, name="home"),
    path("reports/<str:report_id>/review", views.report_review, name="report_review"),
    path("reports/<str:report_id>/resolve", views.report_resolve, name="report_resolve"),
    path("students", views.students_list, name="students"),
    path("students/export", views.students_export, name="students_export"),
    path("students/<str:student_id>", views.student_detail, name="student_detail"),
    path("students/<str:student_id>/ban", views.student_ban, name="student_ban"),
    path("students/<str:student_id>/unban", views.student_unban, name="student_unban"),
    path("tutors", views.tutors_list, name="tutors"),
    path("tutors/<str:tutor_id>", views.tutor_detail, name="tutor_detail"),
    path("tutors/<str:tutor_id>/approve", views.tutor_approve, name="tutor_approve"),
    path("tutors/<str:tutor_id>/ban", views.tutor_ban, name="tutor_ban"),
    path("payments", views.payments, name="payments"),
    path("payments/<str:withdrawal_id>/status", views.withdrawal_status, name="withdrawal_status"),
    path("manage", views.manage, name="manage"),
    path("admin", views.admin_panel, name="admin_panel"),
    path("admin/create", views.admin_create, name="admin_create"),
    path("admin/announcements", views.announcements, name="announcements"),
    path("admin/announcements/<str:announcement_id>", views.announcement_edit, name="announcement_edit"),
    path("admin/announcements/<str:announcement_id>/delete", views.announcement_delete, name="announcement_delete"),
    path("settings", views.settings_page, name="settings"),
    path("settings/profile", views.settings_profile, name="settings_profile"),
    path("settings/password", views.settings_password, name="settings_password"),
    path("settings/2fa", views.settings_twofa, name="settings_twofa"),
    path("settings/notifications", views.settings_notifications, name="settings_notifications"),
]
