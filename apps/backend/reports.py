# -*- coding: utf-8 -*-
"""课程举报：Pending -> Reviewed -> Resolved"""
from .shapes import parse_list

STATUSES = ("Pending", "Reviewed", "Resolved")


def list_reports(client):
    return parse_list(client.get("/reports"), "reports")


def review_report(client, report_id):
    client.put("/reports/review", params={"reportId": report_id})


def resolve_report(client, report_id):
    client.put("/reports/resolve", params={"reportId": report_id})


def can_review(report):
    return report.get("status") not in ("Reviewed", "Resolved")


def can_resolve(report):
    return report.get("status") != "Resolved"
