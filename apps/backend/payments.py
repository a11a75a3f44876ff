# -*- coding: utf-8 -*-
"""提现 / 付款接口"""
from .client import UnexpectedShape
from .shapes import parse_list, to_number, unwrap

WITHDRAWAL_STATUSES = ("PENDING", "APPROVED", "REJECTED", "PAID")


def get_all_withdrawals(client):
    return parse_list(client.get("/admin/withdrawals/get-all-withdrawals"), "withdrawals")


def _amount(body, key):
    data = unwrap(body)
    if isinstance(data, dict):
        n = to_number(data.get(key))
    else:
        n = to_number(data)
    if n is None:
        raise UnexpectedShape(f"Unexpected {key} response shape")
    return n


def get_total_pending(client):
    return _amount(client.get("/admin/withdrawals/total-pending"), "totalPendingAmount")


def get_total_approved(client):
    return _amount(client.get("/admin/withdrawals/total-approved"), "totalApprovedAmount")


def get_pending_count(client):
    return _amount(client.get("/admin/withdrawals/pending-count"), "pendingRequests")


def get_total_revenue(client):
    return _amount(client.get("/admin/withdrawals/revenue"), "totalRevenue")


def get_payment_summary(client):
    data = unwrap(client.get("/admin/withdrawals/summary")) or {}
    return {k: to_number(data.get(k), 0) for k in ("totalPaid", "totalPending", "totalRejected", "thisMonthPaid")}


def update_withdrawal_status(client, withdrawal_id, status):
    status = (status or "").upper()
    if status not in WITHDRAWAL_STATUSES:
        raise ValueError(f"invalid withdrawal status: {status}")
    return client.put(f"/admin/withdrawals/{withdrawal_id}/status", params={"status": status})


# ---------- 旧版付款接口 ----------
def get_payment_requests(client, search=None, status=None):
    return unwrap(client.get("/payments/requests", params={"search": search, "status": status}))


def get_payment_request(client, payment_id):
    return unwrap(client.get(f"/payments/requests/{payment_id}"))


def approve_payment(client, payment_id, notes=None):
    client.post(f"/payments/requests/{payment_id}/approve", json={"notes": notes})


def reject_payment(client, payment_id, reason):
    client.post(f"/payments/requests/{payment_id}/reject", json={"reason": reason})


def get_payment_history(client, search=None, status=None):
    return unwrap(client.get("/payments/history", params={"search": search, "status": status}))


def get_tutor_payments(client, tutor_id):
    return unwrap(client.get(f"/payments/tutor/{tutor_id}"))


def process_bulk_payments(client, payment_ids):
    client.post("/payments/bulk-approve", json={"paymentIds": list(payment_ids)})
