# -*- coding: utf-8 -*-
"""模板过滤器：金额（LKR）、百分比、后端 ISO 时间"""
from datetime import datetime

from django import template
from django.utils import timezone
from django.utils.dateparse import parse_datetime

register = template.Library()

PLACEHOLDER = "—"


@register.filter
def lkr(value):
    if value is None or value == "":
        return PLACEHOLDER
    try:
        return f"LKR {float(value):,.2f}"
    except (TypeError, ValueError):
        return PLACEHOLDER


@register.filter
def percent(value):
    if value is None:
        return PLACEHOLDER
    try:
        return f"{float(value):.1f}%"
    except (TypeError, ValueError):
        return PLACEHOLDER


@register.filter
def iso_date(value, fmt="%b %d, %Y"):
    """后端返回 ISO 字符串；解析失败原样显示"""
    if not value:
        return PLACEHOLDER
    dt = value if isinstance(value, datetime) else parse_datetime(str(value))
    if dt is None:
        return str(value).split("T")[0]
    if timezone.is_aware(dt):
        dt = timezone.localtime(dt)
    return dt.strftime(fmt)


@register.filter
def get_item(d, key):
    return d.get(key) if isinstance(d, dict) else None
