# -*- coding: utf-8 -*-
"""后端响应结构不统一：有的包一层 {"data": ...}，计数有数字也有字符串，部分接口有多个候选路径"""
import logging

from .client import BackendError, UnexpectedShape

logger = logging.getLogger(__name__)


def unwrap(body):
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body


def to_number(value, default=None):
    """数字原样返回；数字字符串解析为 int/float；其它返回 default"""
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return default
        try:
            return int(s)
        except ValueError:
            pass
        try:
            return float(s)
        except ValueError:
            return default
    return default


def parse_count(body, keys=("totalCount",)):
    """数字 / {totalCount: n} / {"data": ...} 三种形态"""
    def _direct(val):
        if isinstance(val, (int, float)) and not isinstance(val, bool):
            return val
        if isinstance(val, dict):
            for key in keys:
                n = val.get(key)
                if isinstance(n, (int, float)) and not isinstance(n, bool):
                    return n
        return None

    n = _direct(body)
    if n is not None:
        return n
    if isinstance(body, dict) and "data" in body:
        return _direct(body["data"])
    return None


def parse_percent(body, key="growthPercent"):
    if isinstance(body, dict):
        if key in body:
            value = body[key]
            if isinstance(value, str):
                # 部分接口返回 "12.5%"
                value = value.strip().rstrip("%")
            n = to_number(value)
            if n is not None:
                return float(n)
        if "data" in body:
            return parse_percent(body["data"], key)
    return None


def parse_list(body, what="list"):
    if isinstance(body, list):
        return body
    inner = unwrap(body)
    if isinstance(inner, list):
        return inner
    logger.warning("%s 响应结构异常: %r", what, body)
    raise UnexpectedShape(f"Unexpected {what} response shape")


def first_success(client, paths, extract, what="response"):
    """按顺序尝试候选路径，返回第一个能解析出结果的值"""
    last_err = None
    for path in paths:
        try:
            value = extract(client.get(path))
        except BackendError as e:
            logger.info("候选路径失败 %s: %s", path, e)
            last_err = e
            continue
        if value is not None:
            return value
    if last_err is not None:
        raise last_err
    raise UnexpectedShape(f"Unexpected {what} response shape")
