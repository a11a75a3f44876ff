# -*- coding: utf-8 -*-
"""课程（module）统计接口；DEBUG_MODULES=1 时本模块日志提升到 DEBUG"""
import logging

from .client import UnexpectedShape
from .shapes import first_success, parse_count, parse_percent

logger = logging.getLogger(__name__)

GROWTH_PATHS = ["/modules/growthmodule/last-month", "/modules/growth/last-month"]


def fetch_module_count(client):
    logger.debug("fetch_module_count -> /modules/count")
    data = client.get("/modules/count")
    logger.debug("fetch_module_count raw: %r", data)
    n = parse_count(data)
    if n is None:
        logger.warning("fetch_module_count 结构异常: %r", data)
        raise UnexpectedShape("Unexpected module count response shape")
    return n


def fetch_module_growth_percent_last_month(client):
    return first_success(client, GROWTH_PATHS, parse_percent, "modules growth")
