# -*- coding: utf-8 -*-
"""
列表补全（enrichment）：首屏列表加载后，按固定批次并发拉取每行的附加数据。
批与批之间固定间隔，单项失败按线性退避重试，重试耗尽后只标记该行，不影响其它行。
只用于读接口；写操作不重试。
"""
import logging
import time
from concurrent.futures import ThreadPoolExecutor

from .client import BackendError

logger = logging.getLogger(__name__)


def with_retry(fetch, item, retries=2, backoff=0.25):
    last_err = None
    for attempt in range(retries + 1):
        try:
            return fetch(item)
        except BackendError as e:
            last_err = e
            if attempt < retries:
                time.sleep(backoff * (attempt + 1))
    raise last_err


def run_batched(
    items,
    fetch,
    on_success,
    on_failure=None,
    batch_size=5,
    delay=0.1,
    retries=2,
    backoff=0.25,
    should_stop=None,
):
    """
    items 分批，每批用线程池并发执行 fetch(item)；成功回调 on_success(item, value)，
    失败（重试耗尽）回调 on_failure(item, error)。should_stop() 为真时不再启动新批次。
    返回已处理的条目数。
    """
    items = list(items)
    done = 0
    for start in range(0, len(items), batch_size):
        if should_stop is not None and should_stop():
            logger.info("enrichment 提前结束: %s/%s", done, len(items))
            break
        batch = items[start : start + batch_size]
        with ThreadPoolExecutor(max_workers=len(batch)) as pool:
            futures = [(item, pool.submit(with_retry, fetch, item, retries, backoff)) for item in batch]
            for item, fut in futures:
                try:
                    value = fut.result()
                except BackendError as e:
                    logger.warning("enrichment 失败 %r: %s", item, e)
                    if on_failure is not None:
                        on_failure(item, e)
                else:
                    on_success(item, value)
                done += 1
        if delay and start + batch_size < len(items):
            time.sleep(delay)
    return done


def gather(calls, raise_errors=False):
    """
    并发执行一组无参调用 {name: fn}。
    raise_errors=False 时返回 {name: (value, error)}；True 时任一失败即抛出（同 Promise.all）。
    """
    if not calls:
        return {}
    results = {}
    with ThreadPoolExecutor(max_workers=len(calls)) as pool:
        futures = {name: pool.submit(fn) for name, fn in calls.items()}
        for name, fut in futures.items():
            try:
                results[name] = (fut.result(), None)
            except BackendError as e:
                if raise_errors:
                    raise
                logger.warning("并发请求 %s 失败: %s", name, e)
                results[name] = (None, e)
    return results


def deadline(seconds):
    """返回 should_stop 判定函数：超过时间预算后为真"""
    if not seconds:
        return None
    end = time.monotonic() + seconds
    return lambda: time.monotonic() >= end
