# -*- coding: utf-8 -*-
"""
远端教学平台后端的 HTTP 客户端：统一 baseURL、JSON 编解码、Bearer Token、超时与错误映射。
401（登录接口除外）抛 BackendUnauthorized，由中间件清会话并跳转登录页。
"""
import http.client
import json
import logging
from urllib.error import HTTPError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from django.conf import settings

logger = logging.getLogger(__name__)

LOGIN_PATH = "/auth/login"


class BackendError(Exception):
    """后端调用失败的基类，页面在调用处捕获并提示"""


class BackendUnavailable(BackendError):
    """网络错误或超时"""


class BackendHTTPError(BackendError):
    def __init__(self, status, payload=None, path=""):
        self.status = status
        self.payload = payload
        self.path = path
        super().__init__(f"{path} -> HTTP {status}")


class UnexpectedShape(BackendError):
    """响应结构无法识别"""


class BackendUnauthorized(Exception):
    """Token 失效；不继承 BackendError，避免被页面里的通用错误处理吞掉"""

    def __init__(self, path="", payload=None):
        self.path = path
        self.payload = payload
        super().__init__(f"{path} -> HTTP 401")


def server_message(exc, default):
    """从错误响应里提取可展示的提示：字符串响应体，或 message / error 字段"""
    payload = getattr(exc, "payload", None)
    if isinstance(payload, str) and payload.strip():
        return payload.strip()
    if isinstance(payload, dict):
        for key in ("message", "error"):
            val = payload.get(key)
            if isinstance(val, str) and val.strip():
                return val.strip()
    return default


def _query_value(value):
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def _decode(raw, charset=None):
    if not raw:
        return None
    text = raw.decode(charset or "utf-8", errors="replace")
    try:
        return json.loads(text)
    except ValueError:
        return text


class BackendClient:
    def __init__(self, token=None, base_url=None, timeout=None):
        self.token = token
        self.base_url = (base_url or settings.BACKEND_API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.BACKEND_TIMEOUT

    def build_url(self, path, params=None):
        url = self.base_url + "/" + path.lstrip("/")
        if params:
            query = {k: _query_value(v) for k, v in params.items() if v is not None}
            if query:
                url += "?" + urlencode(query)
        return url

    def request(self, method, path, params=None, json_body=None):
        url = self.build_url(path, params)
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        data = json.dumps(json_body).encode("utf-8") if json_body is not None else None
        req = Request(url, data=data, method=method, headers=headers)
        logger.debug("%s %s", method, url)
        try:
            with urlopen(req, timeout=self.timeout) as resp:
                return _decode(resp.read(), resp.headers.get_content_charset())
        except HTTPError as e:
            payload = _decode(e.read(), e.headers.get_content_charset() if e.headers else None)
            if e.code == 401 and path.rstrip("/") != LOGIN_PATH:
                logger.info("后端返回 401: %s %s", method, path)
                raise BackendUnauthorized(path, payload) from e
            logger.warning("后端请求失败: %s %s status=%s", method, path, e.code)
            raise BackendHTTPError(e.code, payload, path) from e
        except (OSError, http.client.HTTPException) as e:
            # URLError、超时、连接被重置、响应读取中断
            logger.warning("后端不可达: %s %s %s", method, path, e)
            raise BackendUnavailable(f"{path}: {e}") from e

    def get(self, path, params=None):
        return self.request("GET", path, params=params)

    def post(self, path, json=None, params=None):
        return self.request("POST", path, params=params, json_body=json)

    def put(self, path, json=None, params=None):
        return self.request("PUT", path, params=params, json_body=json)

    def delete(self, path, params=None):
        return self.request("DELETE", path, params=params)


def client_for(request):
    """按当前会话里的 token 构造客户端"""
    from apps.account.session_store import get_token

    return BackendClient(token=get_token(request))
