"""登录态存 Django session（缓存后端为 Redis）：当前管理员 + 后端 token"""
from django.conf import settings

TOKEN_KEY = "auth_token"
USER_KEY = "admin_user"
TTL = getattr(settings, "APP_SESSION_TTL_DAYS", 7) * 24 * 60 * 60  # 秒


def set_auth(request, user: dict, token: str, remember: bool = True) -> None:
    # 防会话固定：登录后换 session key
    request.session.cycle_key()
    request.session[TOKEN_KEY] = token
    request.session[USER_KEY] = dict(user)
    # 不勾选“记住我”时关闭浏览器即失效
    request.session.set_expiry(TTL if remember else 0)


def logout(request) -> None:
    request.session.flush()


def get_token(request):
    return request.session.get(TOKEN_KEY)


def get_user(request):
    return request.session.get(USER_KEY)


def update_user(request, **fields) -> None:
    user = get_user(request)
    if not user:
        return
    user.update({k: v for k, v in fields.items() if v is not None})
    request.session[USER_KEY] = user


def is_authenticated(request) -> bool:
    return bool(get_token(request) and get_user(request))


def has_role(request, roles) -> bool:
    user = get_user(request)
    if not user:
        return False
    if isinstance(roles, str):
        roles = [roles]
    allowed = {r.upper() for r in roles}
    return (user.get("role") or "").upper() in allowed


def is_super_admin(request) -> bool:
    return has_role(request, "SUPER_ADMIN")
