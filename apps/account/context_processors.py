from . import session_store


def admin_session(request):
    return {
        "admin_user": session_store.get_user(request),
        "is_super_admin": session_store.is_super_admin(request),
    }
