from django.urls import path, include
from apps.system.views import health

urlpatterns = [
    path("health", health),
    path("", include("apps.account.urls")),
    path("api/", include("apps.admin_api.urls")),
    path("", include("apps.dashboard.urls")),
]
