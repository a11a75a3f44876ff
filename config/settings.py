# 管理后台本身不存业务数据：所有数据来自远端教学平台后端 REST 接口；会话与缓存走 Redis
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent
SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-secret-change-in-production")
DEBUG = os.environ.get("DEBUG", "1") == "1"
ALLOWED_HOSTS = ["*"]

INSTALLED_APPS = [
    # auth / contenttypes 仅供 DRF 导入，本项目不使用 Django 用户表
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "corsheaders",
    "apps.account",
    "apps.dashboard",
    "apps.system",
    "apps.admin_api",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "corsheaders.middleware.CorsMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "apps.account.middleware.BackendUnauthorizedMiddleware",
]

ROOT_URLCONF = "config.urls"
WSGI_APPLICATION = "config.wsgi.application"
CORS_ALLOW_ALL_ORIGINS = True
APPEND_SLASH = False

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.messages.context_processors.messages",
                "apps.account.context_processors.admin_session",
            ],
        },
    },
]

# 仅满足 Django 内部需要，业务数据不落库
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }
}

REDIS_URL = os.environ.get("REDIS_URL", "redis://127.0.0.1:6379/0")
CACHES = {
    "default": {
        "BACKEND": "django_redis.cache.RedisCache",
        "LOCATION": REDIS_URL,
        "OPTIONS": {"CLIENT_CLASS": "django_redis.client.DefaultClient"},
    }
}
SESSION_ENGINE = "django.contrib.sessions.backends.cache"
SESSION_CACHE_ALIAS = "default"
MESSAGE_STORAGE = "django.contrib.messages.storage.session.SessionStorage"

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": [],
    "UNAUTHENTICATED_USER": None,
}

APP_SESSION_TTL_DAYS = int(os.environ.get("APP_SESSION_TTL_DAYS", "7"))
SESSION_COOKIE_AGE = APP_SESSION_TTL_DAYS * 24 * 60 * 60
LANGUAGE_CODE = "en-us"
TIME_ZONE = "Asia/Colombo"
USE_TZ = True
STATIC_URL = "static/"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# 远端后端
BACKEND_API_URL = os.environ.get("BACKEND_API_URL", "http://localhost:8080/api")
BACKEND_TIMEOUT = float(os.environ.get("BACKEND_TIMEOUT", "10"))
# 名师全量列表缓存（秒）
TUTORS_CACHE_TTL = int(os.environ.get("TUTORS_CACHE_TTL", "300"))

# 列表补全：批大小 / 批间隔（秒）/ 重试次数 / 线性退避基数（秒）/ 单页时间预算（秒）
ENRICH_SPENT_BATCH = int(os.environ.get("ENRICH_SPENT_BATCH", "5"))
ENRICH_SPENT_DELAY = float(os.environ.get("ENRICH_SPENT_DELAY", "0.1"))
ENRICH_STUDENT_MODULES_BATCH = int(os.environ.get("ENRICH_STUDENT_MODULES_BATCH", "4"))
ENRICH_STUDENT_MODULES_DELAY = float(os.environ.get("ENRICH_STUDENT_MODULES_DELAY", "0.12"))
ENRICH_TUTOR_MODULES_BATCH = int(os.environ.get("ENRICH_TUTOR_MODULES_BATCH", "4"))
ENRICH_TUTOR_MODULES_DELAY = float(os.environ.get("ENRICH_TUTOR_MODULES_DELAY", "0.1"))
ENRICH_RETRIES = int(os.environ.get("ENRICH_RETRIES", "2"))
ENRICH_BACKOFF = float(os.environ.get("ENRICH_BACKOFF", "0.25"))
ENRICH_TIME_BUDGET = float(os.environ.get("ENRICH_TIME_BUDGET", "8"))

# 阿里云 OSS：头像上传；关闭时图片转 data URL 直接提交给后端
ALIYUN_OSS_ENABLED = os.environ.get("ALIYUN_OSS_ENABLED", "0") == "1"
ALIYUN_OSS_CREDENTIAL_FILE = os.environ.get("ALIYUN_OSS_CREDENTIAL_FILE", "")
ALIYUN_OSS_BUCKET = os.environ.get("ALIYUN_OSS_BUCKET", "")
ALIYUN_OSS_ENDPOINT = os.environ.get("ALIYUN_OSS_ENDPOINT", "oss-ap-southeast-1.aliyuncs.com")
ALIYUN_OSS_PREFIX = os.environ.get("ALIYUN_OSS_PREFIX", "dashboard")
# 签名 URL 有效期（秒），私有读时返回带签名的临时链接
ALIYUN_OSS_SIGNED_URL_EXPIRES = int(os.environ.get("ALIYUN_OSS_SIGNED_URL_EXPIRES", "604800"))  # 默认 7 天
PROFILE_IMAGE_MAX_BYTES = int(os.environ.get("PROFILE_IMAGE_MAX_BYTES", str(2 * 1024 * 1024)))

# 日志：DEBUG_STUDENT / DEBUG_MODULES=1 时对应模块输出 DEBUG
DEBUG_STUDENT = os.environ.get("DEBUG_STUDENT", "0") == "1"
DEBUG_MODULES = os.environ.get("DEBUG_MODULES", "0") == "1"

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "loggers": {
        "apps": {
            "level": "INFO",
            "handlers": ["console"],
            "propagate": False,
        },
        "apps.backend.students": {"level": "DEBUG" if DEBUG_STUDENT else "INFO"},
        "apps.dashboard.enrichment": {"level": "DEBUG" if DEBUG_STUDENT else "INFO"},
        "apps.backend.modules": {"level": "DEBUG" if DEBUG_MODULES else "INFO"},
    },
}
