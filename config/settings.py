from pathlib import Path
import os
import sentry_sdk
from sentry_sdk.integrations.django import DjangoIntegration

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-only")
DEBUG = os.getenv("DJANGO_DEBUG", "1") == "1"
APPEND_SLASH = True

ALLOWED_HOSTS = ["*", "localhost", "127.0.0.1"]


INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.admin",

    "corsheaders",
    "rest_framework",
    "drf_spectacular",

    "commons",
    "pedidos",
    "fiscal",
]


MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "commons.middleware.RequestLogMiddleware",
    "corsheaders.middleware.CorsMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]


ROOT_URLCONF = "config.urls"

CORS_ALLOW_ALL_ORIGINS = True

# sqlite por padrão (dev/testes); postgres via DATABASE_ENGINE=postgresql
if os.getenv("DATABASE_ENGINE", "sqlite") == "postgresql":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": os.getenv("PGDATABASE", "nfcedados"),
            "USER": os.getenv("PGUSER", "postgres"),
            "PASSWORD": os.getenv("PGPASSWORD", ""),
            "HOST": os.getenv("PGHOST", "127.0.0.1"),
            "PORT": os.getenv("PGPORT", "5432"),
            "CONN_MAX_AGE": int(os.getenv("DB_CONN_MAX_AGE", "60")),
            "TEST": {
                "NAME": "test_nfcedados",
            },
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
            "OPTIONS": {
                # BEGIN IMMEDIATE: escritas concorrentes esperam o lock em vez de falhar
                "timeout": 20,
                "transaction_mode": "IMMEDIATE",
            },
            "TEST": {
                # arquivo (e não memória) para que threads compartilhem o banco de testes
                "NAME": BASE_DIR / "test_nfcedados.sqlite3",
            },
        }
    }

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": (
        "rest_framework_simplejwt.authentication.JWTAuthentication",
    ),
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    "DEFAULT_THROTTLE_CLASSES": ["rest_framework.throttling.UserRateThrottle"],
    "DEFAULT_THROTTLE_RATES": {
        "user": os.getenv("API_THROTTLE_USER", "60/min"),
    },
}

from datetime import timedelta
SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=30),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=7),
    "SIGNING_KEY": SECRET_KEY,
    "AUTH_HEADER_TYPES": ("Bearer",),
}

LANGUAGE_CODE = "pt-br"
TIME_ZONE = "America/Sao_Paulo"
USE_I18N = True
USE_TZ = True

STATIC_URL = "/static/"

SPECTACULAR_SETTINGS = {
    "TITLE": "GetStart NFC-e API",
    "VERSION": "1.0",
    "SERVE_INCLUDE_SCHEMA": False,
}

sentry_sdk.init(
    dsn=os.getenv("SENTRY_DSN", ""),
    integrations=[DjangoIntegration()],
    traces_sample_rate=0.1,
    send_default_pii=False,
)

# =============================
# 🧾 Fiscal / NFC-e
# =============================
# Timeout (segundos) das chamadas SOAP à SEFAZ
FISCAL_SEFAZ_TIMEOUT = int(os.getenv("FISCAL_SEFAZ_TIMEOUT", "30"))

# Usa MockSefazClient em vez da SEFAZ real (dev/homologação local)
FISCAL_SEFAZ_MOCK = os.getenv("FISCAL_SEFAZ_MOCK", "0") == "1"

# Alíquota aproximada de tributos (Lei 12.741) usada em vTotTrib
FISCAL_ALIQUOTA_APROXIMADA = os.getenv("FISCAL_ALIQUOTA_APROXIMADA", "0.0765")

# Chave de criptografia do certificado A1 em repouso (fallback: SECRET_KEY)
FISCAL_CERT_ENCRYPTION_KEY = os.getenv("FISCAL_CERT_ENCRYPTION_KEY", "")

FISCAL_VERSAO_PROCESSO = "GetStart-NFCe 1.0"

# Responsável técnico (infRespTec). Os defaults são placeholders de desenvolvimento.
FISCAL_RESPONSAVEL_TECNICO = {
    "cnpj": os.getenv("FISCAL_RESPONSAVEL_TECNICO_CNPJ", "00000000000000"),
    "contato": os.getenv("FISCAL_RESPONSAVEL_TECNICO_CONTATO", "Suporte Tecnico"),
    "email": os.getenv("FISCAL_RESPONSAVEL_TECNICO_EMAIL", "suporte@example.com"),
    "fone": os.getenv("FISCAL_RESPONSAVEL_TECNICO_FONE", "11999999999"),
}

# =============================
# 🧱 Templates
# =============================
TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "nfce-default",
    }
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {
            "class": "pythonjsonlogger.json.JsonFormatter",
        },
        "simple": {
            "format": "{levelname} {asctime} {name} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "level": "INFO",
        },
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": True,
        },
        "pdv.request": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
        "pdv.fiscal": {
            "handlers": ["console"],
            "level": "DEBUG",
            "propagate": False,
        },
    },
}

SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
SECURE_HSTS_SECONDS = 63072000
SECURE_CONTENT_TYPE_NOSNIFF = True
