# wigglebyte/settings.py
"""
WiggleByte console Django settings

CHANGE LOG
----------
2026-09-02 • Razorpay + exchange-rate config                                        # CHANGED:
- RAZORPAY_KEY_ID / RAZORPAY_KEY_SECRET are required; missing keys fail at startup.  # CHANGED:
- EXCHANGE_RATE_URL / _TTL_SECONDS / _FALLBACK loaded from env with defaults.

2026-08-14 • Logging encoding → settings-level (UTF-8)
- RotatingFileHandler writes logs/billing.log with encoding='utf-8'.
"""

from pathlib import Path
import os
from dotenv import load_dotenv

# ========= Base / Env =========
BASE_DIR = Path(__file__).resolve().parent.parent

ENV_CANDIDATES = [
    Path(os.path.expanduser('~/wigglebyte/.env')),  # server: ~/wigglebyte/.env
    BASE_DIR / '.env',                               # Local: project root
    BASE_DIR.parent / '.env',                        # Local: repo root (if nested)
]
for _env in ENV_CANDIDATES:
    if _env.exists():
        load_dotenv(_env)
        print(f"[settings] Loaded env from: {_env}")
        break
else:
    load_dotenv()  # fallback (no-op if missing)
    print("[settings] No .env found in common locations; relying on os.environ.")

# ========= Secret Key =========
DJANGO_SECRET_KEY = os.getenv('DJANGO_SECRET_KEY')
if not DJANGO_SECRET_KEY:
    raise ValueError("DJANGO_SECRET_KEY must be set in .env file")
SECRET_KEY = DJANGO_SECRET_KEY

DEBUG = os.getenv("DEBUG", "False") == "True"

# ========= Hosts / CSRF / Security =========
ALLOWED_HOSTS = [
    "127.0.0.1",
    "localhost",
    "testserver",
    "wigglebyte.com",
    "console.wigglebyte.com",
] + (os.getenv("ADDITIONAL_HOSTS", "").split(",") if os.getenv("ADDITIONAL_HOSTS") else [])

SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SESSION_COOKIE_SECURE = not DEBUG
CSRF_COOKIE_SECURE = not DEBUG

# ========= Installed apps =========
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "corsheaders",
    "billing",
]

# ========= Middleware =========
# CORS middleware stays at the very top
MIDDLEWARE = [
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "whitenoise.middleware.WhiteNoiseMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

# ========= URL / Templates / WSGI =========
ROOT_URLCONF = "wigglebyte.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "templates"],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "wigglebyte.wsgi.application"

# ========= Database =========
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
        "OPTIONS": {"timeout": 30},
    }
}

# ========= Password validation =========
AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

# ========= I18N =========
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# ========= Security headers =========
SECURE_CONTENT_TYPE_NOSNIFF = True

if not DEBUG:
    SECURE_HSTS_SECONDS = 31536000
    SECURE_HSTS_INCLUDE_SUBDOMAINS = True
    SECURE_HSTS_PRELOAD = True

SECURE_SSL_REDIRECT = not DEBUG

# ========= Static =========
STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
}

# ========= Defaults =========
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ========= CORS / CSRF =========
CORS_ALLOWED_ORIGINS = [
    "https://wigglebyte.com",
    "https://console.wigglebyte.com",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
for _o in os.getenv("EXTRA_CORS_ORIGINS", "").split(","):
    if _o.strip() and _o.strip() not in CORS_ALLOWED_ORIGINS:
        CORS_ALLOWED_ORIGINS.append(_o.strip())

CSRF_TRUSTED_ORIGINS = list(CORS_ALLOWED_ORIGINS)
CORS_ALLOW_CREDENTIALS = True  # console sends the session cookie

# ========= Session config =========
SESSION_COOKIE_AGE = 3600  # 1 hour
SESSION_SAVE_EVERY_REQUEST = True

# ========= Razorpay =========
RAZORPAY_KEY_ID = os.getenv("RAZORPAY_KEY_ID")
RAZORPAY_KEY_SECRET = os.getenv("RAZORPAY_KEY_SECRET")
if not RAZORPAY_KEY_ID or not RAZORPAY_KEY_SECRET:
    raise ValueError("RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET must be set in .env file")
# Key id handed to the browser checkout; never the secret.
RAZORPAY_PUBLIC_KEY_ID = os.getenv("RAZORPAY_PUBLIC_KEY_ID") or RAZORPAY_KEY_ID
RAZORPAY_API_BASE = os.getenv("RAZORPAY_API_BASE", "https://api.razorpay.com/v1").rstrip("/")
RAZORPAY_TIMEOUT = int(os.getenv("RAZORPAY_TIMEOUT", "20"))

# ========= Exchange rate (USD → INR) =========
EXCHANGE_RATE_URL = os.getenv("EXCHANGE_RATE_URL", "https://open.er-api.com/v6/latest/USD")
EXCHANGE_RATE_TTL_SECONDS = int(os.getenv("EXCHANGE_RATE_TTL_SECONDS", "3600"))
EXCHANGE_RATE_FALLBACK = os.getenv("EXCHANGE_RATE_FALLBACK", "85.60")
EXCHANGE_RATE_TIMEOUT_SECONDS = int(os.getenv("EXCHANGE_RATE_TIMEOUT_SECONDS", "10"))

# ========= Billing / invoices =========
BILLING_COMPANY_NAME = os.getenv("BILLING_COMPANY_NAME", "WiggleByte Security")
BILLING_COMPANY_ADDRESS = os.getenv("BILLING_COMPANY_ADDRESS", "123 Security Street, Cyber City, 12345")
BILLING_TAX_RATE = os.getenv("BILLING_TAX_RATE", "0.10")

# ========= Logging =========
LOG_DIR = BASE_DIR / 'logs'
LOG_DIR.mkdir(exist_ok=True)

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {module} {process:d} {thread:d} {message}',
            'style': '{',
        },
        'simple': {
            'format': '{levelname} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'file': {
            'level': 'INFO',
            'class': 'logging.handlers.RotatingFileHandler',
            'filename': LOG_DIR / 'billing.log',
            'maxBytes': 1024*1024*15,
            'backupCount': 10,
            'formatter': 'verbose',
            'encoding': 'utf-8',
        },
        'console': {
            'level': 'INFO',
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'loggers': {
        'billing': {
            'handlers': ['file', 'console'],
            'level': 'INFO',
            'propagate': False,
        },
        'django': {
            'handlers': ['file'],
            'level': 'ERROR',
            'propagate': True,
        },
    },
}
