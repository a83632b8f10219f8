"""
Settings for the Cafe Online client.

Values come from the environment; every name has a working default so the
client runs against the public services out of the box.
"""

from pathlib import Path

import environ  # type: ignore[import-untyped]

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# Initialize environ
env = environ.Env(
    HTTP_TIMEOUT=(float, 30.0),
    ORDER_POLL_INTERVAL=(float, 6.0),
    ORDER_POLL_LIFETIME=(float, 120.0),
    NOTIFICATION_TIMEOUT=(float, 3.0),
    OPERATOR_EMAILS=(list, []),
)

# External services
ORDER_STORE_URL = env("ORDER_STORE_URL", default="https://server-cafe-ifpb.onrender.com/api")
PAYMENT_SERVICE_URL = env(
    "PAYMENT_SERVICE_URL", default="https://payment-microservices-c54u.onrender.com"
)
HTTP_TIMEOUT = env("HTTP_TIMEOUT")

# Checkout
CHECKOUT_RETURN_URL = env("CHECKOUT_RETURN_URL", default="https://cafe-online-ifpb.vercel.app")
PAYMENT_INSTRUMENT = env("PAYMENT_INSTRUMENT", default="pix")
PICKUP_ADDRESS_LABEL = env("PICKUP_ADDRESS_LABEL", default="Retirada na loja")
UNKNOWN_EMAIL = env("UNKNOWN_EMAIL", default="email-nao-encontrado")

# Operator view
ORDER_POLL_INTERVAL = env("ORDER_POLL_INTERVAL")  # seconds between background fetches
ORDER_POLL_LIFETIME = env("ORDER_POLL_LIFETIME")  # seconds from start() until polling stops
OPERATOR_EMAILS = [email.lower() for email in env("OPERATOR_EMAILS")]

# UI feedback
NOTIFICATION_TIMEOUT = env("NOTIFICATION_TIMEOUT")

# Persisted client state (one JSON file per key)
STATE_DIR = Path(env("STATE_DIR", default=str(Path.home() / ".cafe-online")))

# Logging
LOG_LEVEL = env("LOG_LEVEL", default="INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "simple",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": LOG_LEVEL,
    },
    "loggers": {
        "httpx": {"level": "WARNING"},
    },
}
