import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


class Config:
    """Runtime configuration, read from the environment.

    - ``DATABASE_URL``: SQLAlchemy URL; defaults to ``instance/database.db``.
    - ``SECRET_KEY``: signs the session cookie. Set a strong value in production.
    - ``ORDER_LINK_TTL_DAYS``: lifetime of a public order link when no expiry is given.
    - ``TX_RETRY_ATTEMPTS``: how many times a write is retried on lock or
      version conflicts before the caller gets a 409.
    - ``LOG_LEVEL``: root log level (``INFO`` unless overridden).
    """

    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "instance", "database.db"),
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
    JSON_SORT_KEYS = False

    ORDER_LINK_TTL_DAYS = int(os.getenv("ORDER_LINK_TTL_DAYS", "7"))
    TX_RETRY_ATTEMPTS = int(os.getenv("TX_RETRY_ATTEMPTS", "3"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # create tables on startup when there is no migration history (dev convenience)
    AUTO_CREATE_TABLES = os.getenv("AUTO_CREATE_TABLES", "1") == "1"


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SECRET_KEY = "testing"
    AUTO_CREATE_TABLES = True
    LOG_LEVEL = "WARNING"
