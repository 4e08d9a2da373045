import os
import urllib.parse


def mysql_uri(*, default_password: str = "") -> str:
    """Build the SQLAlchemy URI from DB_* variables."""

    user = os.getenv("DB_USER", "root")
    password = urllib.parse.quote_plus(os.getenv("DB_PASSWORD", default_password))
    host = os.getenv("DB_HOST", "localhost")
    port = int(os.getenv("DB_PORT", "3306"))
    name = os.getenv("DB_NAME", "project_hub")
    return f"mysql+mysqlconnector://{user}:{password}@{host}:{port}/{name}"


def env_flag(name: str, default: str = "0") -> bool:
    return bool(int(os.getenv(name, default)))
