import os

from config.config import env_flag, mysql_uri

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL") or mysql_uri(default_password="root")
SQLALCHEMY_TRACK_MODIFICATIONS = False

DEBUG = True

# Create missing tables on startup (db.create_all is idempotent)
AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "1")
# Optional: also seed demo accounts and a demo project
AUTO_SEED_DB = env_flag("AUTO_SEED_DB", "0")

SESSION_DAYS = int(os.getenv("SESSION_DAYS", "7"))
