import os

from config.config import env_flag, mysql_uri

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL") or mysql_uri()
SQLALCHEMY_TRACK_MODIFICATIONS = False

DEBUG = False

AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "0")
AUTO_SEED_DB = env_flag("AUTO_SEED_DB", "0")

SESSION_DAYS = int(os.getenv("SESSION_DAYS", "7"))
