SECRET_KEY = "test-secret"

SQLALCHEMY_DATABASE_URI = "sqlite://"
SQLALCHEMY_TRACK_MODIFICATIONS = False

DEBUG = False
TESTING = True

AUTO_INIT_DB = True
AUTO_SEED_DB = False

SESSION_DAYS = 1
