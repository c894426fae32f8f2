import os
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))


def _database_uri():
    url = os.environ.get('DATABASE_URL')
    if url:
        return url
    path = os.environ.get('DATABASE_PATH', os.path.join(BASE_DIR, 'data', 'trackman.db'))
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    return f"sqlite:///{os.path.abspath(path)}"


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-key-placeholder')
    SQLALCHEMY_DATABASE_URI = _database_uri()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET', 'fallback-secret')
    JWT_EXPIRES_HOURS = int(os.environ.get('JWT_EXPIRES_HOURS', 24 * 7))
    BCRYPT_ROUNDS = int(os.environ.get('BCRYPT_ROUNDS', 12))
    FRONTEND_URL = os.environ.get('FRONTEND_URL', 'http://localhost:3000')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    PORT = int(os.environ.get('PORT', 3001))


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    JWT_SECRET_KEY = 'test-secret'
    BCRYPT_ROUNDS = 4
    LOG_LEVEL = 'WARNING'
