import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.environ.get('SESSION_SECRET') or os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    WTF_CSRF_ENABLED = True
    WTF_CSRF_TIME_LIMIT = None
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    FIREBASE_WEB_API_KEY = os.environ.get('FIREBASE_WEB_API_KEY', '')
    FIREBASE_STORAGE_BUCKET = os.environ.get('FIREBASE_STORAGE_BUCKET', '')
    SESSION_COOKIE_DAYS = int(os.environ.get('SESSION_COOKIE_DAYS', 5))

    GEMINI_API_KEY = os.environ.get('GEMINI_API_KEY') or os.environ.get('AI_INTEGRATIONS_GEMINI_API_KEY')
    GEMINI_BASE_URL = os.environ.get('GEMINI_BASE_URL') or os.environ.get('AI_INTEGRATIONS_GEMINI_BASE_URL')
    GEMINI_MODEL = os.environ.get('GEMINI_MODEL', 'gemini-2.5-flash')
    GEMINI_MAX_ATTEMPTS = int(os.environ.get('GEMINI_MAX_ATTEMPTS', 1))

    DAILY_ROUND_GOAL = int(os.environ.get('DAILY_ROUND_GOAL', 16))
    NOTIFICATION_LIMIT = int(os.environ.get('NOTIFICATION_LIMIT', 50))
    MAX_CONTENT_LENGTH = 10 * 1024 * 1024


class TestConfig(Config):
    TESTING = True
    WTF_CSRF_ENABLED = False
    SECRET_KEY = 'test-secret'
    FIREBASE_WEB_API_KEY = 'test-web-key'
    FIREBASE_STORAGE_BUCKET = 'test-bucket'
    GEMINI_API_KEY = None
