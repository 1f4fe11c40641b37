import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    DATABASE_URL = os.environ.get('DATABASE_URL') or 'sqlite:///educhain.db'
    SQLALCHEMY_DATABASE_URI = DATABASE_URL

    # Object storage for task resources and submissions
    STORAGE_URL = os.environ.get('STORAGE_URL')
    STORAGE_API_KEY = os.environ.get('STORAGE_API_KEY')
    STORAGE_BUCKET = os.environ.get('STORAGE_BUCKET', 'educhain-files')
    MAX_UPLOAD_MB = int(os.environ.get('MAX_UPLOAD_MB', '25'))
    MAX_CONTENT_LENGTH = MAX_UPLOAD_MB * 1024 * 1024

    # Token economy
    TEACHER_WELCOME_BONUS = float(os.environ.get('TEACHER_WELCOME_BONUS', '1000'))
    STUDENT_WELCOME_BONUS = float(os.environ.get('STUDENT_WELCOME_BONUS', '100'))
    TASK_CREATION_COST = float(os.environ.get('TASK_CREATION_COST', '1'))
    MENTOR_ANSWER_REWARD = float(os.environ.get('MENTOR_ANSWER_REWARD', '0.5'))
    DEADLINE_PENALTY = float(os.environ.get('DEADLINE_PENALTY', '1'))

    # Mentor thresholds
    MENTOR_MIN_RATING = float(os.environ.get('MENTOR_MIN_RATING', '4.0'))
    MENTOR_MIN_COMPLETED = int(os.environ.get('MENTOR_MIN_COMPLETED', '3'))

    # Deadline sweep interval for scripts/run_deadline_cron.py --every
    DEADLINE_SWEEP_MINUTES = int(os.environ.get('DEADLINE_SWEEP_MINUTES', '60'))

    # Token Settings
    ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24  # 24 hours

    # Logging
    LOG_FILE = os.environ.get('LOG_FILE', 'logs/educhain.log')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class DevelopmentConfig(Config):
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    DEBUG = True
    TESTING = True


class ProductionConfig(Config):
    DEBUG = False
    TESTING = False


config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}
