import os
from pathlib import Path


def _int_env(name, default):
    value = os.environ.get(name)
    return int(value) if value else default


class Config:
    # Base directory
    BASE_DIR = Path(__file__).parent.parent

    # Database configuration
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        f'sqlite:///{BASE_DIR / "instance" / "app.db"}'
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Deployment environment; error details are hidden in production
    APP_ENV = os.environ.get('APP_ENV', 'development')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Civil timezone all schedules are matched in
    TIMEZONE = os.environ.get('TIMEZONE', 'Asia/Manila')

    # Dispenser configuration
    MEDICINES = tuple(
        name.strip()
        for name in os.environ.get('MEDICINES', 'medicine_1,medicine_2,medicine_3').split(',')
        if name.strip()
    )
    MAX_CAPACITY = _int_env('MAX_CAPACITY', 10)  # doses per compartment
    ON_TIME_GRACE_MINUTES = _int_env('ON_TIME_GRACE_MINUTES', 5)

    # Browser origins allowed to call the API (the dashboard)
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            'CORS_ORIGINS',
            'https://smart-medicine-monitoring.netlify.app,http://localhost:3000'
        ).split(',')
        if origin.strip()
    ]


class TestingConfig(Config):
    TESTING = True
    APP_ENV = 'testing'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
