import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    DATABASE_URL = os.environ.get('DATABASE_URL') or 'sqlite:///screening.db'
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Key used to encrypt provider credentials stored in integration_settings
    ENCRYPTION_KEY = os.environ.get('ENCRYPTION_KEY') or 'dev-encryption-key-change-in-production'

    # Screening provider
    SCREENING_PROVIDER = os.environ.get('SCREENING_PROVIDER', 'certn')
    CERTN_CLIENT_ID = os.environ.get('CERTN_CLIENT_ID')
    CERTN_CLIENT_SECRET = os.environ.get('CERTN_CLIENT_SECRET')
    CERTN_ENVIRONMENT = os.environ.get('CERTN_ENVIRONMENT', 'demo')
    CERTN_WEBHOOK_SECRET = os.environ.get('CERTN_WEBHOOK_SECRET')
    CHECKR_API_KEY = os.environ.get('CHECKR_API_KEY')
    PROVIDER_TIMEOUT_SECONDS = float(os.environ.get('PROVIDER_TIMEOUT_SECONDS', '10'))

    # Status polling
    STATUS_POLL_ENABLED = os.environ.get('STATUS_POLL_ENABLED', 'false').lower() == 'true'
    STATUS_POLL_INTERVAL_MINUTES = int(os.environ.get('STATUS_POLL_INTERVAL_MINUTES', '60'))

    # Application Settings
    APP_URL = os.environ.get('APP_URL', 'http://localhost:5000')

    # Token Settings
    ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24  # 24 hours

    # Screening packages offered to operators (price in cents)
    SCREENING_PACKAGES = [
        {
            'id': 'basic',
            'name': 'Basic Criminal Check',
            'tier': 'basic',
            'price_cents': 2900,
            'estimated_duration_days': 2,
            'included_checks': [
                'Canadian Criminal Record Check',
                'Identity Verification',
                'RCMP Database Search',
            ],
            'is_recommended': False,
        },
        {
            'id': 'standard',
            'name': 'Standard Employment Check',
            'tier': 'standard',
            'price_cents': 4900,
            'estimated_duration_days': 5,
            'included_checks': [
                'Everything in Basic',
                'Enhanced Criminal Records Check',
                'Employment Verification (2 positions)',
                'Education Verification',
                'Reference Checks',
            ],
            'is_recommended': True,
        },
        {
            'id': 'comprehensive',
            'name': 'Comprehensive Check',
            'tier': 'comprehensive',
            'price_cents': 8900,
            'estimated_duration_days': 7,
            'included_checks': [
                'Everything in Standard',
                'Extended Criminal Records (10 years)',
                'Employment Verification (unlimited)',
                'Professional License Verification',
                'Credit Report (if applicable)',
                'International Criminal Record Check',
            ],
            'is_recommended': False,
        },
    ]

    # Logging
    LOG_FILE = os.environ.get('LOG_FILE', 'logs/screening.log')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class DevelopmentConfig(Config):
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    DEBUG = True
    TESTING = True
    DATABASE_URL = 'sqlite:///test_screening.db'
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    STATUS_POLL_ENABLED = False


class ProductionConfig(Config):
    DEBUG = False
    TESTING = False


config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}
