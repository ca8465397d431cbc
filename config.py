import os


class Config:
    """Base configuration class"""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    DATABASE_URL = os.environ.get('DATABASE_URL') or 'sqlite:///zhuifeng.db'

    # JWT Configuration
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY') or 'jwt-secret-key'
    JWT_EXPIRES_DAYS = int(os.environ.get('JWT_EXPIRES_DAYS', 7))

    # Aggregation
    CACHE_TTL = int(os.environ.get('CACHE_TTL', 60))  # seconds
    HTTP_TIMEOUT = float(os.environ.get('HTTP_TIMEOUT', 10))
    NEWS_LIMIT = int(os.environ.get('NEWS_LIMIT', 50))
    PRICE_LIMIT = int(os.environ.get('PRICE_LIMIT', 10))
    IMPORTANT_VOTES_THRESHOLD = 5  # CryptoPanic "important" votes

    # Third-party API keys
    CRYPTOCOMPARE_API_KEY = os.environ.get('CRYPTOCOMPARE_API_KEY', '')
    CRYPTOPANIC_API_KEY = os.environ.get('CRYPTOPANIC_API_KEY', '')
    TRADINGECONOMICS_API_KEY = os.environ.get('TRADINGECONOMICS_API_KEY') or 'guest:guest'
    DERIVATIVES_SYMBOLS = [
        s.strip().upper()
        for s in os.environ.get('DERIVATIVES_SYMBOLS', 'BTC,ETH,SOL,BNB,XRP').split(',')
        if s.strip()
    ]

    # Membership (1 USDT on BSC)
    RPC_URL = os.environ.get('RPC_URL', '')
    USDT_CONTRACT = os.environ.get('USDT_CONTRACT') or '0x55d398326f99059fF775485246999027B3197955'
    PLATFORM_ADDRESS = os.environ.get('PLATFORM_ADDRESS') or '0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb'
    MEMBERSHIP_PRICE = float(os.environ.get('MEMBERSHIP_PRICE', 1))

    # Community
    MAX_POST_LENGTH = 2000
    MIN_PASSWORD_LENGTH = 6

    # WebSocket price push
    WS_HOST = os.environ.get('WS_HOST', 'localhost')
    WS_PORT = int(os.environ.get('WS_PORT', 8765))
    PRICE_PUSH_INTERVAL = int(os.environ.get('PRICE_PUSH_INTERVAL', 15))

    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    DATABASE_URL = os.environ.get('DATABASE_URL')
    if not DATABASE_URL:
        BASE_DIR = os.path.dirname(os.path.abspath(__file__))
        DATABASE_URL = f"sqlite:///{os.path.join(BASE_DIR, 'instance', 'zhuifeng.db')}"
    # Normalize legacy postgres scheme
    if DATABASE_URL and DATABASE_URL.startswith('postgres://'):
        DATABASE_URL = DATABASE_URL.replace('postgres://', 'postgresql://', 1)


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    JWT_SECRET_KEY = 'test-jwt-secret'
    RPC_URL = ''
    CRYPTOPANIC_API_KEY = 'test-panic-key'


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config(name=None):
    """Resolve a config class by name, falling back to APP_ENV then default"""
    name = name or os.environ.get('APP_ENV') or 'default'
    return config.get(name, config['default'])
