from .logger import setup_logger, get_logger
from .security import generate_token, verify_token, encrypt_secret, decrypt_secret
from .validators import validate_email, validate_phone, validate_date_of_birth, validate_national_id
from .exceptions import ErrorKind, BackgroundCheckError, ProviderError
from .locks import KeyedLock

__all__ = [
    'setup_logger', 'get_logger',
    'generate_token', 'verify_token', 'encrypt_secret', 'decrypt_secret',
    'validate_email', 'validate_phone', 'validate_date_of_birth', 'validate_national_id',
    'ErrorKind', 'BackgroundCheckError', 'ProviderError',
    'KeyedLock'
]
