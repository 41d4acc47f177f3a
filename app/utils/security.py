import base64
import hashlib
import secrets
from datetime import datetime, timedelta
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from jose import jwt, JWTError
from config.config import Config

# JWT settings
SECRET_KEY = Config.SECRET_KEY
ALGORITHM = "HS256"

NONCE_SIZE = 12  # 96 bits for AES-GCM


class DecryptionError(Exception):
    """Stored secret could not be decrypted (wrong key or corrupted value)"""


def generate_token(data: dict, expires_delta: timedelta = None) -> str:
    """Generate JWT token"""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=Config.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def verify_token(token: str) -> dict:
    """Verify and decode JWT token"""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None


def _cipher(key: str = None) -> AESGCM:
    # Any configured key string is stretched to 256 bits
    raw = (key or Config.ENCRYPTION_KEY).encode('utf-8')
    return AESGCM(hashlib.sha256(raw).digest())


def encrypt_secret(plaintext: str, key: str = None) -> str:
    """Encrypt a credential for storage; returns base64(nonce || ciphertext)"""
    nonce = secrets.token_bytes(NONCE_SIZE)
    ciphertext = _cipher(key).encrypt(nonce, plaintext.encode('utf-8'), None)
    return base64.b64encode(nonce + ciphertext).decode('ascii')


def decrypt_secret(token: str, key: str = None) -> str:
    """Decrypt a value produced by encrypt_secret"""
    try:
        raw = base64.b64decode(token.encode('ascii'))
    except (ValueError, UnicodeEncodeError) as e:
        raise DecryptionError("Stored secret is not valid base64") from e

    if len(raw) <= NONCE_SIZE:
        raise DecryptionError("Stored secret is too short")

    try:
        plaintext = _cipher(key).decrypt(raw[:NONCE_SIZE], raw[NONCE_SIZE:], None)
    except InvalidTag as e:
        raise DecryptionError("Stored secret failed authentication") from e
    return plaintext.decode('utf-8')
