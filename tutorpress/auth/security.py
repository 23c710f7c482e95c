import base64
import hashlib
import hmac
import bcrypt as _bcrypt
from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from tutorpress.config import settings

_ITOA64 = "./0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"


def _wp_prehash(password: str) -> bytes:
    """HMAC-SHA384 prehash → 64 bytes base64, as wp_hash_password() does since WordPress 6.8."""
    digest = hmac.new(b"wp-sha384", password.encode("utf-8"), hashlib.sha384).digest()
    return base64.b64encode(digest)


def _bcrypt_check(password: bytes, hashed: str) -> bool:
    # PHP emits $2y$; the algorithm is identical to $2b$
    if hashed.startswith("$2y$"):
        hashed = "$2b$" + hashed[4:]
    try:
        return _bcrypt.checkpw(password, hashed.encode("utf-8"))
    except ValueError:
        return False


def _phpass_encode64(data: bytes, count: int) -> str:
    output = []
    i = 0
    while True:
        value = data[i]
        i += 1
        output.append(_ITOA64[value & 0x3F])
        if i < count:
            value |= data[i] << 8
        output.append(_ITOA64[(value >> 6) & 0x3F])
        if i >= count:
            break
        i += 1
        if i < count:
            value |= data[i] << 16
        output.append(_ITOA64[(value >> 12) & 0x3F])
        if i >= count:
            break
        i += 1
        output.append(_ITOA64[(value >> 18) & 0x3F])
        if i >= count:
            break
    return "".join(output)


def _phpass_crypt(password: str, setting: str) -> Optional[str]:
    """Portable phpass hash used by WordPress before 6.8 ($P$...)."""
    if setting[:3] not in ("$P$", "$H$") or len(setting) < 12:
        return None
    count_log2 = _ITOA64.find(setting[3])
    if count_log2 < 7 or count_log2 > 30:
        return None
    salt = setting[4:12].encode("utf-8")
    secret = password.encode("utf-8")

    digest = hashlib.md5(salt + secret).digest()
    for _ in range(1 << count_log2):
        digest = hashlib.md5(digest + secret).digest()
    return setting[:12] + _phpass_encode64(digest, 16)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against any hash format wp_check_password() accepts."""
    if not hashed_password:
        return False

    if hashed_password.startswith("$wp"):
        return _bcrypt_check(_wp_prehash(plain_password), hashed_password[3:])

    if hashed_password.startswith(("$2y$", "$2b$", "$2a$")):
        return _bcrypt_check(plain_password.encode("utf-8"), hashed_password)

    if hashed_password.startswith(("$P$", "$H$")):
        computed = _phpass_crypt(plain_password, hashed_password)
        return computed is not None and hmac.compare_digest(computed, hashed_password)

    # Very old installs stored bare MD5
    if len(hashed_password) <= 32:
        computed = hashlib.md5(plain_password.encode("utf-8")).hexdigest()
        return hmac.compare_digest(computed, hashed_password)

    return False


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token with expiration"""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.jwt_access_token_expire_minutes)

    to_encode.update({"exp": expire, "type": "access"})
    encoded_jwt = jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    return encoded_jwt


def verify_token(token: str, expected_type: str = "access") -> Optional[dict]:
    """Verify JWT token and return payload if valid"""
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
        token_type: str = payload.get("type")
        if token_type != expected_type:
            return None
        return payload
    except JWTError:
        return None
