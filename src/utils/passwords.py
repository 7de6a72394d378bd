"""Password hashing with bcrypt."""

import bcrypt

# Work factor for new hashes
BCRYPT_ROUNDS = 10


def hash_password(password: str) -> str:
    """Hash a plaintext password. Only the returned hash is ever stored."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plaintext password against a stored bcrypt hash."""
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False
