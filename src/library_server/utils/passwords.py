"""Password hashing helpers.

Hashes are encoded as ``pbkdf2_sha256$<iterations>$<salt hex>$<digest hex>``
so the parameters travel with the hash.
"""

import hashlib
import hmac
import secrets

ALGORITHM = "pbkdf2_sha256"
DEFAULT_ITERATIONS = 600_000


def hash_password(password: str, salt: bytes | None = None, iterations: int = DEFAULT_ITERATIONS) -> str:
    """Hash a password with PBKDF2-HMAC-SHA256.

    Args:
        password: The plain text password
        salt: Salt to use; a random 16 byte salt is generated when omitted
        iterations: PBKDF2 iteration count

    Returns:
        The encoded hash string
    """
    salt = salt if salt is not None else secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return f"{ALGORITHM}${iterations}${salt.hex()}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    """Check a password against an encoded hash in constant time.

    Args:
        password: The plain text password to check
        encoded: A hash produced by ``hash_password``

    Returns:
        True if the password matches, False otherwise (including malformed hashes)
    """
    try:
        algorithm, iterations, salt_hex, digest_hex = encoded.split("$")
        if algorithm != ALGORITHM:
            return False
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(digest_hex)
        rounds = int(iterations)
    except ValueError:
        return False

    candidate = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, rounds)
    return hmac.compare_digest(candidate, expected)
