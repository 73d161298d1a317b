import hashlib
import secrets

ALGORITHM = "pbkdf2_sha256"
ITERATIONS = 390000
MIN_LENGTH = 8


def hash_password(password: str) -> str:
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), ITERATIONS)
    return f"{ALGORITHM}${ITERATIONS}${salt}${digest.hex()}"


def verify_password(stored: str, provided: str) -> bool:
    try:
        algorithm, iterations, salt, hex_digest = stored.split("$")
        rounds = int(iterations)
    except ValueError:
        return False
    if algorithm != ALGORITHM:
        return False
    candidate = hashlib.pbkdf2_hmac("sha256", provided.encode(), salt.encode(), rounds)
    return secrets.compare_digest(candidate.hex(), hex_digest)
