"""
Password hashing for email signups (bcrypt).

Only the hash is kept on the user record; the plain password never reaches
the store or the logs.
"""

import bcrypt


def hash_password(password: str) -> str:
    """
    Hash a signup password.

    Args:
        password: Plain text password from the signup request

    Returns:
        Bcrypt hash suitable for CustomerUser.password_hash
    """
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
    return hashed.decode("utf-8")

