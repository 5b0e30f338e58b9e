import bcrypt

BCRYPT_PREFIX = "{bcrypt}"
DEFAULT_ROUNDS = 12
# bcrypt only looks at the first 72 bytes; newer releases refuse longer input
MAX_PASSWORD_BYTES = 72


class UnsupportedHashFormat(ValueError):
    """Stored hash does not carry a known algorithm tag"""


class PasswordTooLong(ValueError):
    """Password is longer than bcrypt can hash"""

    def __init__(self, length: int):
        self.length = length
        super().__init__(f"password is {length} bytes, bcrypt accepts at most {MAX_PASSWORD_BYTES}")


def _encode(password: str) -> bytes:
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise PasswordTooLong(len(encoded))
    return encoded


class PasswordHasher:
    """bcrypt password hashing; stored values carry a ``{bcrypt}`` tag"""

    def __init__(self, rounds: int = DEFAULT_ROUNDS):
        self.rounds = rounds

    def hash(self, password: str) -> str:
        hashed = bcrypt.hashpw(_encode(password), bcrypt.gensalt(rounds=self.rounds))
        return BCRYPT_PREFIX + hashed.decode("utf-8")

    def verify(self, hashed_password: str, password: str) -> bool:
        """
        Check ``password`` against a tagged hash.

        Raises:
            UnsupportedHashFormat: the stored value is untagged or corrupt
            PasswordTooLong: the candidate exceeds bcrypt's input limit
        """
        if not self.is_hashed(hashed_password):
            raise UnsupportedHashFormat("Password hash has no supported algorithm tag")

        candidate = _encode(password)
        stored = hashed_password[len(BCRYPT_PREFIX):].encode("utf-8")
        try:
            return bcrypt.checkpw(candidate, stored)
        except ValueError as e:
            raise UnsupportedHashFormat("Stored bcrypt hash is corrupt") from e

    @staticmethod
    def is_hashed(value: str) -> bool:
        return bool(value) and value.startswith(BCRYPT_PREFIX)
