import hashlib


class Hasher:
    """
    Hasher provides SHA256 digests for player identity keys.

    Methods
    -------
    hash_string(input_string: str) -> str
        Returns a SHA256 hash of the UTF-8 encoded input string.
    """

    @staticmethod
    def hash_string(input_string: str) -> str:
        """Returns a SHA256 hash of the input string."""

        return hashlib.sha256(input_string.encode("utf-8")).hexdigest()
