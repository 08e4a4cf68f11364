"""PKCE (Proof Key for Code Exchange) primitives.

Implements RFC 7636 parameter generation to prevent authorization code
interception attacks. Only the S256 method is supported.
"""

from __future__ import annotations

import base64
import hashlib
import secrets
import string

from socialgate.models.security import PKCEParameters

VERIFIER_ALPHABET = string.ascii_letters + string.digits + "-._~"
VERIFIER_LENGTH = 64


class PKCEManager:
    """Generates PKCE parameter pairs.

    This implementation follows RFC 7636 requirements:
    - Uses S256 code challenge method (SHA256 + base64url, no padding)
    - Generates code verifiers from the unreserved character set with the
      ``secrets`` CSPRNG
    """

    def __init__(self, verifier_length: int = VERIFIER_LENGTH):
        if not (43 <= verifier_length <= 128):
            raise ValueError("verifier_length must be 43-128")
        self.verifier_length = verifier_length

    def generate_parameters(self) -> PKCEParameters:
        """Generate a fresh verifier and its derived challenge.

        Returns:
            PKCEParameters: Immutable parameters for one authorization attempt
        """
        code_verifier = generate_code_verifier(self.verifier_length)
        return PKCEParameters(
            code_verifier=code_verifier,
            code_challenge=generate_code_challenge(code_verifier),
            code_challenge_method="S256",
        )


def generate_code_verifier(length: int = VERIFIER_LENGTH) -> str:
    """Generate a cryptographically secure code verifier.

    RFC 7636 Section 4.1: code verifier must be 43-128 characters long
    and use only unreserved characters:
        [A-Z] / [a-z] / [0-9] / "-" / "." / "_" / "~"
    """
    return "".join(secrets.choice(VERIFIER_ALPHABET) for _ in range(length))


def generate_code_challenge(code_verifier: str) -> str:
    """Derive the S256 code challenge.

    RFC 7636 Section 4.2: BASE64URL-ENCODE(SHA256(ASCII(code_verifier)))

    Args:
        code_verifier: The code verifier to hash

    Returns:
        Base64url-encoded SHA256 hash of the code verifier, without padding
    """
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()

    challenge = base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")

    return challenge
