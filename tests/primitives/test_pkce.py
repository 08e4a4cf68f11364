import base64
import hashlib

import pytest

from socialgate.models.security import PKCEParameters
from socialgate.primitives.pkce import (
    VERIFIER_ALPHABET,
    PKCEManager,
    generate_code_challenge,
    generate_code_verifier,
)


class TestPKCEManager:
    def test_generate_parameters_crypto_requirements(self) -> None:
        # Arrange
        pkce_manager = PKCEManager()

        # Act
        params = pkce_manager.generate_parameters()

        # Assert RFC 7636 requirements
        assert 43 <= len(params.code_verifier) <= 128
        assert 43 <= len(params.code_challenge) <= 128
        assert params.code_challenge_method == "S256"
        assert set(params.code_verifier) <= set(VERIFIER_ALPHABET)

        # Verify code_challenge is base64url(sha256(code_verifier))
        expected_challenge = (
            base64.urlsafe_b64encode(
                hashlib.sha256(params.code_verifier.encode("ascii")).digest()
            )
            .decode("ascii")
            .rstrip("=")
        )
        assert params.code_challenge == expected_challenge

    def test_generate_parameters_uniqueness(self) -> None:
        # Arrange
        pkce_manager = PKCEManager()

        # Act - Generate multiple parameters
        params1 = pkce_manager.generate_parameters()
        params2 = pkce_manager.generate_parameters()

        # Assert - Each generation is unique
        assert params1.code_verifier != params2.code_verifier
        assert params1.code_challenge != params2.code_challenge

    @pytest.mark.parametrize("length", [42, 129])
    def test_rejects_verifier_length_outside_rfc_bounds(self, length: int) -> None:
        with pytest.raises(ValueError):
            PKCEManager(verifier_length=length)

    def test_custom_verifier_length_is_honoured(self) -> None:
        params = PKCEManager(verifier_length=128).generate_parameters()

        assert len(params.code_verifier) == 128


class TestCodeChallenge:
    def test_rfc7636_appendix_b_vector(self) -> None:
        # Arrange
        verifier = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"

        # Act
        challenge = generate_code_challenge(verifier)

        # Assert
        assert challenge == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"
        assert "=" not in challenge

    def test_generated_verifier_has_requested_length(self) -> None:
        assert len(generate_code_verifier(50)) == 50


class TestPKCEParameters:
    def test_rejects_plain_method(self) -> None:
        with pytest.raises(ValueError, match="S256"):
            PKCEParameters(
                code_verifier="a" * 43,
                code_challenge="b" * 43,
                code_challenge_method="plain",
            )

    def test_verifier_hidden_from_repr(self) -> None:
        params = PKCEManager().generate_parameters()

        assert params.code_verifier not in repr(params)
