import jwt
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from socialgate.primitives.assertion import (
    APPLE_AUDIENCE,
    build_client_assertion,
    load_private_key,
)


@pytest.fixture
def ec_key_pair():
    private_key = ec.generate_private_key(ec.SECP256R1())
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")
    public_pem = (
        private_key.public_key()
        .public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .decode("ascii")
    )
    return private_pem, public_pem


class TestBuildClientAssertion:
    def test_signs_apple_client_secret_claims(self, ec_key_pair):
        # Arrange
        private_pem, public_pem = ec_key_pair

        # Act
        token = build_client_assertion(
            team_id="TEAM123",
            key_id="KEY456",
            client_id="com.example.web",
            private_key=private_pem,
            now=1_700_000_000,
        )

        # Assert
        header = jwt.get_unverified_header(token)
        assert header["alg"] == "ES256"
        assert header["kid"] == "KEY456"

        claims = jwt.decode(
            token,
            public_pem,
            algorithms=["ES256"],
            audience=APPLE_AUDIENCE,
            options={"verify_exp": False},
        )
        assert claims["iss"] == "TEAM123"
        assert claims["sub"] == "com.example.web"
        assert claims["iat"] == 1_700_000_000
        assert claims["exp"] == 1_700_000_300

    def test_invalid_key_raises(self):
        with pytest.raises((jwt.PyJWTError, ValueError)):
            build_client_assertion(
                team_id="T",
                key_id="K",
                client_id="C",
                private_key="not a key",
            )


class TestLoadPrivateKey:
    def test_pem_text_returned_as_is(self, ec_key_pair):
        private_pem, _ = ec_key_pair

        assert load_private_key(private_pem) == private_pem

    def test_reads_pem_from_path(self, ec_key_pair, tmp_path):
        # Arrange
        private_pem, _ = ec_key_pair
        key_file = tmp_path / "AuthKey.p8"
        key_file.write_text(private_pem, encoding="utf-8")

        # Act / Assert
        assert load_private_key(str(key_file)) == private_pem
