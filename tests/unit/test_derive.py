import pytest

from munhash.common.errors import DerivationError
from munhash.pipeline.derive import derive_digest_hex, derive_salt


def test_derive_salt_is_deterministic_sha256_width():
    first = derive_salt("3550308")
    second = derive_salt("3550308")
    assert first == second
    assert len(first) == 32
    assert derive_salt("3304557") != first


def test_derive_digest_hex_matches_pbkdf2_sha256_reference_vector():
    # RFC 7914 section 11, first 32 bytes of the 64-byte output.
    digest = derive_digest_hex("passwd", b"salt", 1, 32)
    assert digest == "55AC046E56E3089FEC1691C22544B605F94185216DDE0465E68B9D57C20DACBC"


def test_derive_digest_hex_is_stable_uppercase_64_chars_at_production_iterations():
    salt = derive_salt("3550308")
    password = "71073550308SAO PAULOSão PauloSP"

    first = derive_digest_hex(password, salt, 50_000, 32)
    second = derive_digest_hex(password, salt, 50_000, 32)

    assert first == second
    assert len(first) == 64
    assert first == first.upper()
    int(first, 16)


def test_same_password_with_different_region_codes_yields_different_digests():
    password = "1001SAME NAMESame NameXX"
    assert derive_digest_hex(password, derive_salt("1100015"), 10, 32) != derive_digest_hex(
        password, derive_salt("1100023"), 10, 32
    )


@pytest.mark.parametrize(
    ("salt", "iterations", "output_bytes"),
    [
        (b"salt", 0, 32),
        (b"salt", -5, 32),
        (b"salt", 10, 0),
        ("not-bytes", 10, 32),
    ],
)
def test_derive_digest_hex_rejects_invalid_parameters(salt, iterations, output_bytes):
    with pytest.raises(DerivationError):
        derive_digest_hex("pw", salt, iterations, output_bytes)


def test_derive_digest_hex_rejects_unencodable_password():
    with pytest.raises(DerivationError):
        derive_digest_hex("bad \udc80 surrogate", b"salt", 10, 32)
