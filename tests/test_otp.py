"""
Tests for TOTP provisioning, verification and QR rendering.

Verification times are fixed with ``for_time`` so window edges are exact.
"""

import base64
from urllib.parse import parse_qs, unquote, urlparse

import pyotp
import pytest

from securevault.core.errors import ValidationError
from securevault.otp.provisioner import SECRET_LENGTH, OtpProvisioner
from securevault.otp.qr import QrRenderer
from securevault.otp.verifier import OtpVerifier, normalize_code

# Start of a 30-second step, far from the epoch
T0 = 1_700_000_010 - (1_700_000_010 % 30)


@pytest.fixture
def secret():
    return pyotp.random_base32(length=32)


class TestOtpProvisioner:

    def test_secret_is_160_bit_base32(self):
        provisioning = OtpProvisioner().generate("a@x.com")
        assert len(provisioning.secret) == SECRET_LENGTH == 32
        assert len(base64.b32decode(provisioning.secret)) == 20

    def test_secrets_are_unique(self):
        provisioner = OtpProvisioner()
        secrets = {provisioner.generate("a@x.com").secret for _ in range(20)}
        assert len(secrets) == 20

    def test_uri_shape(self):
        provisioning = OtpProvisioner(issuer="SecureVault").generate("a@x.com")
        parsed = urlparse(provisioning.uri)
        assert parsed.scheme == "otpauth"
        assert parsed.netloc == "totp"
        assert unquote(parsed.path) == "/SecureVault:a@x.com"
        query = parse_qs(parsed.query)
        assert query["secret"] == [provisioning.secret]
        assert query["issuer"] == ["SecureVault"]

    def test_empty_label_rejected(self):
        with pytest.raises(ValidationError):
            OtpProvisioner().generate("  ")


class TestNormalizeCode:

    @pytest.mark.parametrize("raw,expected", [
        ("123456", "123456"),
        (" 123 456 ", "123456"),
        ("12345", None),
        ("1234567", None),
        ("12a456", None),
        ("", None),
        (None, None),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_code(raw) == expected


class TestOtpVerifier:

    def test_current_code_accepted(self, secret):
        code = pyotp.TOTP(secret).at(T0)
        assert OtpVerifier().verify(secret, code, for_time=T0)

    @pytest.mark.parametrize("steps", [-2, -1, 1, 2])
    def test_drift_within_window_accepted(self, secret, steps):
        code = pyotp.TOTP(secret).at(T0 + steps * 30)
        assert OtpVerifier(window=2).verify(secret, code, for_time=T0)

    @pytest.mark.parametrize("steps", [-4, -3, 3, 4])
    def test_drift_outside_window_rejected(self, secret, steps):
        code = pyotp.TOTP(secret).at(T0 + steps * 30)
        if code in {pyotp.TOTP(secret).at(T0 + s * 30) for s in range(-2, 3)}:
            pytest.skip("code collision inside the window")
        assert not OtpVerifier(window=2).verify(secret, code, for_time=T0)

    def test_window_zero_is_strict(self, secret):
        code = pyotp.TOTP(secret).at(T0 + 30)
        if code == pyotp.TOTP(secret).at(T0):
            pytest.skip("code collision")
        assert not OtpVerifier().verify(secret, code, window=0, for_time=T0)

    def test_code_for_other_secret_rejected(self, secret):
        other = pyotp.random_base32(length=32)
        code = pyotp.TOTP(other).at(T0)
        if code in {pyotp.TOTP(secret).at(T0 + s * 30) for s in range(-2, 3)}:
            pytest.skip("code collision")
        assert not OtpVerifier().verify(secret, code, for_time=T0)

    def test_whitespace_in_code_tolerated(self, secret):
        code = pyotp.TOTP(secret).at(T0)
        assert OtpVerifier().verify(secret, f" {code[:3]} {code[3:]} ", for_time=T0)

    @pytest.mark.parametrize("code", [None, "", "abcdef", "12345", "1234567"])
    def test_malformed_code_rejected(self, secret, code):
        assert not OtpVerifier().verify(secret, code, for_time=T0)

    def test_missing_secret_rejected(self):
        assert not OtpVerifier().verify("", "123456", for_time=T0)

    def test_invalid_base32_secret_rejected(self):
        assert not OtpVerifier().verify("not-base32-!!", "123456", for_time=T0)

    def test_default_time_is_now(self, secret):
        assert OtpVerifier().verify(secret, pyotp.TOTP(secret).now())


class TestQrRenderer:

    def test_returns_svg_data_uri(self):
        uri = OtpProvisioner().generate("a@x.com").uri
        data_uri = QrRenderer().render(uri)
        prefix = "data:image/svg+xml;base64,"
        assert data_uri.startswith(prefix)
        svg = base64.b64decode(data_uri[len(prefix):])
        assert b"<svg" in svg

    def test_deterministic_for_same_uri(self):
        uri = "otpauth://totp/SecureVault:a%40x.com?secret=JBSWY3DPEHPK3PXP&issuer=SecureVault"
        assert QrRenderer().render(uri) == QrRenderer().render(uri)
