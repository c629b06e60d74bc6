# Two-Factor - Secret Provisioning
#
# Generates the shared TOTP secret for an account and the otpauth:// URI
# authenticator apps scan. The URI is turned into a QR image by qr.py.

from dataclasses import dataclass

import pyotp

from ..core.errors import ValidationError

SECRET_LENGTH = 32  # base32 characters → 160 bits of entropy


@dataclass(frozen=True)
class OtpProvisioning:
    """A freshly generated secret and its provisioning URI."""
    secret: str
    uri: str


class OtpProvisioner:
    """
    Creates TOTP shared secrets.

    Each call draws a new secret from the OS CSPRNG; secrets are never
    reused across calls.
    """

    def __init__(self, issuer: str = "SecureVault"):
        self.issuer = issuer

    def generate(self, label: str) -> OtpProvisioning:
        """
        Generate a secret and an otpauth:// provisioning URI.

        Args:
            label: Account label shown in the authenticator app (the email)

        Returns:
            OtpProvisioning with the base32 secret and the URI

        Raises:
            ValidationError: label is empty
        """
        if not label or not label.strip():
            raise ValidationError("OTP label cannot be empty")

        secret = pyotp.random_base32(length=SECRET_LENGTH)
        uri = pyotp.TOTP(secret).provisioning_uri(
            name=label.strip(), issuer_name=self.issuer,
        )
        return OtpProvisioning(secret=secret, uri=uri)
