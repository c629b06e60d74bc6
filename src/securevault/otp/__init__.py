# Two-Factor Module - TOTP provisioning and verification

from .provisioner import OtpProvisioner, OtpProvisioning
from .qr import QrRenderer
from .verifier import DEFAULT_WINDOW, OtpVerifier

__all__ = [
    "OtpProvisioner",
    "OtpProvisioning",
    "OtpVerifier",
    "QrRenderer",
    "DEFAULT_WINDOW",
]
