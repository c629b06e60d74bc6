"""
One-time code verification (RFC 6238 TOTP).

30-second steps, 6-digit codes. A code is accepted for the current step and
for ``window`` steps either side, tolerating clock drift between the server
and the user's phone. Codes are compared in constant time.
"""
import logging
import re
from datetime import datetime
from typing import Optional, Union

import pyotp

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 2  # ±2 steps = ±60 seconds
STEP_SECONDS = 30
CODE_DIGITS = 6

_CODE_PATTERN = re.compile(rf"^\d{{{CODE_DIGITS}}}$")


def normalize_code(code: Optional[str]) -> Optional[str]:
    """Strip whitespace from a submitted code; None if it is not 6 digits."""
    if code is None:
        return None
    cleaned = re.sub(r"\s+", "", str(code))
    if not _CODE_PATTERN.match(cleaned):
        return None
    return cleaned


class OtpVerifier:
    """Checks submitted codes against a base32 shared secret."""

    def __init__(self, window: int = DEFAULT_WINDOW):
        self.window = window

    def verify(
        self,
        secret: str,
        submitted_code: Optional[str],
        window: Optional[int] = None,
        for_time: Optional[Union[int, float, datetime]] = None,
    ) -> bool:
        """
        Verify a one-time code.

        Args:
            secret: base32 shared secret
            submitted_code: code typed by the user
            window: steps of drift tolerated each side (default: self.window)
            for_time: verification time (default: now)

        Returns:
            True if the code matches any step in the window. A malformed code
            or secret is a non-match, not an error.
        """
        code = normalize_code(submitted_code)
        if code is None or not secret:
            return False

        if window is None:
            window = self.window
        if for_time is None:
            for_time = datetime.now()
        elif isinstance(for_time, float):
            for_time = int(for_time)

        totp = pyotp.TOTP(secret, digits=CODE_DIGITS, interval=STEP_SECONDS)
        try:
            return totp.verify(code, for_time=for_time, valid_window=window)
        except ValueError:
            # binascii.Error (bad base32) is a ValueError subclass
            logger.warning("OTP verification skipped: stored secret is not valid base32")
            return False
