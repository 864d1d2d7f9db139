"""
Twilio Messages API — async OTP delivery via httpx.

The portal generates and verifies its own codes (hashed on the patient row);
Twilio only carries the text.  send_otp() returns a boolean and never raises,
so a Twilio outage is handled by the caller.
"""
from __future__ import annotations

import logging

import httpx

from portal.config import Settings

logger = logging.getLogger(__name__)
_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"


class TwilioNotifier:
    def __init__(self, settings: Settings) -> None:
        self._account_sid = settings.twilio_account_sid
        self._auth_token = settings.twilio_auth_token
        self._from_number = settings.twilio_from_number

    @property
    def is_configured(self) -> bool:
        """True when all three Twilio credentials are present."""
        return bool(self._account_sid and self._auth_token and self._from_number)

    async def send_otp(self, phone: str, code: str) -> bool:
        """
        Text a login code to ``phone``.

        Returns True on success, False on any failure (never raises).
        """
        if not self.is_configured:
            return False

        body = f"Your verification code is: {code}. It expires in 10 minutes."
        try:
            async with httpx.AsyncClient(timeout=15.0) as client:
                r = await client.post(
                    _MESSAGES_URL.format(sid=self._account_sid),
                    data={"To": phone, "From": self._from_number, "Body": body},
                    auth=(self._account_sid, self._auth_token),
                )
            if r.status_code >= 400:
                logger.error("Twilio send_otp error %s: %s", r.status_code, r.text[:300])
                return False
            return True
        except httpx.HTTPError as exc:
            logger.error("Twilio send_otp failed: %s", exc)
            return False
