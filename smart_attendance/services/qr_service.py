"""QR token issuance, validation and payload encoding."""
import base64
import hashlib
import hmac
import io
import json
import secrets
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional
from urllib.parse import parse_qs, urlencode, urlparse

import qrcode
from flask import current_app

from smart_attendance.utils.errors import InvalidOrExpiredToken
from smart_attendance.utils.helpers import utcnow

LEGACY_PAYLOAD_TYPE = 'attendance'
ATTEND_PATH_SEGMENT = 'attend'

@dataclass(frozen=True)
class QrToken:
    """Check-in capability for one session, valid until ``expires_at``."""
    value: str
    session_id: int
    expires_at: datetime

@dataclass(frozen=True)
class ScanPayload:
    """What a student's scanner decoded from a QR code."""
    session_id: int
    token: Optional[str]
    legacy: bool = False

class QrTokenIssuer:
    """Issues HMAC-signed tokens bound to a session id.

    Token value is ``<nonce>.<signature>`` where the signature covers the
    session id and the nonce, so a token minted for one session never
    validates for another and cannot be guessed without the secret.
    """

    def __init__(self, secret: str, token_bytes: int = 24, base_url: str = 'http://localhost:3000'):
        if not secret:
            raise ValueError("QR token secret must be configured")
        self._secret = secret.encode()
        self._token_bytes = token_bytes
        self._base_url = base_url.rstrip('/')

    @classmethod
    def from_config(cls, config=None) -> 'QrTokenIssuer':
        config = config if config is not None else current_app.config
        return cls(
            secret=config.get('QR_TOKEN_SECRET') or config.get('SECRET_KEY'),
            token_bytes=config.get('QR_TOKEN_BYTES') or 24,
            base_url=config.get('QR_BASE_URL') or 'http://localhost:3000'
        )

    # =================== TOKENS ===================

    def issue(self, session_id: int, valid_for: timedelta, now: datetime = None) -> QrToken:
        now = now or utcnow()
        nonce = secrets.token_urlsafe(self._token_bytes)
        value = f"{nonce}.{self._sign(session_id, nonce)}"
        return QrToken(value=value, session_id=session_id, expires_at=now + valid_for)

    def extend(self, token: QrToken, by: timedelta) -> QrToken:
        """Push expiry forward. The value stays the same so printed codes keep working."""
        return replace(token, expires_at=token.expires_at + by)

    def validate(self, token: QrToken, session_id: int, now: datetime = None) -> bool:
        now = now or utcnow()
        if token is None or token.session_id != session_id:
            return False
        if token.expires_at is None or now >= token.expires_at:
            return False
        return self._signature_ok(token.value, session_id)

    def _sign(self, session_id: int, nonce: str) -> str:
        message = f"{session_id}:{nonce}".encode()
        return hmac.new(self._secret, message, hashlib.sha256).hexdigest()[:32]

    def _signature_ok(self, value: str, session_id: int) -> bool:
        if not value or value.count('.') != 1:
            return False
        nonce, signature = value.split('.')
        return hmac.compare_digest(signature.encode(), self._sign(session_id, nonce).encode())

    # =================== PAYLOADS ===================

    def build_payload(self, session_id: int, token_value: str) -> str:
        """Deep link encoded in the QR code."""
        query = urlencode({'token': token_value})
        return f"{self._base_url}/{ATTEND_PATH_SEGMENT}/{session_id}?{query}"

    @staticmethod
    def parse_payload(data: str) -> ScanPayload:
        """Decode a scanned URL or legacy JSON payload."""
        if not data or not isinstance(data, str):
            raise InvalidOrExpiredToken("QR code is empty")

        text = data.strip()
        if text.startswith('{'):
            return QrTokenIssuer._parse_legacy(text)

        parsed = urlparse(text)
        segments = [segment for segment in parsed.path.split('/') if segment]
        try:
            index = segments.index(ATTEND_PATH_SEGMENT)
            session_id = int(segments[index + 1])
        except (ValueError, IndexError):
            raise InvalidOrExpiredToken("QR code is not an attendance code")

        tokens = parse_qs(parsed.query).get('token')
        return ScanPayload(session_id=session_id, token=tokens[0] if tokens else None)

    @staticmethod
    def _parse_legacy(text: str) -> ScanPayload:
        try:
            payload = json.loads(text)
        except json.JSONDecodeError:
            raise InvalidOrExpiredToken("Invalid QR code format")

        if not isinstance(payload, dict) or payload.get('type') != LEGACY_PAYLOAD_TYPE:
            raise InvalidOrExpiredToken("QR code is not an attendance code")
        try:
            session_id = int(payload['session_id'])
        except (KeyError, TypeError, ValueError):
            raise InvalidOrExpiredToken("QR code is missing the session")

        return ScanPayload(session_id=session_id, token=None, legacy=True)

    @staticmethod
    def render_png(payload: str) -> str:
        """Render a payload as a base64 PNG data URI."""
        qr = qrcode.QRCode(
            version=None,  # Auto-determine size
            error_correction=qrcode.constants.ERROR_CORRECT_H,
            box_size=10,
            border=4,
        )
        qr.add_data(payload)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buffered = io.BytesIO()
        img.save(buffered, format="PNG")
        img_str = base64.b64encode(buffered.getvalue()).decode()

        return f"data:image/png;base64,{img_str}"
