"""Capability token minting and share-link formatting."""
import hashlib
import secrets
from dataclasses import dataclass

TOKEN_BYTES = 32
DEFAULT_SHARE_BASE_URL = "https://acceptconnect.app"
_SHORT_PREFIX_LEN = 12
_SHORT_SUFFIX_LEN = 4
_MASK_VISIBLE = 4
_DEFAULT_SHARE_TEXT = "I would like to share my consent with you"


@dataclass(frozen=True)
class ShortLink:
    """Display form of a share link.

    Attributes:
        short_id: ``<first 12 chars>-<last 4 chars>`` of the token.
        full_url: The redeemable link.
        display_url: A shorter, non-redeemable form for display.
    """

    short_id: str
    full_url: str
    display_url: str


def generate_token() -> str:
    """Return a fresh, unguessable 256-bit hex token."""
    return secrets.token_hex(TOKEN_BYTES)


def hash_token(token: str) -> str:
    """Hash a bearer credential for storage."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def mask_token(token: str) -> str:
    """Render a token safe for logs: first and last four characters only."""
    if len(token) < 2 * _MASK_VISIBLE:
        return "*" * len(token)
    return f"{token[:_MASK_VISIBLE]}...{token[-_MASK_VISIBLE:]}"


def share_url(token: str, base_url: str = DEFAULT_SHARE_BASE_URL) -> str:
    """Build the redeemable deep link for a message token."""
    return f"{base_url.rstrip('/')}/message/{token}"


def shorten_link(token: str, base_url: str = DEFAULT_SHARE_BASE_URL) -> ShortLink:
    base = base_url.rstrip("/")
    short_id = f"{token[:_SHORT_PREFIX_LEN]}-{token[-_SHORT_SUFFIX_LEN:]}"
    return ShortLink(
        short_id=short_id,
        full_url=share_url(token, base),
        display_url=f"{base}/m/{short_id}",
    )


def obfuscate_url(url: str) -> str:
    """Mask the token in a share URL, keeping its first and last 4 characters.

    URLs without exactly one ``/message/`` segment, or with a token shorter
    than 8 characters, are returned unchanged.
    """
    parts = url.split("/message/")
    if len(parts) != 2:
        return url
    prefix, token = parts
    if len(token) < 2 * _MASK_VISIBLE:
        return url
    masked = (
        token[:_MASK_VISIBLE]
        + "*" * (len(token) - 2 * _MASK_VISIBLE)
        + token[-_MASK_VISIBLE:]
    )
    return f"{prefix}/message/{masked}"


def build_share_messages(
    url: str,
    sender_name: str = "A user",
    message: str | None = None,
    obfuscate: bool = True,
) -> dict[str, str]:
    """Render ready-to-send share texts for each supported channel.

    The Telegram text embeds the full URL behind link markup; every other
    channel shows the (optionally obfuscated) display URL.
    """
    display = obfuscate_url(url) if obfuscate else url
    text = message or _DEFAULT_SHARE_TEXT
    return {
        "whatsapp": f"{sender_name} shared a consent request with you:\n\n{text}\n\n{display}",
        "email": f"Subject: Consent Request from {sender_name}\n\n{text}\n\nLink: {display}",
        "telegram": f"*Consent Request* from {sender_name}\n{text}\n[Respond here]({url})",
        "sms": f"{sender_name} shared a consent request. Respond here: {display}",
        "generic": f"{sender_name} shared: {text}\n{display}",
    }
