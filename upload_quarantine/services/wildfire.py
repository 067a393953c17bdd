from dataclasses import dataclass
import logging
from xml.etree import ElementTree

from upload_quarantine.config import Settings
from upload_quarantine.secrets import resolve_secret

logger = logging.getLogger("quarantine.wildfire")

USER_AGENT = "UploadQuarantine/1.0"


@dataclass(frozen=True)
class WildfireEndpoint:
    portal: str
    api_key: str
    timeout: float = 30.0

    def url(self, path: str) -> str:
        return f"https://{self.portal}/publicapi/{path.lstrip('/')}"


def build_endpoint(settings: Settings) -> WildfireEndpoint:
    """Resolve portal and API key once; raises SecretUnavailable before any network call."""
    portal = resolve_secret(settings, settings.portal_secret)
    api_key = resolve_secret(settings, settings.api_key_secret)
    # Accept both "wildfire.paloaltonetworks.com" and a full URL in the secret.
    portal = portal.removeprefix("https://").removeprefix("http://").rstrip("/")
    return WildfireEndpoint(portal=portal, api_key=api_key, timeout=settings.wildfire_timeout_seconds)


def parse_document(content: bytes) -> ElementTree.Element | None:
    if not content:
        return None
    try:
        return ElementTree.fromstring(content)
    except ElementTree.ParseError as exc:
        logger.warning("Unparseable WildFire response: %s", exc)
        return None


def error_message(root: ElementTree.Element | None) -> str:
    if root is None:
        return ""
    if root.tag == "error-message":
        return (root.text or "").strip()
    return (root.findtext(".//error-message") or "").strip()
