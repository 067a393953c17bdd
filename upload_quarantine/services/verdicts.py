import logging

import requests

from upload_quarantine.errors import ServiceUnavailable
from upload_quarantine.models import Verdict, VerdictKind
from upload_quarantine.services.wildfire import (
    USER_AGENT,
    WildfireEndpoint,
    error_message,
    parse_document,
)

logger = logging.getLogger("quarantine.verdicts")

VERDICT_PATH = "get/verdict"

_VERDICT_CODES: dict[str, Verdict] = {
    "0": Verdict(VerdictKind.BENIGN, "0"),
    "1": Verdict(VerdictKind.MALWARE, "1"),
    "2": Verdict(VerdictKind.GRAYWARE, "2"),
    "4": Verdict(VerdictKind.PHISHING, "4"),
    "5": Verdict(VerdictKind.COMMAND_AND_CONTROL, "5"),
    "-100": Verdict(
        VerdictKind.PENDING,
        "-100",
        "the sample exists, but there is currently no verdict",
    ),
    "-101": Verdict(VerdictKind.UNKNOWN, "-101", "error -101"),
    "-102": Verdict(VerdictKind.UNKNOWN, "-102", "cannot find sample record in the database"),
    "-103": Verdict(VerdictKind.UNKNOWN, "-103", "invalid hash value"),
}


def normalize_verdict_code(raw: str | None) -> Verdict:
    code = (raw or "").strip()
    known = _VERDICT_CODES.get(code)
    if known is not None:
        return known
    return Verdict(VerdictKind.UNKNOWN, code, "no verdict")


def parse_verdict_response(content: bytes) -> Verdict:
    root = parse_document(content)
    if root is None:
        return normalize_verdict_code(None)

    raw = root.findtext(".//get-verdict-info/verdict")
    if raw is None or not raw.strip():
        message = error_message(root)
        if message:
            return Verdict(VerdictKind.ANALYSIS_ERROR, "", message)
    return normalize_verdict_code(raw)


class VerdictClient:
    """Looks up a file hash in the WildFire verdict database."""

    def __init__(self, endpoint: WildfireEndpoint, session: requests.Session | None = None):
        self.endpoint = endpoint
        self._session = session or requests.Session()

    def query_by_hash(self, file_hash: str) -> Verdict:
        try:
            response = self._session.post(
                self.endpoint.url(VERDICT_PATH),
                data={"apikey": self.endpoint.api_key, "hash": file_hash},
                headers={"User-Agent": USER_AGENT},
                timeout=self.endpoint.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("WildFire verdict query failed for %s: %s", file_hash, exc)
            raise ServiceUnavailable(f"verdict query failed: {exc}") from exc

        if not response.ok:
            message = error_message(parse_document(response.content)) or response.reason
            logger.warning(
                "WildFire verdict query for %s returned HTTP %s: %s",
                file_hash, response.status_code, message,
            )
            raise ServiceUnavailable(f"verdict query returned HTTP {response.status_code}: {message}")

        verdict = parse_verdict_response(response.content)
        logger.debug("WildFire verdict for %s: code=%s kind=%s", file_hash, verdict.code, verdict.kind.value)
        return verdict
