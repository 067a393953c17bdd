import logging
from pathlib import PurePosixPath

import requests

from upload_quarantine.errors import SubmissionError
from upload_quarantine.services.wildfire import (
    USER_AGENT,
    WildfireEndpoint,
    error_message,
    parse_document,
)

logger = logging.getLogger("quarantine.submissions")

SUBMIT_PATH = "submit/file"


class SubmissionClient:
    """
    Uploads file content to WildFire for analysis.

    No submission id comes back; later verdict queries correlate on the
    content hash, so submitting an already pending sample again is harmless.
    """

    def __init__(self, endpoint: WildfireEndpoint, session: requests.Session | None = None):
        self.endpoint = endpoint
        self._session = session or requests.Session()

    def submit(self, object_name: str, content: bytes) -> None:
        filename = PurePosixPath(object_name).name or object_name
        try:
            response = self._session.post(
                self.endpoint.url(SUBMIT_PATH),
                data={"apikey": self.endpoint.api_key},
                files={"file": (filename, content)},
                headers={"User-Agent": USER_AGENT},
                timeout=self.endpoint.timeout,
            )
        except requests.RequestException as exc:
            logger.error("WildFire submission of %s failed: %s", object_name, exc)
            raise SubmissionError(f"submission transport failed: {exc}") from exc

        message = error_message(parse_document(response.content))
        if message:
            logger.error("WildFire rejected %s: %s", object_name, message)
            raise SubmissionError(message)
        if not response.ok:
            logger.error("WildFire submission of %s returned HTTP %s", object_name, response.status_code)
            raise SubmissionError(f"submission returned HTTP {response.status_code}")

        logger.info("Submitted %s (%d bytes) to WildFire for analysis", object_name, len(content))
