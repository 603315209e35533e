"""
Remote Transliteration Client

Queries the Google CGI API for Japanese Input to convert a hiragana
reading into kanji candidates.

Request:
    GET <endpoint>?langpair=ja-Hira|ja&text=<query text>

Response:
    [["ねこ", ["猫", "ネコ", "根子"]], ...]

Every failure is logged and reported as "no conversion" (None).
"""

import logging
import re
from typing import Any, Optional

import requests

from ..config.settings import settings

logger = logging.getLogger(__name__)

LANGPAIR = "ja-Hira|ja"
CANDIDATE_SEPARATOR = "/"

# A single romanized okurigana letter after a non-romaji stem, e.g. "たべr"
_OKURIGANA_RE = re.compile(r"^(.*[^a-z])([a-z])$", re.DOTALL)


def build_query_text(reading: str) -> str:
    """
    Shape a reading for the transliteration endpoint.

    A trailing okurigana hint letter is split off with a comma so the
    provider treats the stem as its own segment:

        >>> build_query_text("たべr")
        'たべ,r'
        >>> build_query_text("たべる")
        'たべる'
    """
    match = _OKURIGANA_RE.match(reading)
    if match is None:
        return reading
    stem, letter = match.groups()
    return f"{stem},{letter}"


def extract_conversion(payload: Any) -> Optional[str]:
    """
    Pull the joined candidate list out of a decoded response.

    Returns:
        Candidates of the first segment joined with '/', or None when the
        payload does not have the expected shape or lists no candidates
    """
    try:
        candidates = payload[0][1]
    except (IndexError, KeyError, TypeError):
        return None

    if not isinstance(candidates, list) or not candidates:
        return None
    if not all(isinstance(c, str) for c in candidates):
        return None
    return CANDIDATE_SEPARATOR.join(candidates)


class TransliterateClient:
    """
    HTTP client for the transliteration endpoint.

    Usage:
        with TransliterateClient() as client:
            client.lookup("ねこ")  # "猫/ネコ/根子"
    """

    def __init__(
            self,
            url: str = None,
            session: Optional[requests.Session] = None,
            timeout: float = None,
    ):
        """
        Initialize the client.

        Args:
            url: Endpoint URL (default from settings)
            session: Optional requests session for connection pooling
            timeout: Request timeout in seconds (default from settings)
        """
        self.url = url if url is not None else settings.TRANSLITERATE_URL
        self.timeout = timeout if timeout is not None else settings.LOOKUP_TIMEOUT
        self._session = session or requests.Session()
        self._owns_session = session is None

    def lookup(self, reading: str) -> Optional[str]:
        """
        Convert a reading through the remote endpoint.

        Args:
            reading: The hiragana reading as received from the client

        Returns:
            Candidates joined with '/', or None on any failure
        """
        params = {"langpair": LANGPAIR, "text": build_query_text(reading)}

        try:
            response = self._session.get(self.url, params=params, timeout=self.timeout)
        except requests.Timeout:
            logger.warning(f"Transliteration request timed out for {reading!r}")
            return None
        except requests.RequestException as exc:
            logger.warning(f"Transliteration request failed for {reading!r}: {exc}")
            return None

        if response.status_code != 200:
            logger.warning(
                f"Transliteration endpoint returned HTTP {response.status_code} for {reading!r}"
            )
            return None

        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning(f"Malformed transliteration payload for {reading!r}: {exc}")
            return None

        conversion = extract_conversion(payload)
        if conversion is None:
            logger.warning(f"No candidates in transliteration payload for {reading!r}")
        return conversion

    def close(self) -> None:
        """Release the session if this client created it."""
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> "TransliterateClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()
