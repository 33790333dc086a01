"""
Article text extraction for story URLs.

Fetches a page with a browser-like User-Agent and pulls readable text out of
it with BeautifulSoup, preferring <article>, then <main>, then <body>.
"""

import logging
import os
import re
from typing import Optional

import requests
from bs4 import BeautifulSoup

from .errors import ExtractionError

logger = logging.getLogger(__name__)

URL_PATTERN = re.compile(r"^https?://\S+$", re.IGNORECASE)

DEFAULT_USER_AGENT = "Mozilla/5.0"
DEFAULT_EXTRACT_TIMEOUT = 15

# Elements that never carry article prose
NON_CONTENT_TAGS = [
    "script", "style", "noscript", "template", "svg", "iframe",
    "nav", "footer", "aside", "form", "button",
]

_BLANK_LINES = re.compile(r"\n\s*\n+")
_INLINE_SPACE = re.compile(r"[ \t\r\f\v]+")


def is_url(text: Optional[str]) -> bool:
    """True when the trimmed text is a single http(s) URL."""
    return bool(URL_PATTERN.match(str(text or "").strip()))


def html_to_text(html: str) -> str:
    """
    Extract readable text from an HTML document.

    Returns:
        Paragraph-separated text, or "" when the page has no readable content
    """
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(NON_CONTENT_TAGS):
        tag.decompose()

    container = soup.find("article") or soup.find("main") or soup.body or soup
    text = container.get_text(separator="\n")

    lines = [_INLINE_SPACE.sub(" ", line).strip() for line in text.splitlines()]
    text = "\n".join(line for line in lines if line)
    return _BLANK_LINES.sub("\n\n", text).strip()


class ArticleExtractor:
    """Resolves a story URL to plain article text."""

    def __init__(
        self,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        """
        Initialize extractor.

        Args:
            timeout: Fetch timeout in seconds (default: EXTRACT_TIMEOUT env var or 15)
            session: Requests session to reuse (a new one is created if None)
            user_agent: User-Agent header sent with every request
        """
        self.timeout = timeout if timeout is not None else float(
            os.getenv("EXTRACT_TIMEOUT", str(DEFAULT_EXTRACT_TIMEOUT))
        )
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": user_agent})

    def extract_text(self, url: str) -> str:
        """
        Fetch a URL and return its readable text.

        Args:
            url: http(s) URL of the story

        Returns:
            Article text ("" if the page has no readable text)

        Raises:
            ExtractionError: On invalid URL, network error, non-2xx status or unparseable content
        """
        url = (url or "").strip()
        if not is_url(url):
            raise ExtractionError(url, "Invalid URL")

        logger.info(f"Extracting article text from {url}")
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.Timeout as e:
            logger.warning(f"Timed out fetching {url}: {e}")
            raise ExtractionError(url, f"Timed out after {self.timeout:g}s") from e
        except requests.exceptions.RequestException as e:
            logger.warning(f"Failed to fetch {url}: {e}")
            raise ExtractionError(url, str(e)) from e

        try:
            text = html_to_text(response.text)
        except Exception as e:
            logger.error(f"Failed to parse content from {url}: {e}", exc_info=True)
            raise ExtractionError(url, f"Could not parse page content: {e}") from e

        logger.debug(f"Extracted {len(text)} characters from {url}")
        return text
