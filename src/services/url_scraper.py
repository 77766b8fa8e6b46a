"""URL scraping service for fetching and extracting metadata from web pages."""
import asyncio
import ipaddress
import logging
import math
import re
import socket
from dataclasses import dataclass
from urllib.parse import urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

from schemas.analysis import ContentMetadata, ExtractedContent

logger = logging.getLogger(__name__)

USER_AGENT = 'Mozilla/5.0 (compatible; Bookmarks/1.0)'
DEFAULT_TIMEOUT = 10.0
WORDS_PER_MINUTE = 200

# Tried in order; the first match is taken as the page's main content
CONTENT_SELECTORS = (
    'main',
    'article',
    'div[class*="content"]',
    'div[id*="content"]',
    'div[class*="post"]',
    'div[class*="entry"]',
)

CJK_PATTERN = re.compile(r'[\u4e00-\u9fa5]')
LATIN_WORD_PATTERN = re.compile(r'[a-zA-Z]+')


class SSRFBlockedError(Exception):
    """Raised when a URL targets a private/internal network address."""

    pass


def is_private_ip(ip_str: str) -> bool:
    """
    Check if an IP address is private, loopback, or otherwise internal.

    Args:
        ip_str: IP address string (IPv4 or IPv6).

    Returns:
        True if the IP is private/internal, False if public.
    """
    try:
        ip = ipaddress.ip_address(ip_str)
        return (
            ip.is_private
            or ip.is_loopback
            or ip.is_link_local
            or ip.is_multicast
            or ip.is_reserved
            or ip.is_unspecified
        )
    except ValueError:
        # Unparseable addresses are treated as internal
        return True


async def validate_url_not_private(url: str) -> None:
    """
    Validate that a URL does not target a private/internal network.

    Resolves the hostname and checks every address it maps to, so a public
    name that points at an internal IP is rejected too.

    Raises:
        SSRFBlockedError: If the URL targets a private network.
        ValueError: If the URL is malformed or the host cannot be resolved.
    """
    parsed = urlparse(url)
    hostname = parsed.hostname

    if not hostname:
        raise ValueError(f"Invalid URL (no hostname): {url}")
    if parsed.scheme not in ('http', 'https'):
        raise ValueError(f"Unsupported URL scheme: {parsed.scheme}")

    if hostname.lower() in ('localhost', 'localhost.localdomain'):
        raise SSRFBlockedError(f"Blocked request to localhost: {url}")

    try:
        addrinfo = await asyncio.get_running_loop().getaddrinfo(
            hostname, None, family=socket.AF_UNSPEC, type=socket.SOCK_STREAM,
        )
    except socket.gaierror as e:
        raise ValueError(f"Could not resolve hostname: {hostname}") from e

    for _, _, _, _, sockaddr in addrinfo:
        ip_str = sockaddr[0]
        if is_private_ip(ip_str):
            raise SSRFBlockedError(
                f"Blocked request to private/internal address: {url} resolves to {ip_str}",
            )


@dataclass
class FetchResult:
    """Result of fetching a URL (raw HTML before extraction)."""

    html: str | None
    final_url: str
    status_code: int | None
    content_type: str | None
    error: str | None


@dataclass
class ExtractedMetadata:
    """Title, description and favicon extracted from a page's head."""

    title: str | None
    description: str | None
    favicon: str | None


async def fetch_url(url: str, timeout: float = DEFAULT_TIMEOUT) -> FetchResult:  # noqa: ASYNC109
    """
    Fetch HTML from a URL.

    Best-effort fetch that returns error info on failure rather than raising.
    Follows redirects and captures the final URL. Both the requested URL and
    the final URL after redirects must not target an internal network.

    Args:
        url:
            The URL to fetch.
        timeout:
            Request timeout in seconds.

    Returns:
        FetchResult containing the HTML or error info.
    """
    try:
        await validate_url_not_private(url)
    except (SSRFBlockedError, ValueError) as e:
        return FetchResult(
            html=None, final_url=url, status_code=None, content_type=None, error=str(e),
        )

    try:
        async with httpx.AsyncClient(
            follow_redirects=True,
            timeout=timeout,
            headers={'User-Agent': USER_AGENT},
            http2=True,
        ) as client:
            response = await client.get(url)

            final_url = str(response.url)
            try:
                await validate_url_not_private(final_url)
            except (SSRFBlockedError, ValueError) as e:
                return FetchResult(
                    html=None,
                    final_url=final_url,
                    status_code=response.status_code,
                    content_type=None,
                    error=f"Redirect blocked: {e}",
                )

            content_type = response.headers.get('content-type', '')
            if not response.is_success:
                return FetchResult(
                    html=None,
                    final_url=final_url,
                    status_code=response.status_code,
                    content_type=content_type,
                    error=f"HTTP {response.status_code}",
                )
            if content_type and 'html' not in content_type.lower():
                return FetchResult(
                    html=None,
                    final_url=final_url,
                    status_code=response.status_code,
                    content_type=content_type,
                    error=f"Unsupported content type: {content_type}",
                )
            return FetchResult(
                html=response.text,
                final_url=final_url,
                status_code=response.status_code,
                content_type=content_type,
                error=None,
            )
    except httpx.TimeoutException:
        return FetchResult(
            html=None, final_url=url, status_code=None, content_type=None,
            error="Request timed out",
        )
    except httpx.RequestError as e:
        return FetchResult(
            html=None, final_url=url, status_code=None, content_type=None,
            error=f"Request failed: {e}",
        )


def _meta_content(soup: BeautifulSoup, **attrs: str) -> str | None:
    tag = soup.find('meta', attrs=attrs)
    if tag and tag.get('content'):
        return tag['content'].strip() or None
    return None


def default_favicon(page_url: str) -> str | None:
    """`{origin}/favicon.ico` for the page, or None if the URL has no host."""
    parsed = urlparse(page_url)
    if not parsed.scheme or not parsed.netloc:
        return None
    return f"{parsed.scheme}://{parsed.netloc}/favicon.ico"


def _find_favicon(soup: BeautifulSoup, page_url: str) -> str | None:
    for link in soup.find_all('link', href=True):
        rel = link.get('rel') or []
        if isinstance(rel, str):
            rel = rel.split()
        rel_value = ' '.join(r.lower() for r in rel)
        if rel_value in ('icon', 'shortcut icon'):
            href = link['href'].strip()
            if href:
                return urljoin(page_url, href)
    return default_favicon(page_url)


def extract_html_metadata(html: str, page_url: str) -> ExtractedMetadata:
    """
    Extract title, description and favicon from HTML.

    Pure function with no I/O. Uses BeautifulSoup for parsing.

    Title extraction priority:
    1. <title> tag
    2. <meta property="og:title">
    3. <meta name="twitter:title">

    Description extraction priority:
    1. <meta name="description">
    2. <meta property="og:description">
    3. <meta name="twitter:description">

    Favicon: the first <link rel="icon"> or <link rel="shortcut icon">,
    resolved against `page_url`; otherwise `{origin}/favicon.ico`.

    Args:
        html:
            Raw HTML string to parse.
        page_url:
            URL the HTML was fetched from, used to resolve relative links.

    Returns:
        ExtractedMetadata (title/description may be None if not found).
    """
    soup = BeautifulSoup(html, 'lxml')

    title = None
    title_tag = soup.find('title')
    if title_tag and title_tag.string:
        title = title_tag.string.strip() or None
    if not title:
        title = _meta_content(soup, property='og:title')
    if not title:
        title = _meta_content(soup, name='twitter:title')

    description = _meta_content(soup, name='description')
    if not description:
        description = _meta_content(soup, property='og:description')
    if not description:
        description = _meta_content(soup, name='twitter:description')

    return ExtractedMetadata(
        title=title,
        description=description,
        favicon=_find_favicon(soup, page_url),
    )


async def fetch_metadata(url: str, timeout: float = DEFAULT_TIMEOUT) -> ExtractedMetadata | None:  # noqa: ASYNC109
    """
    Fetch a page and extract its metadata.

    Returns None when the page cannot be fetched; callers fall back to their
    own defaults rather than to anything invented here.
    """
    result = await fetch_url(url, timeout)
    if result.html is None:
        logger.warning("Failed to fetch metadata for %s: %s", url, result.error)
        return None
    return extract_html_metadata(result.html, result.final_url)


def count_words(text: str) -> int:
    """
    Count words in extracted text.

    Text containing CJK characters is counted per character (whitespace
    excluded), since those scripts do not separate words with spaces.
    """
    if not text:
        return 0
    if CJK_PATTERN.search(text):
        return len(re.sub(r'\s', '', text))
    return len(text.split())


def detect_language(text: str) -> str:
    """Coarse language guess: 'zh', 'en' or 'unknown'."""
    if not text:
        return 'unknown'
    total_chars = len(re.sub(r'\s', '', text))
    if total_chars and len(CJK_PATTERN.findall(text)) / total_chars > 0.3:
        return 'zh'
    if len(LATIN_WORD_PATTERN.findall(text)) > 10:
        return 'en'
    return 'unknown'


def extract_main_content(html: str, page_url: str) -> ExtractedContent:
    """
    Extract the main readable text of a page.

    Pure function with no I/O. Scripts, styles and noscript blocks are
    removed, then the first element matching CONTENT_SELECTORS is used,
    falling back to <body> and finally to the whole document. Whitespace is
    collapsed to single spaces.

    Args:
        html:
            Raw HTML string to parse.
        page_url:
            URL of the page; its hostname is the title fallback.

    Returns:
        ExtractedContent with the text and derived statistics.
    """
    soup = BeautifulSoup(html, 'lxml')
    for element in soup(['script', 'style', 'noscript']):
        element.decompose()

    title_tag = soup.find('title')
    title = title_tag.get_text().strip() if title_tag else ''
    if not title:
        title = urlparse(page_url).hostname or page_url
    description = _meta_content(soup, name='description') or ''

    container = None
    for selector in CONTENT_SELECTORS:
        container = soup.select_one(selector)
        if container is not None:
            break
    if container is None:
        container = soup.body or soup

    text = ' '.join(container.get_text(separator=' ').split())
    word_count = count_words(text)

    return ExtractedContent(
        url=page_url,
        title=title,
        description=description,
        content=text,
        metadata=ContentMetadata(
            word_count=word_count,
            reading_time=math.ceil(word_count / WORDS_PER_MINUTE),
            language=detect_language(text),
        ),
    )
