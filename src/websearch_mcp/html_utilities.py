import re

from bs4 import BeautifulSoup, NavigableString, Tag

MAX_CONTENT_CHARS = 5000

_NOISE_SELECTOR = "script, style, nav, header, footer, aside, .advertisement, .ads, .sidebar"
_CONTENT_SELECTORS = (
    "main",
    "article",
    ".content",
    ".main-content",
    ".post-content",
    ".entry-content",
    "#content",
    "#main",
    ".container",
)
_BLOCK_TAGS = ["p", "div", "section", "li", "tr", "h1", "h2", "h3", "h4", "h5", "h6", "blockquote", "pre"]


def extract_title(soup: BeautifulSoup) -> str:
    candidates = [
        soup.title.get_text() if soup.title else None,
        _meta_content(soup, property="og:title"),
        _meta_content(soup, name="twitter:title"),
        soup.h1.get_text() if soup.h1 else None,
    ]
    for candidate in candidates:
        if candidate and candidate.strip():
            return candidate.strip()
    return "Untitled Document"


def _meta_content(soup: BeautifulSoup, **attrs: str) -> str | None:
    tag = soup.find("meta", attrs=attrs)
    if isinstance(tag, Tag):
        content = tag.get("content")
        return content if isinstance(content, str) else None
    return None


def extract_main_content(soup: BeautifulSoup) -> str:
    """Readable text of the page's main content area, paragraphs separated by blank lines.

    Mutates ``soup``: navigation, ads and scripts are removed first.
    """
    for tag in soup.select(_NOISE_SELECTOR):
        tag.decompose()

    for selector in _CONTENT_SELECTORS:
        element = soup.select_one(selector)
        if element is not None and len(element.get_text(strip=True)) > 100:
            return _element_text(element)

    body = soup.body or soup
    return _element_text(body)


def _element_text(element: Tag | BeautifulSoup) -> str:
    for br in element.find_all("br"):
        br.replace_with("\n")

    # Paragraph boundaries become blank lines so summaries can score them.
    for tag in element.find_all(_BLOCK_TAGS):
        tag.insert(0, NavigableString("\n\n"))
        tag.append(NavigableString("\n\n"))

    text = element.get_text()
    paragraphs = (" ".join(chunk.split()) for chunk in re.split(r"\n\s*\n", text))
    cleaned = "\n\n".join(p for p in paragraphs if p)
    return cleaned[:MAX_CONTENT_CHARS]
