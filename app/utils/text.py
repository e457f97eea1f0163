import re
import unicodedata

import bleach
from bleach.css_sanitizer import CSSSanitizer


CSS_SANITIZER = CSSSanitizer(allowed_css_properties=[
    'color', 'background-color', 'font-size', 'font-weight', 'font-style',
    'text-align', 'text-decoration', 'line-height',
    'margin', 'padding', 'width', 'height', 'max-width',
    'border', 'border-radius', 'display', 'vertical-align', 'list-style-type',
])

RICH_TEXT_TAGS = [
    'p', 'br', 'strong', 'b', 'em', 'i', 'u', 'ul', 'ol', 'li',
    'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'blockquote', 'span',
    'div', 'a', 'img', 'table', 'tr', 'td', 'th', 'thead', 'tbody',
    'sub', 'sup', 'small', 'mark', 'del', 'ins',
]

RICH_TEXT_ATTRIBUTES = {
    'a': ['href', 'title', 'target'],
    'img': ['src', 'alt', 'title', 'width', 'height'],
    'td': ['colspan', 'rowspan'],
    'th': ['colspan', 'rowspan'],
    '*': ['class', 'style'],
}


def sanitize_rich_text(value: str) -> str:
    """Clean HTML coming from the admin rich text editor."""
    return bleach.clean(
        value,
        tags=RICH_TEXT_TAGS,
        attributes=RICH_TEXT_ATTRIBUTES,
        protocols=['http', 'https', 'mailto'],
        strip=True,
        strip_comments=True,
        css_sanitizer=CSS_SANITIZER,
    )


def strip_html(value: str) -> str:
    """Plain text only: every tag is removed."""
    return bleach.clean(value, tags=[], attributes={}, strip=True).strip()


def slugify(value: str) -> str:
    """
    Lowercase, hyphen-separated slug: "Pure Cow Ghee (500g)" -> "pure-cow-ghee-500g".
    """
    value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    value = re.sub(r"[^a-z0-9]+", "-", value.lower())
    return value.strip("-")
