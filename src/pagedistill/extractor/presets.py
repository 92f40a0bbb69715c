"""
Content-type presets for the readability summarizer.

A preset is picked from the document URL and tunes how much text the
summarizer must find before it trusts its first pass, plus which class
names should count in a candidate's favour.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional, Pattern, Tuple

BASE_POSITIVE_KEYWORDS: Tuple[str, ...] = (
    "article",
    "body",
    "content",
    "entry",
    "hentry",
    "main",
    "page",
    "post",
    "text",
    "blog",
    "story",
)

BASE_NEGATIVE_KEYWORDS: Tuple[str, ...] = (
    "combx",
    "comment",
    "com-",
    "contact",
    "foot",
    "footer",
    "footnote",
    "masthead",
    "media",
    "meta",
    "outbrain",
    "promo",
    "related",
    "scroll",
    "shoutbox",
    "sidebar",
    "sponsor",
    "shopping",
    "tags",
    "tool",
    "widget",
)

# Code and math blocks are kept whatever the preset.
BASE_PRESERVED_CLASSES: Tuple[str, ...] = (
    "highlight",
    "code",
    "pre",
    "math",
    "equation",
    "formula",
    "syntax",
    "language-",
    "hljs",
    "codehilite",
    "sourceCode",
    "code-block",
)

DEFAULT_CHAR_THRESHOLD = 500
LENIENT_FLOOR = 200


@dataclass(frozen=True)
class ContentTypePreset:
    name: str
    description: str
    char_threshold: int = DEFAULT_CHAR_THRESHOLD
    preserved_classes: Tuple[str, ...] = ()
    url_patterns: Tuple[Pattern[str], ...] = field(default=())

    @property
    def positive_keywords(self) -> Tuple[str, ...]:
        return BASE_POSITIVE_KEYWORDS + BASE_PRESERVED_CLASSES + self.preserved_classes

    @property
    def negative_keywords(self) -> Tuple[str, ...]:
        return tuple(word for word in BASE_NEGATIVE_KEYWORDS if word not in self.preserved_classes)

    def matches(self, url: str) -> bool:
        return any(pattern.search(url) for pattern in self.url_patterns)

    def lenient(self) -> "ContentTypePreset":
        """Same preset with the relaxed threshold used for a second attempt."""
        return ContentTypePreset(
            name=self.name,
            description=self.description,
            char_threshold=max(LENIENT_FLOOR, self.char_threshold // 2),
            preserved_classes=self.preserved_classes,
            url_patterns=self.url_patterns,
        )


def _patterns(*patterns: str) -> Tuple[Pattern[str], ...]:
    return tuple(re.compile(pattern) for pattern in patterns)


DEFAULT_PRESET = ContentTypePreset(name="default", description="General web content")

PRESETS: Tuple[ContentTypePreset, ...] = (
    ContentTypePreset(
        name="technical-documentation",
        description="Technical docs, API references and code-heavy content",
        char_threshold=300,
        preserved_classes=("api-", "method-", "parameter-", "example-", "snippet-", "terminal", "console", "output"),
        url_patterns=_patterns(
            r"docs?\.", r"api\.", r"developer\.", r"github\.com", r"stackoverflow\.com", r"\.readthedocs\."
        ),
    ),
    ContentTypePreset(
        name="blog-article",
        description="Blog posts and articles",
        char_threshold=800,
        preserved_classes=("quote", "blockquote", "pullquote", "caption", "author", "byline"),
        url_patterns=_patterns(r"blog", r"article", r"post", r"medium\.com", r"substack\.com"),
    ),
    ContentTypePreset(
        name="news-article",
        description="News articles and journalism",
        char_threshold=600,
        preserved_classes=("dateline", "byline", "lead", "summary", "excerpt"),
        url_patterns=_patterns(
            r"news", r"\.com/\d{4}/\d{2}/\d{2}", r"reuters\.com", r"bbc\.com", r"cnn\.com", r"nytimes\.com"
        ),
    ),
    ContentTypePreset(
        name="academic-paper",
        description="Academic papers and research content",
        char_threshold=400,
        preserved_classes=(
            "abstract",
            "citation",
            "reference",
            "footnote",
            "figure",
            "table",
            "theorem",
            "proof",
            "definition",
        ),
        url_patterns=_patterns(r"arxiv\.org", r"\.edu", r"researchgate\.net", r"scholar\.google", r"pubmed"),
    ),
    ContentTypePreset(
        name="forum-discussion",
        description="Forum posts and discussions",
        char_threshold=200,
        preserved_classes=("post", "comment", "reply", "thread", "user", "username", "timestamp"),
        url_patterns=_patterns(r"reddit\.com", r"discourse\.", r"forum", r"community", r"discuss"),
    ),
    ContentTypePreset(
        name="wiki-content",
        description="Wiki pages and reference content",
        char_threshold=500,
        preserved_classes=("infobox", "navbox", "sidebar", "toc", "references", "external", "citation"),
        url_patterns=_patterns(r"wikipedia\.org", r"wiki", r"fandom\.com", r"wikia\.com"),
    ),
)


def preset_for_url(url: str) -> ContentTypePreset:
    """First preset whose URL patterns match, else the default."""
    if url:
        for preset in PRESETS:
            if preset.matches(url):
                return preset
    return DEFAULT_PRESET


def get_preset(name: str) -> Optional[ContentTypePreset]:
    if name == DEFAULT_PRESET.name:
        return DEFAULT_PRESET
    return next((preset for preset in PRESETS if preset.name == name), None)
