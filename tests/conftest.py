"""
Shared fixtures for the PageDistill test suite.

HTML documents used across unit and integration tests live here so the
scenarios stay consistent between modules.
"""

from __future__ import annotations

from typing import Callable, List, Optional

import pytest
import structlog

from pagedistill.dom import DocumentTree, Node, SoupDocumentParser
from pagedistill.observability import set_enabled

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config):
    """Keep Prometheus collectors quiet unless a test opts in."""
    set_enabled(False)


@pytest.fixture(autouse=True)
def stdlib_structlog():
    """Route structlog through stdlib logging so pytest captures it instead of stdout."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.KeyValueRenderer(key_order=["event"]),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
    yield


# ============================================================================
# Document text
# ============================================================================

ARTICLE_PARAGRAPHS = [
    "Caching dependencies between continuous integration runs is one of the cheapest ways to make a slow "
    "pipeline fast again. Most build tools already write everything they download into a predictable "
    "directory, so the only work left is telling the runner to keep it.",
    "The first step is measuring where the time actually goes. We added timestamps around each job phase "
    "and found that installing packages took almost six minutes, while the test suite itself finished in "
    "under three minutes on an average commit.",
    "Next we keyed the cache on the hash of the lock file. Whenever the lock file changes the cache is "
    "rebuilt from scratch, and every other run restores the previous directory in a few seconds instead "
    "of resolving and downloading the whole tree again.",
    "Restoring build artefacts is a separate decision. Compiled objects depend on compiler flags and "
    'platform details, so we only cache them on the main branch. The <a href="/docs/cache">cache '
    "documentation</a> describes the exact rules.",
    "After two weeks the median pipeline time dropped from eleven minutes to just over five. The remaining "
    "time is dominated by the tests themselves, which is exactly where we want a continuous integration "
    "system to spend its effort.",
]

STORY_PARAGRAPHS = [
    "The river had been rising for three days before anyone in the village took the warnings seriously. "
    "By the time the council met, the lower fields were already under water and the old stone bridge "
    "was closed to carts and cattle alike.",
    "Volunteers spent the night filling sacks with sand from the quarry road. They worked in shifts of "
    'twenty, passing the sacks hand to hand along the bank, guided by <a href="/map">the flood map</a> '
    "pinned to the door of the church hall.",
    "Nobody slept much. The baker kept his ovens going and sent bread down to the river every hour, and "
    "the schoolteacher organised the children into runners who carried messages between the teams "
    "working at either end of the embankment.",
    "When the water finally crested just after dawn, it stopped a hand's width below the top of the "
    "wall. The fields were lost for the season, but every house in the village stayed dry, and the "
    "bridge reopened within the week.",
]

NAV_BAR = (
    '<nav class="site-nav"><a href="/">Home</a> <a href="/news">News</a> <a href="/sport">Sport</a> '
    '<a href="/weather">Weather</a> <a href="/about">About us</a> <a href="/contact">Contact</a></nav>'
)

FOOTER = "<footer>Copyright 2024 Example Publishing Ltd. All rights reserved. Terms, privacy and cookies.</footer>"


def _paragraphs(paragraphs: List[str]) -> str:
    return "\n".join(f"<p>{text}</p>" for text in paragraphs)


ARTICLE_HTML = f"""<!DOCTYPE html>
<html>
<head><title>Halving CI time with caching</title><script>trackPageView();</script></head>
<body>
{NAV_BAR}
<article>
<h1>Halving CI time with caching</h1>
{_paragraphs(ARTICLE_PARAGRAPHS)}
</article>
{FOOTER}
</body>
</html>"""

DIV_ONLY_HTML = f"""<!DOCTYPE html>
<html>
<head><title>The night of the flood</title></head>
<body>
<div class="topbar"><a href="/">Home</a> <a href="/archive">Archive</a></div>
<div class="post-body">
{_paragraphs(STORY_PARAGRAPHS)}
</div>
{FOOTER}
</body>
</html>"""

EMPTY_HTML = "<html><body></body></html>"

REDDIT_URL = "https://www.reddit.com/r/devops/comments/1abc2de/halving_ci_time_with_caching/"

REDDIT_BODY = " ".join(
    [
        "We run about four hundred pipelines a day and most of them spent their first six minutes",
        "downloading the same packages again and again. Keying the cache on the lock file hash fixed",
        "that almost overnight, and restoring compiled artefacts only on the main branch kept the",
        "feature branches honest. Median pipeline time went from eleven minutes to a little over five,",
        "and the remaining time is spent running tests, which is what we actually care about.",
    ]
)

REDDIT_SHADOW_HTML = f"""<html>
<head><title>Halving CI time with caching : r/devops</title></head>
<body>
<shreddit-app>
<shreddit-post id="t3_1abc2de" author="ci_wrangler">
  <template shadowrootmode="open">
    <div class="post-shell">
      <slot name="title"></slot>
      <shreddit-post-text-body>
        <template shadowrootmode="open"><div class="md"><slot name="text-body"></slot></div></template>
        <div slot="text-body"><p>{REDDIT_BODY}</p></div>
      </shreddit-post-text-body>
      <div class="action-row"><button>Share</button><span>312 upvotes</span><span>Reply</span></div>
    </div>
  </template>
  <h1 slot="title">Halving our CI time with a lock-file keyed cache</h1>
</shreddit-post>
</shreddit-app>
</body>
</html>"""

REDDIT_SHADOW_ONLY_HTML = f"""<html>
<head><title>Halving CI time with caching : r/devops</title></head>
<body>
<shreddit-post id="t3_1abc2de">
  <template shadowrootmode="open">
    <h1>Halving our CI time with a lock-file keyed cache</h1>
    <div class="md"><p>{REDDIT_BODY}</p></div>
  </template>
</shreddit-post>
</body>
</html>"""

REDDIT_LIGHT_HTML = f"""<html>
<head><title>Best way to learn Rust? : r/learnprogramming</title></head>
<body>
<a href="/r/learnprogramming">r/learnprogramming</a>
<shreddit-post>
  <shreddit-title><h1>Best way to learn Rust?</h1></shreddit-title>
  <span slot="authorName"><a href="/user/alice">u/alice</a></span>
</shreddit-post>
<shreddit-post-text-body>
  <div id="t3_9xyz-post-rtjson-content" slot="text-body"><p>{REDDIT_BODY}</p></div>
</shreddit-post-text-body>
<shreddit-comment depth="0">
  <div slot="commentMeta"><a href="/user/bob">bob</a> <time>3 hours ago</time></div>
  <div slot="comment"><p>Start with the official book and do every exercise twice.</p></div>
  <shreddit-comment depth="1">
    <div slot="commentMeta"><a href="/user/alice">alice</a></div>
    <div slot="comment"><p>Thanks, I will give the book another go this weekend.</p></div>
  </shreddit-comment>
</shreddit-comment>
</body>
</html>"""


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def parser() -> SoupDocumentParser:
    return SoupDocumentParser()


@pytest.fixture
def parse(parser: SoupDocumentParser) -> Callable[..., DocumentTree]:
    """Parse markup into a document tree."""

    def _parse(markup: str, url: str = "") -> DocumentTree:
        return parser.parse(markup, url)

    return _parse


@pytest.fixture
def fragment(parser: SoupDocumentParser) -> Callable[[str], Node]:
    """Parse a markup snippet into a ``div`` node."""
    return parser.parse_fragment


@pytest.fixture
def article_html() -> str:
    return ARTICLE_HTML


@pytest.fixture
def empty_html() -> str:
    return EMPTY_HTML


@pytest.fixture
def article_paragraphs() -> List[str]:
    return list(ARTICLE_PARAGRAPHS)


@pytest.fixture
def reddit_body() -> str:
    return REDDIT_BODY


@pytest.fixture
def article_document(parse) -> DocumentTree:
    return parse(ARTICLE_HTML, "https://example.com/engineering/ci-caching")


@pytest.fixture
def div_only_document(parse) -> DocumentTree:
    return parse(DIV_ONLY_HTML, "https://example.com/stories/flood")


@pytest.fixture
def empty_document(parse) -> DocumentTree:
    return parse(EMPTY_HTML, "https://example.com/empty")


@pytest.fixture
def reddit_document(parse) -> DocumentTree:
    return parse(REDDIT_SHADOW_HTML, REDDIT_URL)


@pytest.fixture
def reddit_shadow_only_document(parse) -> DocumentTree:
    return parse(REDDIT_SHADOW_ONLY_HTML, REDDIT_URL)


@pytest.fixture
def reddit_light_document(parse) -> DocumentTree:
    return parse(REDDIT_LIGHT_HTML, "https://www.reddit.com/r/learnprogramming/comments/9xyz/best_way/")


class FakeClock:
    """Manually advanced clock, in seconds."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


class NullSummarizer:
    """Summarizer that never finds an article."""

    name = "null-summarizer"

    def __init__(self) -> None:
        self.calls = 0

    def summarize(self, document) -> Optional[object]:
        self.calls += 1
        return None


@pytest.fixture
def null_summarizer() -> NullSummarizer:
    return NullSummarizer()
