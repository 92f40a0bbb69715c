"""
Reddit extractor for the ``shreddit-*`` web-component markup.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence

from ...dom.selectors import select, select_one
from ...dom.tree import DocumentTree, Node
from .base import AnchoredSiteExtractor

logger = logging.getLogger(__name__)

_SUBREDDIT_HREF_RE = re.compile(r"/r/([^/]+)")
_VOTE_RE = re.compile(r"vote", re.I)
_LEADING_DIGIT_RE = re.compile(r"^\d+")

SUBREDDIT_SELECTORS = ('a[href^="/r/"]', 'faceplate-hovercard a[href^="/r/"]', "shreddit-subreddit-header")
POST_AUTHOR_SELECTORS = (
    'shreddit-post [slot="authorName"] a',
    'shreddit-post a[href^="/user/"]',
    'shreddit-post a[href^="/u/"]',
    'div[slot="credit-bar"] a[href*="/user/"]',
)
POST_SCORE_SELECTORS = (
    "shreddit-post shreddit-score",
    'shreddit-post [slot="score"]',
    'shreddit-post [id*="vote-count"]',
)
POST_TIME_SELECTORS = ("shreddit-post faceplate-timeago", "shreddit-post time")
TITLE_SELECTORS = ("shreddit-title h1", 'shreddit-post [slot="title"]')
BODY_SELECTORS = (
    'shreddit-post-text-body div[id*="-post-rtjson-content"]',
    'shreddit-post-text-body [slot="text-body"]',
    'shreddit-post [slot="text-body"]',
)
COMMENT_AUTHOR_SELECTORS = (
    '[slot="commentMeta"] a[href^="/user/"]',
    '[slot="commentMeta"] a[href^="/u/"]',
    'a[href^="/user/"]',
    'a[href^="/u/"]',
)
COMMENT_SCORE_SELECTORS = (
    'shreddit-comment-action-row [slot="score"]',
    "shreddit-comment-action-row shreddit-score",
    '[slot="actionRow"] shreddit-score',
)
COMMENT_TIME_SELECTORS = (
    '[slot="commentMeta"] faceplate-timeago',
    '[slot="commentMeta"] time',
    "faceplate-timeago",
    "time",
)

MIN_BODY_LENGTH = 20
MIN_COMMENT_LENGTH = 10
MIN_SECTIONS_LENGTH = 100
MIN_FULL_POST_LENGTH = 50


def _patterns(*patterns: str) -> tuple:
    return tuple(re.compile(pattern, re.I | re.M) for pattern in patterns)


class RedditExtractor(AnchoredSiteExtractor):
    """Posts and comment threads from reddit.com pages."""

    name = "reddit"
    url_patterns = (re.compile(r"reddit\.com"), re.compile(r"redd\.it"))
    anchor_tag = "shreddit-post"
    secondary_anchor = "shreddit-comment-tree"
    secondary_heading = "Comments"
    button_texts = frozenset({"share", "save", "hide", "report", "reply", "edit", "delete", "award"})
    noise_patterns = _patterns(
        r"\b\d+\s*upvotes?\b",
        r"\b\d+\s*downvotes?\b",
        r"\b\d+\s*comments?\b",
        r"\bshare\s*$",
        r"\breport\s*$",
        r"\bsave\s*$",
        r"\b\d+\s*points?\b",
        r"\b\d+\s*karma\b",
        r"posted by u/\w+",
        r"\b\d+\s*hours?\s*ago\b",
        r"\b\d+\s*days?\s*ago\b",
        r"\b\d+\s*months?\s*ago\b",
        r"\b\d+\s*years?\s*ago\b",
        r"\bawards?\s*$",
        r"\breply\s*$",
        r"\bpermalink\s*$",
        r"\bedit\s*$",
        r"\bdelete\s*$",
        r"\bgive\s+award\b",
        r"\bhide\s*$",
        r"\bcollapse\s*$",
        r"\bsort by:?\s*\w+",
        r"\bvote\s*$",
    )

    def light_tree_sections(self, document: DocumentTree, anchors: List[Node]) -> List[str]:
        root = document.root
        sections: List[str] = []

        post_author = self._post_author(root)

        title = _first_text(root, TITLE_SELECTORS)
        if title:
            sections.append(f"# {title}")

        byline = self._byline(root, post_author)
        if byline:
            sections.append(f"*{byline}*")

        body = self._post_body(root)
        if body:
            sections.append(body)

        comments = self._comments(root, post_author)
        if comments:
            # "N comments" would be eaten by the counter noise pattern.
            sections.append(f"---\n\n## Comments ({len(comments)})\n")
            sections.extend(comments)

        if sum(len(section) for section in sections) < MIN_SECTIONS_LENGTH and anchors:
            full_post = self.light_text(anchors[0])
            if len(full_post) > MIN_FULL_POST_LENGTH:
                logger.debug("Post sections too short, using the full post text")
                sections.append(full_post)

        return sections

    # --- Post metadata ---

    def _byline(self, root: Node, post_author: Optional[str]) -> str:
        parts: List[str] = []
        subreddit = self._subreddit(root)
        if subreddit:
            parts.append(f"**r/{subreddit}**")
        if post_author:
            parts.append(f"Posted by **u/{post_author}** (OP)")
        post_time = _first_text(root, POST_TIME_SELECTORS)
        if post_time:
            parts.append(post_time)
        score = _score_text(root, POST_SCORE_SELECTORS, allow_suffix=True)
        if score:
            parts.append(f"↑ {score}")
        return " • ".join(parts)

    def _subreddit(self, root: Node) -> Optional[str]:
        for selector in SUBREDDIT_SELECTORS:
            element = select_one(root, selector)
            if element is None:
                continue
            match = _SUBREDDIT_HREF_RE.search(element.get("href", "") or "")
            if match:
                return match.group(1)
            text = element.normalized_text()
            if text.startswith("r/"):
                return text[2:]
        return None

    def _post_author(self, root: Node) -> Optional[str]:
        return _username(root, POST_AUTHOR_SELECTORS)

    def _post_body(self, root: Node) -> Optional[str]:
        for selector in BODY_SELECTORS:
            element = select_one(root, selector)
            if element is None:
                continue
            text = self.light_text(element)
            if len(text) > MIN_BODY_LENGTH:
                return text
        return None

    # --- Comments ---

    def _comments(self, root: Node, post_author: Optional[str]) -> List[str]:
        comments: List[str] = []
        for container in select(root, "shreddit-comment"):
            body_element = _own_comment_slot(container)
            if body_element is None:
                continue
            text = self.light_text(body_element)
            if len(text) < MIN_COMMENT_LENGTH:
                continue

            author = _username(container, COMMENT_AUTHOR_SELECTORS) or "Unknown"
            depth = _int_attr(container, "depth")
            indent = "  " * depth

            author_display = f"**u/{author}** (OP)" if post_author and author == post_author else f"**u/{author}**"
            meta = [author_display]
            comment_time = _first_text(container, COMMENT_TIME_SELECTORS)
            if comment_time:
                meta.append(comment_time)
            score = _score_text(container, COMMENT_SCORE_SELECTORS)
            if score:
                meta.append(f"↑ {score}")

            body = "\n".join(f"{indent}{line}" for line in text.split("\n"))
            comments.append(f"{indent}{' • '.join(meta)}\n{body}\n")
        return comments


def _own_comment_slot(container: Node) -> Optional[Node]:
    """The comment's own ``slot="comment"`` child, not a nested reply's."""
    stack = list(reversed(container.element_children))
    while stack:
        node = stack.pop()
        if node.get("slot") == "comment":
            return node
        if node.tag == "shreddit-comment":
            continue
        stack.extend(reversed(node.element_children))
    return None


def _first_text(root: Node, selectors: Sequence[str]) -> Optional[str]:
    for selector in selectors:
        element = select_one(root, selector)
        if element is not None:
            text = element.normalized_text()
            if text:
                return text
    return None


def _username(root: Node, selectors: Sequence[str]) -> Optional[str]:
    text = _first_text(root, selectors)
    if text and text.startswith("u/"):
        return text[2:]
    return text


def _score_text(root: Node, selectors: Sequence[str], allow_suffix: bool = False) -> Optional[str]:
    for selector in selectors:
        element = select_one(root, selector)
        if element is None:
            continue
        cleaned = _VOTE_RE.sub("", element.normalized_text()).strip()
        if not cleaned:
            continue
        if _LEADING_DIGIT_RE.match(cleaned) or (allow_suffix and ("k" in cleaned or "m" in cleaned)):
            return cleaned
    return None


def _int_attr(node: Node, name: str) -> int:
    try:
        return max(0, int(node.get(name, "0") or "0"))
    except ValueError:
        return 0
