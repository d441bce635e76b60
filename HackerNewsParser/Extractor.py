#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Extractor Module:
Turns a rendered Hacker News item page into an Item model.

The page is parsed once into a BeautifulSoup tree and walked in document
order. Every field has its own extraction rule with a structural
precondition: a rule whose markers are missing leaves the field at its zero
value, while a field that is present but cannot be converted (bad integer,
bad timestamp, bad URL) raises a FormatFailure and aborts the whole parse.
"""
import re
import logging
import datetime
from itertools import chain
from abc import ABC, abstractmethod
from urllib.parse import urlparse, ParseResult
from typing import Any, Callable, IO, List, Optional, Union

from bs4 import BeautifulSoup, Tag, NavigableString, ParserRejectedMarkup
from bs4.element import PageElement, PreformattedString
from pydantic import BaseModel, Field, computed_field

from HackerNewsParser.Model import Comment, Item

logger = logging.getLogger(__name__)

# Timestamp layout of the `title` attribute on "age" spans, e.g. 2011-10-03T18:32:05
DATE_LAYOUT = '%Y-%m-%dT%H:%M:%S'
DATE_PATTERN = re.compile(r'[0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9]{2}:[0-9]{2}:[0-9]{2}')
INTEGER_PATTERN = re.compile(r'[+-]?[0-9]+')
WHITESPACE_PATTERN = re.compile(r'\s+', re.ASCII)

# URL checks that urlparse leaves to the caller
CONTROL_CHAR_PATTERN = re.compile(r'[\x00-\x1f\x7f]')
BAD_ESCAPE_PATTERN = re.compile(r'%(?![0-9A-Fa-f]{2})')
HOST_PATTERN = re.compile(r'(?:[A-Za-z0-9\-._~!$&\'()*+,;=:\[\]<>"%]|[^\x00-\x7f])*')

# Only these elements can carry an item field. Everything else is walked through.
PROCESSED_TAGS = frozenset({'td', 'tr', 'span', 'a', 'table'})

MarkupSource = Union[bytes, str, IO]
NodePredicate = Callable[[PageElement], bool]


# =======================================================================
# == 1. ERRORS
# =======================================================================

class ItemParseError(Exception):
    """
    Base class of all hard extraction failures.

    `item` holds whatever was extracted before the failure (None when the
    markup could not be parsed at all).
    """

    def __init__(self, message: str, item: Optional[Item] = None):
        super().__init__(message)
        self.item = item


class StructuralFailure(ItemParseError):
    """The markup could not be turned into a node tree."""


class FormatFailure(ItemParseError):
    """A field was found but its value could not be converted."""


# =======================================================================
# == 2. NODE ACCESSORS & TREE SEARCH
# =======================================================================

def get_attr(node: Optional[PageElement], key: str) -> str:
    """
    Returns the value of attribute `key`, or "" if the node has none.
    (返回属性值；不存在时返回空字符串。)
    """
    if not isinstance(node, Tag):
        return ""
    value = node.attrs.get(key, "")
    # Soups built with multi-valued attributes store class as a list
    if isinstance(value, list):
        return " ".join(value)
    return value


def class_is(node: Optional[PageElement], class_name: str) -> bool:
    """Exact comparison of the whole class attribute, not token membership."""
    if node is None:
        return False
    return get_attr(node, 'class') == class_name


def node_data(node: PageElement) -> str:
    """The tag name of an element, or the text of a string node."""
    if isinstance(node, Tag):
        return node.name
    if isinstance(node, NavigableString):
        return str(node)
    return ""


def _is_tag(node: Optional[PageElement], name: str) -> bool:
    return isinstance(node, Tag) and node.name == name


def _first_child(node: Optional[PageElement]) -> Optional[PageElement]:
    if isinstance(node, Tag) and node.contents:
        return node.contents[0]
    return None


def _first_text(node: Optional[PageElement]) -> Optional[str]:
    """Text of the node's first child when that child is a plain text node."""
    child = _first_child(node)
    if isinstance(child, NavigableString) and not isinstance(child, PreformattedString):
        return str(child)
    return None


def find_first(root: Optional[PageElement], predicate: NodePredicate) -> Optional[PageElement]:
    """
    Pre-order depth-first search for the first node matching `predicate`.

    The root itself is tested first, then its descendants in document order.
    The search stops at the first hit.
    (先序深度优先搜索，返回第一个匹配的节点。)
    """
    if root is None:
        return None
    if predicate(root):
        return root
    if isinstance(root, Tag):
        for node in root.descendants:
            if predicate(node):
                return node
    return None


def find_first_by_class(root: Optional[PageElement], class_name: str) -> Optional[PageElement]:
    return find_first(root, lambda node: class_is(node, class_name))


def find_first_by_data(root: Optional[PageElement], data: str) -> Optional[PageElement]:
    return find_first(root, lambda node: node_data(node) == data)


# =======================================================================
# == 3. VALUE CONVERSION
# =======================================================================

def normalize_text(text: str) -> str:
    """
    Collapses every run of whitespace into a single space.
    Leading and trailing runs become one space; nothing is trimmed.
    """
    return WHITESPACE_PATTERN.sub(' ', text)


def parse_int(value: str, field_name: str) -> int:
    if not INTEGER_PATTERN.fullmatch(value):
        raise FormatFailure(f"Invalid {field_name}: {value!r} is not a base-10 integer")
    return int(value)


def parse_date(value: str, field_name: str = 'date') -> datetime.datetime:
    """Parses a naive YYYY-MM-DDTHH:MM:SS timestamp."""
    if not DATE_PATTERN.fullmatch(value):
        raise FormatFailure(f"Invalid {field_name}: {value!r} does not match {DATE_LAYOUT}")
    try:
        return datetime.datetime.strptime(value, DATE_LAYOUT)
    except ValueError as e:
        raise FormatFailure(f"Invalid {field_name}: {value!r} ({e})") from e


def parse_url(value: str) -> ParseResult:
    """
    Parses an absolute or relative URL reference.
    (urlparse 几乎不报错，控制字符、错误的 % 转义和非法主机名需要单独检查。)
    """
    # Checked on the raw value: urlparse silently drops tabs and newlines
    if CONTROL_CHAR_PATTERN.search(value):
        raise FormatFailure(f"Invalid title reference {value!r}: control character")

    try:
        reference = urlparse(value)
        # urlparse defers port validation until the attribute is read
        reference.port
    except ValueError as e:
        raise FormatFailure(f"Invalid title reference {value!r}: {e}") from e

    # The query is kept raw and never unescaped
    for part in (reference.netloc, reference.path, reference.params, reference.fragment):
        if BAD_ESCAPE_PATTERN.search(part):
            raise FormatFailure(f"Invalid title reference {value!r}: malformed percent escape")

    host = reference.netloc.rpartition('@')[2]
    if not HOST_PATTERN.fullmatch(host):
        raise FormatFailure(f"Invalid title reference {value!r}: invalid character in host {host!r}")
    return reference


# =======================================================================
# == 4. ITEM FIELD EXTRACTION
# =======================================================================

def extract_title(node: Tag, item: Item):
    """
    <td class="title"><span class="titleline"><a href="...">Name</a>...
    """
    if not _is_tag(node, 'td') or not class_is(node, 'title'):
        return

    span_child = _first_child(node)
    if not _is_tag(span_child, 'span') or not class_is(span_child, 'titleline'):
        return

    a_child = _first_child(span_child)
    if not _is_tag(a_child, 'a'):
        return

    item.title.name = normalize_text(_first_text(a_child) or "")
    item.title.reference = parse_url(get_attr(a_child, 'href'))


def extract_item_id(node: Tag, item: Item):
    if class_is(node, 'athing') and node.contents:
        item.id = parse_int(get_attr(node, 'id'), 'item id')


def extract_score(node: Tag, item: Item):
    """
    <span class="score">194 points</span>

    Text that does not split into exactly two tokens is ignored rather than
    rejected.
    """
    if not _is_tag(node, 'span') or not class_is(node, 'score'):
        return

    score_text = _first_text(node)
    if score_text is None:
        return

    tokens = normalize_text(score_text).split(' ')
    if len(tokens) != 2:
        return

    item.points = parse_int(tokens[0], 'score')


def extract_date(node: Tag, item: Item):
    if _is_tag(node, 'span') and class_is(node, 'age'):
        item.date = parse_date(get_attr(node, 'title'), 'item date')


def extract_author(node: Tag, item: Item):
    if not class_is(node, 'hnuser'):
        return
    author = _first_text(node)
    if author is not None:
        item.author = author


# =======================================================================
# == 5. COMMENT EXTRACTION
# =======================================================================

def extract_comment_id(node: PageElement, comment: Comment):
    comment.id = parse_int(get_attr(node, 'id'), 'comment id')


def extract_comment_author(node: PageElement, comment: Comment):
    author = _first_text(find_first_by_class(node, 'hnuser'))
    if author is not None:
        comment.author = author


def extract_comment_date(node: PageElement, comment: Comment):
    age_node = find_first_by_class(node, 'age')
    if age_node is not None:
        comment.date = parse_date(get_attr(age_node, 'title'), 'comment date')


def extract_parent_id(node: PageElement, comment: Comment):
    """
    Replies carry a back-link: <a href="#3067500">parent</a>.
    The href without its leading '#' is the parent comment ID.
    """
    parent_marker = find_first_by_data(node, 'parent')
    if parent_marker is None:
        return

    ref = get_attr(parent_marker.parent, 'href')
    if not ref:
        return

    comment.parent_id = parse_int(ref[1:], 'parent reference')


def extract_content(node: PageElement, comment: Comment):
    content_node = find_first_by_class(node, 'commtext c00')
    if content_node is not None:
        comment.content = normalize_text(str(content_node))


def extract_comment(node: PageElement) -> Optional[Comment]:
    """
    Builds a Comment from one `athing comtr` row.

    Returns None for anything that is not a comment row, and for rows
    without a "default" cell (deleted or collapsed placeholders).
    """
    if not class_is(node, 'athing comtr'):
        return None

    comment = Comment()
    extract_comment_id(node, comment)

    if find_first_by_class(node, 'default') is None:
        logger.debug(f"Skipping comment row {comment.id}: no content cell")
        return None

    extract_comment_author(node, comment)
    extract_comment_date(node, comment)
    extract_parent_id(node, comment)
    extract_content(node, comment)
    return comment


def extract_comments(node: Optional[Tag], item: Item):
    """
    Collects every comment row of a `comment-tree` table into item.comments.

    All rows sit side by side as siblings regardless of their reply depth,
    so the region is simply the sibling chain around the first comment row.
    (所有评论行都是同级兄弟节点，与回复层级无关。)
    """
    if node is None or not node.contents or not class_is(node, 'comment-tree'):
        return

    comment_row = find_first_by_class(node, 'athing comtr')
    if comment_row is None:
        logger.debug("Comment tree contains no comment rows")
        return

    # Rewind to the first sibling in case the search landed mid-list
    while comment_row.previous_sibling is not None:
        comment_row = comment_row.previous_sibling

    count = 0
    for sibling in chain([comment_row], comment_row.next_siblings):
        comment = extract_comment(sibling)
        if comment is not None:
            item.comments.append(comment)
            count += 1

    logger.debug(f"Extracted {count} comments")


# =======================================================================
# == 6. DOCUMENT WALKER
# =======================================================================

def process_node(node: Tag, item: Item):
    """Runs every extraction rule that may apply to `node`."""
    extract_title(node, item)
    extract_item_id(node, item)

    # Score, date and author share one metadata line
    if class_is(node.parent, 'subline'):
        extract_score(node, item)
        extract_date(node, item)
        extract_author(node, item)

    if class_is(node, 'comment-tree'):
        extract_comments(node, item)


def traverse_document(root: PageElement, item: Item):
    for node in chain([root], getattr(root, 'descendants', ())):
        if isinstance(node, Tag) and node.name in PROCESSED_TAGS:
            process_node(node, item)


def parse_html(content: MarkupSource) -> Item:
    """
    Parses one Hacker News item page.

    :param content: The page as bytes, str or a readable file object.
    :return: The populated Item.
    :raises StructuralFailure: The markup could not be parsed.
    :raises FormatFailure: A field value could not be converted. The partially
                           populated Item is available as `error.item`.
    """
    try:
        soup = BeautifulSoup(content, 'lxml', multi_valued_attributes=None)
    except ParserRejectedMarkup as e:
        raise StructuralFailure(f"Markup could not be parsed: {e}") from e

    item = Item()
    try:
        traverse_document(soup, item)
    except ItemParseError as e:
        e.item = item
        raise

    logger.debug(f"Parsed item {item.id} with {len(item.comments)} comments")
    return item


# =======================================================================
# == 7. EXTRACTOR INTERFACE
# =======================================================================

class ItemExtractionResult(BaseModel):
    """
    Standardized return object of IExtractor implementations.
    (IExtractor 实现的标准返回对象。)

    On failure `item` still holds the fields extracted before the error.
    """
    item: Item = Field(default_factory=Item)
    error: Optional[str] = Field(
        default=None,
        description="An error message if extraction failed."
    )
    error_kind: Optional[str] = Field(
        default=None,
        description="Class name of the failure, e.g. 'FormatFailure'."
    )

    @computed_field(repr=True)
    @property
    def comment_count(self) -> int:
        return len(self.item.comments)

    @property
    def success(self) -> bool:
        """Returns True if the extraction was successful (no error)."""
        return self.error is None

    def __str__(self):
        if not self.success:
            return f"[Extraction FAILED]\n└── Error ({self.error_kind}): {self.error}"

        item = self.item
        output = ["[Extraction SUCCESS]"]
        output.append(f"├── ID: {item.id or '[No ID Found]'}")
        output.append(f"├── Title: {item.title.name or '[No Title Found]'}")
        if item.title.reference is not None:
            output.append(f"├── Link: {item.title.reference.geturl()}")
        output.append(f"├── By: {item.author or '[Unknown]'} ({item.points} points)")
        output.append(f"├── Date: {item.date.isoformat() if item.date else '[No Date Found]'}")
        output.append(f"└── Comments: {self.comment_count}")
        return "\n".join(output)


class IExtractor(ABC):
    """
    Abstract base class for an item extractor.

    An extractor takes the raw HTML of one page and its URL and returns an
    ItemExtractionResult.
    """

    def __init__(self, verbose: bool = False):
        """
        :param verbose: Toggles printing of log messages.
        """
        self.verbose = verbose
        self.log_messages: List[str] = []

    def _log(self, message: str, indent: int = 0):
        """
        Provides a unified logging mechanism.
        (提供统一的日志记录机制。)
        """
        log_msg = f"{' ' * (indent * 4)}{message}"
        self.log_messages.append(log_msg)
        logger.debug(log_msg)
        if self.verbose:
            print(log_msg)

    @abstractmethod
    def extract(self, content: MarkupSource, url: str, **kwargs: Any) -> ItemExtractionResult:
        """
        Extracts the item and its comments from raw HTML.

        :param content: The raw HTML content.
        :param url: The page URL (for context only).
        :return: An ItemExtractionResult.
        """
        pass


class HackerNewsItemExtractor(IExtractor):
    """
    Extractor for news.ycombinator.com item pages.

    Hard parse failures are reported through the result's `error` field
    instead of being raised.
    """

    def extract(self, content: MarkupSource, url: str, **kwargs: Any) -> ItemExtractionResult:
        self.log_messages = []
        self._log(f"Extracting with HackerNewsItemExtractor from {url}")

        try:
            item = parse_html(content)
        except ItemParseError as e:
            error_str = f"HackerNewsItemExtractor failed: {e}"
            self._log(f"[Error] {error_str}")
            return ItemExtractionResult(
                item=e.item if e.item is not None else Item(),
                error=error_str,
                error_kind=type(e).__name__
            )

        self._log(f"Item {item.id}: '{item.title.name}' with {len(item.comments)} comments", indent=1)
        return ItemExtractionResult(item=item)
