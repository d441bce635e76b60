import os
import re
import logging
import traceback
import html2text
from typing import List

from HackerNewsParser.Model import Item
from HackerNewsParser.Extractor import ItemExtractionResult

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------------------------------------------------------

def _make_converter() -> html2text.HTML2Text:
    converter = html2text.HTML2Text()
    converter.ignore_links = False
    converter.ignore_images = False
    converter.body_width = 0
    return converter


def comment_to_markdown(content: str) -> str:
    """
    Converts a comment's HTML fragment to Markdown.
    (将评论的 HTML 片段转换为 Markdown。)
    """
    if not content or not content.strip():
        return ""
    return _make_converter().handle(content).strip()


def _slugify_filename(text: str) -> str:
    """
    Sanitize a string to be used as a valid filename.
    (e.g., "Node-fib: Fast non-blocking / server?" -> "node-fib-fast-non-blocking-server")

    :param text: The string to sanitize.
    :return: A filesystem-safe string.
    """
    if not text:
        return "untitled"

    text = str(text).lower()

    # Keep unicode word characters, whitespace and dashes
    text = re.sub(r'[^\w\s-]', '', text)

    # Runs of whitespace, underscores and dashes become one dash
    text = re.sub(r'[\s_-]+', '-', text).strip('-')

    text = text[:100].strip('-')

    if not text:
        return "untitled"

    return text


def prepare_base_file_path(item: Item, root_dir: str) -> str:
    """
    Structure: <root_dir> / <item id>-<title slug>
    The directory is created if missing.
    """
    os.makedirs(root_dir, exist_ok=True)
    base_filename = f"{item.id}-{_slugify_filename(item.title.name)}"
    return os.path.join(root_dir, base_filename)


def render_item_markdown(item: Item) -> str:
    """
    Renders an item as Markdown: title, byline, then the comments in page
    order, each indented as a nested list by its reply depth.
    """
    lines: List[str] = []

    if item.title.reference is not None and item.title.reference.geturl():
        lines.append(f"# [{item.title.name.strip()}]({item.title.reference.geturl()})")
    else:
        lines.append(f"# {item.title.name.strip() or 'N/A'}")
    lines.append("")

    byline = f"**{item.points} points** by **{item.author or 'unknown'}**"
    if item.date:
        byline += f" on {item.date.isoformat()}"
    lines.append(byline)
    lines.append("")
    lines.append(f"---\n\n## Comments ({len(item.comments)})")
    lines.append("")

    depths = item.comment_depths()
    for comment in item.comments:
        indent = '    ' * depths.get(comment.id, 0)
        header = f"{indent}- **{comment.author or '[unknown]'}**"
        if comment.date:
            header += f" ({comment.date.isoformat()})"
        lines.append(header)

        for body_line in comment_to_markdown(comment.content).splitlines():
            lines.append(f"{indent}  {body_line}" if body_line else "")
        lines.append("")

    return "\n".join(lines)


def save_item_as_md(url: str, result: ItemExtractionResult, root_dir: str = 'HN_OUTPUT') -> str:
    """
    Content handler for the ItemPipeline writing `<root_dir>/<id>-<slug>.md`.

    :param url: The source URL of the item page.
    :param result: The ItemExtractionResult from the extractor.
    :param root_dir: The root dir to save items.
    :return: The written path, or "" if nothing was saved.
    """
    if not result.success:
        logger.error(f"SKIPPING (Failure): {url}. Reason: {result.error}")
        return ""

    try:
        md_filepath = f"{prepare_base_file_path(result.item, root_dir)}.md"

        with open(md_filepath, 'w', encoding='utf-8') as f:
            f.write(render_item_markdown(result.item))
            f.write(f"\n\n---\n\n**Source:** <{url}>\n")

        logger.info(f"[Handler] SAVED: {url}\n    -> {md_filepath}")
        return md_filepath
    except OSError as e:
        logger.error(f"[Handler] CRITICAL ERROR saving {url}: {e}")
        logger.debug(traceback.format_exc())
        return ""


def save_item_as_json(url: str, result: ItemExtractionResult, root_dir: str = 'HN_OUTPUT') -> str:
    """
    Writes the item model as `<root_dir>/<id>-<slug>.json`.

    :return: The written path, or "" if nothing was saved.
    """
    if not result.success:
        logger.error(f"SKIPPING (Failure): {url}. Reason: {result.error}")
        return ""

    try:
        json_filepath = f"{prepare_base_file_path(result.item, root_dir)}.json"

        with open(json_filepath, 'w', encoding='utf-8') as f:
            f.write(result.item.model_dump_json(indent=2))

        logger.info(f"[Handler] SAVED: {url}\n    -> {json_filepath}")
        return json_filepath
    except OSError as e:
        logger.error(f"[Handler] CRITICAL ERROR saving {url}: {e}")
        logger.debug(traceback.format_exc())
        return ""
