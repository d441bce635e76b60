# ItemPipeline.py

import traceback
from typing import Callable, Iterable, List, Optional, Tuple

from HackerNewsParser.Fetcher import Fetcher, item_url
from HackerNewsParser.Extractor import IExtractor, ItemExtractionResult
from HackerNewsParser.Persistence import save_item_as_md, save_item_as_json


# --- Configuration ---
# Root directory where all items will be saved
BASE_OUTPUT_DIR = "HN_OUTPUT"

ContentHandler = Callable[[str, ItemExtractionResult], None]
ExceptionHandler = Callable[[str, Exception], None]


class ItemPipeline:
    """
    A stateful pipeline that fetches item pages and extracts them.
    """

    def __init__(self,
                 fetcher: Optional[Fetcher],
                 extractor: IExtractor,
                 log_callback: Callable[..., None] = print):
        """
        Args:
            fetcher: Fetcher instance used for item pages. May be None when
                     only local files are extracted.
            extractor: IExtractor instance.
            log_callback: A function (like print) to send logs to.
        """
        self.fetcher = fetcher
        self.extractor = extractor
        self.log = log_callback

        # --- State Properties ---
        self.contents: List[Tuple[str, ItemExtractionResult]] = []

    def shutdown(self):
        """Gracefully closes the fetcher."""
        self.log("--- Shutting down fetcher ---")
        if self.fetcher is None:
            return
        try:
            self.fetcher.close()
        except Exception as e:
            self.log(f"[Error] Failed to close fetcher: {e}")

    def _extract_one(self,
                     source: str,
                     content: bytes,
                     contents: List[Tuple[str, ItemExtractionResult]],
                     content_handler: Optional[ContentHandler]):
        self.log(f"  -> Read {len(content)} bytes. Extracting...")
        result = self.extractor.extract(content, source)
        contents.append((source, result))

        if result.success:
            self.log(f"  -> Item {result.item.id}: {result.comment_count} comments")
        else:
            self.log(f"  -> [Error] {result.error}")

        if content_handler:
            content_handler(source, result)

    def fetch_items(self,
                    item_ids: Iterable[int],
                    content_handler: Optional[ContentHandler] = None,
                    exception_handler: Optional[ExceptionHandler] = None) -> List[Tuple[str, ItemExtractionResult]]:
        """
        Fetches and extracts every item page. Populates self.contents.
        """
        if self.fetcher is None:
            raise ValueError("ItemPipeline.fetch_items requires a fetcher")

        # De-duplicate while preserving order
        unique_ids = list(dict.fromkeys(int(item_id) for item_id in item_ids))
        self.log(f"--- Fetching & Extracting {len(unique_ids)} Items ---")

        contents = []
        for item_id in unique_ids:
            url = item_url(item_id)
            self.log(f"Processing: {url}")

            try:
                content = self.fetcher.get_item(item_id)
                if not content:
                    self.log(f"Skipped (no content): {url}")
                    continue
                self._extract_one(url, content, contents, content_handler)
            except Exception as e:
                self.log(f"[Error] Failed to extract {url}: {e}\n{traceback.format_exc()}")
                if exception_handler:
                    exception_handler(url, e)

        self.contents = contents
        self.log(f"Extracted {len(self.contents)} items.")
        return self.contents

    def extract_files(self,
                      paths: Iterable[str],
                      content_handler: Optional[ContentHandler] = None,
                      exception_handler: Optional[ExceptionHandler] = None) -> List[Tuple[str, ItemExtractionResult]]:
        """
        Extracts saved item pages from disk. Populates self.contents.
        """
        paths = list(dict.fromkeys(paths))
        self.log(f"--- Extracting {len(paths)} Files ---")

        contents = []
        for path in paths:
            self.log(f"Processing: {path}")
            try:
                with open(path, 'rb') as f:
                    content = f.read()
                if not content:
                    self.log(f"Skipped (empty file): {path}")
                    continue
                self._extract_one(path, content, contents, content_handler)
            except Exception as e:
                self.log(f"[Error] Failed to extract {path}: {e}\n{traceback.format_exc()}")
                if exception_handler:
                    exception_handler(path, e)

        self.contents = contents
        self.log(f"Extracted {len(self.contents)} items.")
        return self.contents


# ----------------------------------------------------------------------------------------------------------------------

def save_item_to_disk(
        url: str,
        result: ItemExtractionResult,
        in_markdown: bool = True,
        in_json: bool = True,
        root_dir: str = BASE_OUTPUT_DIR
):
    if in_markdown:
        save_item_as_md(url, result, root_dir=root_dir)
    if in_json:
        save_item_as_json(url, result, root_dir=root_dir)
