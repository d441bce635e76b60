from HackerNewsParser.Model import Comment, Item, Title
from HackerNewsParser.Extractor import (
    FormatFailure, HackerNewsItemExtractor, IExtractor, ItemExtractionResult,
    ItemParseError, StructuralFailure, parse_html)
