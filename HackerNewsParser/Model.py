#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Model Module:
Pydantic data models for a Hacker News item page: the submission itself
(Item / Title) and its flat, document-ordered list of comments.
"""
import datetime
from urllib.parse import ParseResult
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_serializer


class Title(BaseModel):
    """
    The headline of a submission and the link it points to.
    (提交的标题及其指向的链接。)
    """
    name: str = Field(default="", description="Whitespace-normalized headline text.")
    reference: Optional[ParseResult] = Field(
        default=None,
        description="The parsed href of the headline anchor."
    )

    @field_serializer('reference')
    def _serialize_reference(self, reference: Optional[ParseResult]) -> Optional[str]:
        return reference.geturl() if reference is not None else None


class Comment(BaseModel):
    """
    One discussion entry.

    Comments are kept flat; nesting is only expressed through `parent_id`
    and the order of `Item.comments`.
    (评论保持扁平结构，层级关系仅通过 parent_id 和列表顺序表达。)
    """
    id: int = 0
    author: str = ""
    date: Optional[datetime.datetime] = None
    parent_id: Optional[int] = Field(
        default=None,
        description="ID of the replied-to comment. None for top-level comments."
    )
    content: str = Field(
        default="",
        description="The comment body as a whitespace-normalized HTML fragment.",
        repr=False
    )


class Item(BaseModel):
    """
    A submission page: headline, byline and comments.

    Zero values ("", 0, None) mean the field was not found on the page.
    """
    title: Title = Field(default_factory=Title)
    author: str = ""
    date: Optional[datetime.datetime] = None
    id: int = 0
    points: int = 0
    comments: List[Comment] = Field(default_factory=list, repr=False)

    def comment_depths(self) -> Dict[int, int]:
        """
        Map every comment ID to its nesting depth (0 = top level).

        A reply always follows its parent in document order, so a single pass
        is enough. A comment whose parent has not been seen yet is treated
        as top level.
        """
        depths: Dict[int, int] = {}
        for comment in self.comments:
            if comment.parent_id is not None and comment.parent_id in depths:
                depths[comment.id] = depths[comment.parent_id] + 1
            else:
                depths[comment.id] = 0
        return depths

    def orphan_comments(self) -> List[Comment]:
        """Comments whose parent_id does not match any comment of this item."""
        known_ids = {comment.id for comment in self.comments}
        return [
            comment for comment in self.comments
            if comment.parent_id is not None and comment.parent_id not in known_ids
        ]
