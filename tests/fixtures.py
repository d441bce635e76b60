"""
Builders for Hacker News item pages.

The markup mirrors what news.ycombinator.com renders for an item page: a
`fatitem` header table followed by a `comment-tree` table in which every
comment is a sibling row, whatever its reply depth.
"""
from typing import List, Optional

SAMPLE_ITEM_ID = 3067403
SAMPLE_TITLE = "Node-fib: Fast non-blocking fibonacci server"
SAMPLE_REFERENCE = "https://github.com/glenjamin/node-fib"
SAMPLE_AUTHOR = "dchest"
SAMPLE_POINTS = 194
SAMPLE_DATE = "2011-10-03T18:32:05"
SAMPLE_COMMENT_COUNT = 118
SAMPLE_FIRST_COMMENT_ID = 3067420


def item_header(item_id=SAMPLE_ITEM_ID,
                title=SAMPLE_TITLE,
                href=SAMPLE_REFERENCE,
                score_text=f"{SAMPLE_POINTS} points",
                author=SAMPLE_AUTHOR,
                date=SAMPLE_DATE,
                comment_count=SAMPLE_COMMENT_COUNT) -> str:
    return f"""<table class="fatitem" border="0">
<tr class="athing" id="{item_id}">
<td align="right" valign="top" class="title"><span class="rank"></span></td><td valign="top" class="votelinks"><center><a id="up_{item_id}" href="vote?id={item_id}&amp;how=up&amp;goto=item%3Fid%3D{item_id}"><div class="votearrow" title="upvote"></div></a></center></td><td class="title"><span class="titleline"><a href="{href}">{title}</a><span class="sitebit comhead"> (<a href="from?site=github.com/glenjamin"><span class="sitestr">github.com/glenjamin</span></a>)</span></span></td></tr>
<tr><td colspan="2"></td><td class="subtext"><span class="subline">
<span class="score" id="score_{item_id}">{score_text}</span> by <a href="user?id={author}" class="hnuser">{author}</a> <span class="age" title="{date}"><a href="item?id={item_id}">on Oct 3, 2011</a></span> <span id="unv_{item_id}"></span> | <a href="hide?id={item_id}&amp;goto=item%3Fid%3D{item_id}">hide</a> | <a href="item?id={item_id}">{comment_count}&nbsp;comments</a>
</span></td></tr>
</table>"""


def comment_row(comment_id,
                author: Optional[str] = "alice",
                date: Optional[str] = "2011-10-03T18:40:00",
                text: Optional[str] = "A comment.",
                indent: int = 0,
                parent_id=None,
                next_id=None) -> str:
    """
    One comment row. Passing None for author, date or text leaves the
    matching element out of the row.
    """
    navs = []
    if parent_id is not None:
        navs.append(f'<a href="#{parent_id}" class="clicky">parent</a>')
    if next_id is not None:
        navs.append(f'<a href="#{next_id}" class="clicky">next</a>')
    navs_html = "".join(f" | {nav}" for nav in navs)

    user_html = f'<a href="user?id={author}" class="hnuser">{author}</a> ' if author is not None else ""
    age_html = (f'<span class="age" title="{date}"><a href="item?id={comment_id}">on Oct 3, 2011</a></span> '
                if date is not None else "")
    text_html = f'<div class="commtext c00">{text}</div>' if text is not None else ""

    return (f'<tr class="athing comtr" id="{comment_id}"><td><table border="0"><tr>'
            f'<td class="ind" indent="{indent}"><img src="s.gif" height="1" width="{indent * 40}"></td>'
            f'<td valign="top" class="votelinks"><center><a id="up_{comment_id}" href="vote?id={comment_id}&amp;how=up">'
            f'<div class="votearrow" title="upvote"></div></a></center></td>'
            f'<td class="default"><div style="margin-top:2px; margin-bottom:-10px;"><span class="comhead">'
            f'{user_html}{age_html}<span id="unv_{comment_id}"></span><span class="navs">{navs_html} '
            f'<a class="togg clicky" id="{comment_id}" n="1" href="javascript:void(0)">[-]</a></span></span></div><br>\n'
            f'<div class="comment">{text_html}<div class="reply"><p><font size="1"><u>'
            f'<a href="reply?id={comment_id}&amp;goto=item%3Fid%3D{SAMPLE_ITEM_ID}">reply</a></u></font></p></div></div>'
            f'</td></tr></table></td></tr>')


def deleted_row(comment_id, indent: int = 1) -> str:
    """A removed comment: the row keeps its marker class but has no content cell."""
    return (f'<tr class="athing comtr" id="{comment_id}"><td><table border="0"><tr>'
            f'<td class="ind" indent="{indent}"><img src="s.gif" height="1" width="{indent * 40}"></td>'
            f'<td valign="top" class="votelinks"></td>'
            f'<td class="dead"><div class="comment">[deleted]</div></td>'
            f'</tr></table></td></tr>')


def comment_tree(rows: List[str]) -> str:
    return '<table border="0" class="comment-tree">\n' + "\n".join(rows) + '\n</table>'


def page(header: str, tree: str = "") -> str:
    return f"""<html lang="en" op="item"><head><meta charset="utf-8">
<meta name="referrer" content="origin"><title>{SAMPLE_TITLE} | Hacker News</title></head>
<body><center><table id="hnmain" border="0" cellpadding="0" cellspacing="0" width="85%" bgcolor="#f6f6ef">
<tr><td bgcolor="#ff6600"><table border="0" cellpadding="0" cellspacing="0" width="100%" style="padding:2px"><tr><td style="line-height:12pt; height:10px;"><span class="pagetop"><b class="hnname"><a href="news">Hacker News</a></b></span></td></tr></table></td></tr>
<tr id="pagespace" title="{SAMPLE_TITLE}" style="height:10px"></tr><tr><td>
{header}
<br><br>{tree}
<br><br></td></tr></table></center></body></html>"""


def sample_comment_rows():
    """
    Rows of the sample thread: 118 real comments in threads of up to four
    levels, with two deleted rows in between.
    """
    rows = []
    ids = []
    for i in range(SAMPLE_COMMENT_COUNT):
        comment_id = SAMPLE_FIRST_COMMENT_ID + i * 7
        depth = i % 4
        parent_id = ids[-1] if depth else None
        minute, second = divmod(i * 23, 60)
        rows.append(comment_row(
            comment_id,
            author=f"user{i % 17}",
            date=f"2011-10-03T{19 + minute // 60:02d}:{minute % 60:02d}:{second:02d}",
            text=f"Comment number {i} with <i>emphasis</i>\n  and   a <a href=\"https://example.com/{i}\">link</a>.",
            indent=depth,
            parent_id=parent_id,
            next_id=comment_id + 7,
        ))
        ids.append(comment_id)
        if i in (10, 57):
            rows.append(deleted_row(comment_id + 3, indent=depth + 1))
    return rows


def sample_page() -> bytes:
    return page(item_header(), comment_tree(sample_comment_rows())).encode('utf-8')
