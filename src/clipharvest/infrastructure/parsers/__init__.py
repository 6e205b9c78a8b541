from .html_parser import parse_html_page
from .json_parser import (
    extract_media_url,
    format_item,
    parse_any,
    parse_aweme_detail,
    parse_item_list,
)

__all__ = [
    "extract_media_url",
    "format_item",
    "parse_any",
    "parse_aweme_detail",
    "parse_html_page",
    "parse_item_list",
]
