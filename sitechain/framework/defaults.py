from __future__ import annotations

from sitechain.framework.dispatch import ChainEntry, ChainTable

_PAGE_TAIL = ("OutputPath", "AddLayout", "Save")
_ASSET_TAIL = ("OutputPath", "URLFingerprinting", "AddLayout", "Save")
_SLIME = ("AddContent", "Frontmatter", "Pagination", "Slime", *_PAGE_TAIL)

DEFAULT_CHAINS: tuple[ChainEntry, ...] = (
    ChainEntry(".css", ("AddContent", "EEx", "CSSMinify", *_ASSET_TAIL)),
    ChainEntry(".eex", ("AddContent", "Frontmatter", "EEx", *_PAGE_TAIL)),
    ChainEntry(".jpg", ("OutputPath", "Image")),
    ChainEntry(".js", ("AddContent", "EEx", "JS", *_ASSET_TAIL)),
    ChainEntry(".md", ("AddContent", "Frontmatter", "Pagination", "EEx", "Markdown", *_PAGE_TAIL)),
    ChainEntry(".png", ("OutputPath", "Image")),
    ChainEntry(".slim", _SLIME),
    ChainEntry(".slime", _SLIME),
)


def default_table() -> ChainTable:
    return ChainTable.build(builtin_entries=DEFAULT_CHAINS)
