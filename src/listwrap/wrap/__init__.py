from listwrap.wrap.discover import discover_wrappables
from listwrap.wrap.engine import WrapEngine, format_source
from listwrap.wrap.items import extract_items, normalize_item
from listwrap.wrap.model import ConstructKind, Item, Replacement, Wrappable, WrapResult
from listwrap.wrap.pack import Layout, layout_construct, pack_items
from listwrap.wrap.source_map import SourceMap
from listwrap.wrap.splice import Splicer, apply_replacements
from listwrap.wrap.width import visual_width

__all__ = [
    "ConstructKind",
    "Item",
    "Layout",
    "Replacement",
    "SourceMap",
    "Splicer",
    "WrapEngine",
    "WrapResult",
    "Wrappable",
    "apply_replacements",
    "discover_wrappables",
    "extract_items",
    "format_source",
    "layout_construct",
    "normalize_item",
    "pack_items",
    "visual_width",
]
