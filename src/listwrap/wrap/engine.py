from __future__ import annotations

import logging

from listwrap.canonical import CanonicalFormatter, LibcstFormatter
from listwrap.config import WrapConfig
from listwrap.exceptions import PostSpliceFormatError, WrapError
from listwrap.wrap.discover import discover_wrappables
from listwrap.wrap.items import extract_items
from listwrap.wrap.model import Replacement, WrapResult
from listwrap.wrap.pack import Layout, layout_construct
from listwrap.wrap.source_map import SourceMap
from listwrap.wrap.splice import Splicer

logger = logging.getLogger(__name__)


class WrapEngine:
    """Canonical format, re-wrap long bracket lists, canonical format again."""

    def __init__(
        self,
        config: WrapConfig | None = None,
        formatter: CanonicalFormatter | None = None,
    ) -> None:
        self.config = config if config is not None else WrapConfig()
        self.formatter = formatter if formatter is not None else LibcstFormatter()

    def format(self, source: str) -> str:
        formatted = self.formatter(source)
        result = self.wrap(formatted)
        logger.debug(
            "wrap pass: %d discovered, %d collapsed, %d expanded, %d skipped",
            result.discovered,
            result.collapsed,
            result.expanded,
            result.skipped,
        )
        if not result.changed:
            return formatted
        try:
            return self._reformat(result.text)
        except PostSpliceFormatError as exc:
            logger.warning("%s; keeping the wrapped text", exc)
            return result.text

    def wrap(self, source: str) -> WrapResult:
        """One wrap pass over already formatted source."""
        source_map = SourceMap.from_source(source)
        wrappables = discover_wrappables(source_map)
        newline = "\r\n" if "\r\n" in source else "\n"
        splicer = Splicer(source)
        collapsed = expanded = skipped = 0
        # Right to left: a splice never moves anything that starts before it.
        for wrappable in sorted(wrappables, key=lambda found: found.open, reverse=True):
            if source_map.is_guarded(wrappable.open, wrappable.close):
                logger.debug("skipping %s at %d: comment or multi-line token", wrappable.kind.value, wrappable.open)
                skipped += 1
                continue
            spans = [
                (splicer.current_offset(start), splicer.current_offset(end))
                for start, end in wrappable.items
            ]
            items = extract_items(splicer.text, spans)
            if not items:
                skipped += 1
                continue
            layout, text = layout_construct(
                splicer.text,
                splicer.current_offset(wrappable.open),
                splicer.current_offset(wrappable.close),
                items,
                self.config,
                newline=newline,
                keeps_comma=wrappable.keeps_comma,
            )
            if splicer.apply(Replacement(wrappable.open, wrappable.close + 1, text)):
                logger.debug("%s %s at %d", layout.value, wrappable.kind.value, wrappable.open)
                if layout is Layout.COLLAPSE:
                    collapsed += 1
                else:
                    expanded += 1
        return WrapResult(
            text=splicer.text,
            changed=splicer.changed,
            discovered=len(wrappables),
            collapsed=collapsed,
            expanded=expanded,
            skipped=skipped,
        )

    def _reformat(self, text: str) -> str:
        try:
            return self.formatter(text)
        except WrapError as exc:
            raise PostSpliceFormatError(f"re-format after wrapping failed: {exc}") from exc


def format_source(
    source: str,
    config: WrapConfig | None = None,
    formatter: CanonicalFormatter | None = None,
) -> str:
    return WrapEngine(config=config, formatter=formatter).format(source)
