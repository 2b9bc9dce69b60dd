"""listwrap package root."""

from listwrap.config import WrapConfig
from listwrap.exceptions import PostSpliceFormatError, SourceIOError, SourceSyntaxError, WrapError
from listwrap.wrap.engine import WrapEngine, format_source

__all__ = [
    "__version__",
    "PostSpliceFormatError",
    "SourceIOError",
    "SourceSyntaxError",
    "WrapConfig",
    "WrapEngine",
    "WrapError",
    "format_source",
]

__version__ = "0.1.0"
