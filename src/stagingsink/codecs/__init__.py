"""
Pluggable byte-stream codecs for staging files.

New compression or encoding schemes are added by registering a factory
(`register_codec`) or by publishing a ``stagingsink.codecs`` entry point;
the writer itself never changes.
"""

from .builtin import DeflateWriter, register_builtin_codecs
from .loader import (
    CodecSpec,
    list_available_codecs,
    register_codec,
    resolve_codec,
)

register_builtin_codecs()

__all__ = [
    "CodecSpec",
    "DeflateWriter",
    "list_available_codecs",
    "register_codec",
    "resolve_codec",
]
