"""Streaming engines: the deduplicating scanner and the tail loop."""

from zuultail.stream.scanner import BuildScanner
from zuultail.stream.tail import BuildTail

__all__ = ["BuildScanner", "BuildTail"]
