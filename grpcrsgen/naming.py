"""Name splitting and case conversion used by the code generators."""

from __future__ import annotations

import enum
from collections.abc import Iterator

__all__ = ["split_name", "to_snake_case", "to_camel_case", "fq_grpc", "MethodType"]


def split_name(name: str) -> Iterator[str]:
    """Yield the words of an identifier, splitting on underscores and case changes.

    ``AaA`` and ``aaA`` split before the last capital; ``AAa`` splits before
    the last capital of the upper-case run.
    """
    pos, length = 0, len(name)
    while pos != length:
        while pos < length and name[pos] == "_":
            pos += 1
        end = length
        upper_len = 0
        meet_lower = False
        for i, ch in enumerate(name[pos:], start=pos):
            if "A" <= ch <= "Z":
                if meet_lower:
                    end = i
                    break
                upper_len += 1
            elif ch == "_":
                end = i
                break
            else:
                meet_lower = True
                if upper_len > 1:
                    end = i - 1
                    break
        yield name[pos:end]
        pos = end


def to_snake_case(name: str) -> str:
    """Convert an identifier to ``snake_case``."""
    return "_".join(part.lower() for part in split_name(name))


def to_camel_case(name: str) -> str:
    """Convert an identifier to ``CamelCase``.

    Raises ValueError if the name yields an empty word (a trailing underscore).
    """
    words = []
    for part in split_name(name):
        if not part:
            raise ValueError(f"cannot convert {name!r} to camel case: empty word")
        words.append(part[0].upper() + part[1:].lower())
    return "".join(words)


def fq_grpc(item: str) -> str:
    """Return the fully qualified path of an item in the grpcio crate."""
    return f"::grpcio::{item}"


class MethodType(enum.Enum):
    """The four kinds of gRPC method."""

    UNARY = "Unary"
    CLIENT_STREAMING = "ClientStreaming"
    SERVER_STREAMING = "ServerStreaming"
    DUPLEX = "Duplex"

    @classmethod
    def from_streaming(cls, client_streaming: bool, server_streaming: bool) -> MethodType:
        """Pick the method type from the two streaming flags of a method."""
        if client_streaming and server_streaming:
            return cls.DUPLEX
        if client_streaming:
            return cls.CLIENT_STREAMING
        if server_streaming:
            return cls.SERVER_STREAMING
        return cls.UNARY

    def __str__(self) -> str:
        return f"MethodType::{self.value}"