"""protoc plugin entry point that writes gRPC stubs."""

from __future__ import annotations

import sys
from collections.abc import Sequence

from google.protobuf.compiler import plugin_pb2

from grpcrsgen.codegen import gen

__all__ = ["run_plugin", "main"]


def run_plugin(request_bytes: bytes) -> bytes:
    """Answer a serialized CodeGeneratorRequest with a serialized response."""
    request = plugin_pb2.CodeGeneratorRequest.FromString(request_bytes)
    response = plugin_pb2.CodeGeneratorResponse()
    for result in gen(list(request.proto_file), list(request.file_to_generate)):
        response.file.add(name=result.name, content=result.content.decode("utf-8"))
    return response.SerializeToString()


def main(argv: Sequence[str] | None = None) -> int:
    """Read a request from stdin and write the response to stdout."""
    del argv  # protoc passes everything through stdin
    response = run_plugin(sys.stdin.buffer.read())
    sys.stdout.buffer.write(response)
    sys.stdout.buffer.flush()
    return 0