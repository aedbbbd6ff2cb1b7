"""Generation of gRPC service stubs from protobuf file descriptors."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from functools import cached_property

from google.protobuf.descriptor_pb2 import (
    DescriptorProto,
    FileDescriptorProto,
    MethodDescriptorProto,
    ServiceDescriptorProto,
)

from grpcrsgen.naming import MethodType, fq_grpc, to_camel_case, to_snake_case

__all__ = [
    "CodeWriter",
    "GenResult",
    "RootScope",
    "proto_path_to_rust_mod",
    "MethodGen",
    "ServiceGen",
    "gen_file",
    "gen",
]

_INDENT = "    "

_RUST_KEYWORDS = frozenset(
    """
    abstract alignof as become box break const continue crate do else enum
    extern false final fn for if impl in let loop macro match mod move mut
    offsetof override priv proc pub pure ref return self sizeof static struct
    super trait true type typeof unsafe unsized use virtual where while yield
    async await dyn try
    """.split()
)

_GENERATED_HEADER = (
    "// This file is generated. Do not edit",
    "// @generated",
    "",
    "#![allow(unknown_lints)]",
    "#![allow(clippy::all)]",
    "",
    "#![cfg_attr(rustfmt, rustfmt_skip)]",
    "",
    "#![allow(box_pointers)]",
    "#![allow(dead_code)]",
    "#![allow(missing_docs)]",
    "#![allow(non_camel_case_types)]",
    "#![allow(non_snake_case)]",
    "#![allow(non_upper_case_globals)]",
    "#![allow(trivial_casts)]",
    "#![allow(unsafe_code)]",
    "#![allow(unused_imports)]",
    "#![allow(unused_results)]",
)


class CodeWriter:
    """Accumulates lines of source code with block indentation."""

    def __init__(self) -> None:
        self._lines: list[str] = []
        self._indent = ""

    def write_line(self, line: str) -> None:
        """Write one line at the current indentation; empty lines stay empty."""
        self._lines.append(f"{self._indent}{line}" if line else "")

    @contextmanager
    def block(self, first_line: str, last_line: str) -> Iterator[CodeWriter]:
        """Write ``first_line``, indent what the body writes, then ``last_line``."""
        self.write_line(first_line)
        self._indent += _INDENT
        try:
            yield self
        finally:
            self._indent = self._indent[: -len(_INDENT)]
        self.write_line(last_line)

    def getvalue(self) -> str:
        """Return everything written so far, each line ending in a newline."""
        return "".join(f"{line}\n" for line in self._lines)


@dataclass(frozen=True)
class GenResult:
    """One generated output file."""

    name: str
    content: bytes


def _is_ident_start(ch: str) -> bool:
    return ("a" <= ch <= "z") or ("A" <= ch <= "Z") or ch == "_"


def _is_ident_continue(ch: str) -> bool:
    return _is_ident_start(ch) or ("0" <= ch <= "9")


def proto_path_to_rust_mod(path: str) -> str:
    """Derive the module name generated for a ``.proto`` file path."""
    base = path.rsplit("/", 1)[-1]
    if base.endswith(".proto"):
        base = base[: -len(".proto")]
    name = "".join(
        ch if (_is_ident_start(ch) if i == 0 else _is_ident_continue(ch)) else "_"
        for i, ch in enumerate(base)
    )
    return f"{name}_pb" if name in _RUST_KEYWORDS else name


@dataclass
class RootScope:
    """All known file descriptors, for resolving message type names."""

    file_descriptors: Sequence[FileDescriptorProto]
    _messages: dict[str, str] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._messages = {}
        for file in self.file_descriptors:
            module = proto_path_to_rust_mod(file.name)
            prefix = f".{file.package}" if file.package else ""
            self._index(file.message_type, prefix, module, [])

    def _index(
        self,
        messages: Iterable[DescriptorProto],
        proto_prefix: str,
        module: str,
        outer: list[str],
    ) -> None:
        for message in messages:
            proto_name = f"{proto_prefix}.{message.name}"
            path = [*outer, message.name]
            self._messages[proto_name] = f"{module}::{'_'.join(path)}"
            self._index(message.nested_type, proto_name, module, path)

    def find_message(self, type_name: str) -> str:
        """Return the generated path of a message given its ``.package.Name``."""
        if not type_name.startswith("."):
            raise ValueError(f"message name must be fully qualified: {type_name!r}")
        try:
            return self._messages[type_name]
        except KeyError:
            raise KeyError(f"message not found: {type_name}") from None


class MethodGen:
    """Writes the pieces of generated code belonging to one rpc method."""

    def __init__(
        self,
        proto: MethodDescriptorProto,
        service_name: str,
        service_path: str,
        root_scope: RootScope,
    ) -> None:
        self.proto = proto
        self.service_name = service_name
        self.service_path = service_path
        self.root_scope = root_scope

    @cached_property
    def input(self) -> str:
        return f"super::{self.root_scope.find_message(self.proto.input_type)}"

    @cached_property
    def output(self) -> str:
        return f"super::{self.root_scope.find_message(self.proto.output_type)}"

    @property
    def method_type(self) -> MethodType:
        return MethodType.from_streaming(
            self.proto.client_streaming, self.proto.server_streaming
        )

    @property
    def name(self) -> str:
        return to_snake_case(self.proto.name)

    @property
    def fq_name(self) -> str:
        return f'"{self.service_path}/{self.proto.name}"'

    @property
    def const_method_name(self) -> str:
        service = to_snake_case(self.service_name).upper()
        return f"METHOD_{service}_{self.name.upper()}"

    def _write_definition(self, w: CodeWriter) -> None:
        head = (
            f"const {self.const_method_name}: {fq_grpc('Method')}"
            f"<{self.input}, {self.output}> = {fq_grpc('Method')} {{"
        )
        pb_mar = (
            f"{fq_grpc('Marshaller')} {{ ser: {fq_grpc('pb_ser')}, "
            f"de: {fq_grpc('pb_de')} }}"
        )
        with w.block(head, "};"):
            w.write_line(f"ty: {fq_grpc(str(self.method_type))},")
            w.write_line(f"name: {self.fq_name},")
            w.write_line(f"req_mar: {pb_mar},")
            w.write_line(f"resp_mar: {pb_mar},")

    def _signature(self, fn_name: str, takes_req: bool, opt: bool, result: str) -> str:
        params = ["&self"]
        if takes_req:
            params.append(f"req: &{self.input}")
        if opt:
            params.append(f"opt: {fq_grpc('CallOption')}")
        return f"{fn_name}({', '.join(params)}) -> {fq_grpc('Result')}<{result}>"

    def _client_variants(self) -> tuple[bool, list[tuple[str, str, str]]]:
        inp, out = self.input, self.output
        kind = self.method_type
        if kind is MethodType.UNARY:
            return True, [
                ("", out, "unary_call"),
                ("_async", f"{fq_grpc('ClientUnaryReceiver')}<{out}>", "unary_call_async"),
            ]
        if kind is MethodType.CLIENT_STREAMING:
            result = (
                f"({fq_grpc('ClientCStreamSender')}<{inp}>, "
                f"{fq_grpc('ClientCStreamReceiver')}<{out}>)"
            )
            return False, [("", result, "client_streaming")]
        if kind is MethodType.SERVER_STREAMING:
            result = f"{fq_grpc('ClientSStreamReceiver')}<{out}>"
            return True, [("", result, "server_streaming")]
        result = (
            f"({fq_grpc('ClientDuplexSender')}<{inp}>, "
            f"{fq_grpc('ClientDuplexReceiver')}<{out}>)"
        )
        return False, [("", result, "duplex_streaming")]

    def _write_client(self, w: CodeWriter) -> None:
        name = self.name
        takes_req, variants = self._client_variants()
        req_arg = "req, " if takes_req else ""
        default = fq_grpc("CallOption::default()")
        for i, (suffix, result, inner) in enumerate(variants):
            if i:
                w.write_line("")
            opt_sig = self._signature(f"{name}{suffix}_opt", takes_req, True, result)
            with w.block(f"pub fn {opt_sig} {{", "}"):
                w.write_line(
                    f"self.client.{inner}(&{self.const_method_name}, {req_arg}opt)"
                )
            w.write_line("")
            sig = self._signature(f"{name}{suffix}", takes_req, False, result)
            with w.block(f"pub fn {sig} {{", "}"):
                w.write_line(f"self.{name}{suffix}_opt({req_arg}{default})")

    def _write_service(self, w: CodeWriter) -> None:
        req_stream_type = f"{fq_grpc('RequestStream')}<{self.input}>"
        req, req_type, resp_type = {
            MethodType.UNARY: ("req", self.input, "UnarySink"),
            MethodType.CLIENT_STREAMING: ("stream", req_stream_type, "ClientStreamingSink"),
            MethodType.SERVER_STREAMING: ("req", self.input, "ServerStreamingSink"),
            MethodType.DUPLEX: ("stream", req_stream_type, "DuplexSink"),
        }[self.method_type]
        w.write_line(
            f"fn {self.name}(&mut self, ctx: {fq_grpc('RpcContext')}, "
            f"{req}: {req_type}, sink: {fq_grpc(resp_type)}<{self.output}>);"
        )

    def _write_bind(self, w: CodeWriter) -> None:
        add = {
            MethodType.UNARY: "add_unary_handler",
            MethodType.CLIENT_STREAMING: "add_client_streaming_handler",
            MethodType.SERVER_STREAMING: "add_server_streaming_handler",
            MethodType.DUPLEX: "add_duplex_streaming_handler",
        }[self.method_type]
        head = f"builder = builder.{add}(&{self.const_method_name}, move |ctx, req, resp| {{"
        with w.block(head, "});"):
            w.write_line(f"instance.{self.name}(ctx, req, resp)")


class ServiceGen:
    """Writes method definitions, a client and a server trait for one service."""

    def __init__(
        self,
        proto: ServiceDescriptorProto,
        file: FileDescriptorProto,
        root_scope: RootScope,
    ) -> None:
        self.proto = proto
        if file.package:
            service_path = f"/{file.package}.{proto.name}"
        else:
            service_path = f"/{proto.name}"
        camel = to_camel_case(proto.name)
        self.methods = [
            MethodGen(m, camel, service_path, root_scope) for m in proto.method
        ]

    @property
    def service_name(self) -> str:
        return to_camel_case(self.proto.name)

    @property
    def client_name(self) -> str:
        return f"{self.service_name}Client"

    def _write_client(self, w: CodeWriter) -> None:
        client = self.client_name
        w.write_line("#[derive(Clone)]")
        with w.block(f"pub struct {client} {{", "}"):
            w.write_line("client: ::grpcio::Client,")
        w.write_line("")
        with w.block(f"impl {client} {{", "}"):
            with w.block("pub fn new(channel: ::grpcio::Channel) -> Self {", "}"):
                with w.block(f"{client} {{", "}"):
                    w.write_line("client: ::grpcio::Client::new(channel),")
            for method in self.methods:
                w.write_line("")
                method._write_client(w)
            with w.block(
                "pub fn spawn<F>(&self, f: F) where F: ::futures::Future<Item = (), "
                "Error = ()> + Send + 'static {",
                "}",
            ):
                w.write_line("self.client.spawn(f)")

    def _write_server(self, w: CodeWriter) -> None:
        if not self.methods:
            raise ValueError(f"service {self.proto.name!r} has no methods")
        with w.block(f"pub trait {self.service_name} {{", "}"):
            for method in self.methods:
                method._write_service(w)
        w.write_line("")
        sig = (
            f"create_{to_snake_case(self.service_name)}<S: {self.service_name} "
            f"+ Send + Clone + 'static>(s: S) -> {fq_grpc('Service')}"
        )
        with w.block(f"pub fn {sig} {{", "}"):
            w.write_line("let mut builder = ::grpcio::ServiceBuilder::new();")
            *head, last = self.methods
            for method in head:
                w.write_line("let mut instance = s.clone();")
                method._write_bind(w)
            w.write_line("let mut instance = s;")
            last._write_bind(w)
            w.write_line("builder.build()")

    def write(self, w: CodeWriter) -> None:
        """Write the whole service: method constants, client, then server."""
        for i, method in enumerate(self.methods):
            if i:
                w.write_line("")
            method._write_definition(w)
        w.write_line("")
        self._write_client(w)
        w.write_line("")
        self._write_server(w)


def gen_file(file: FileDescriptorProto, root_scope: RootScope) -> GenResult | None:
    """Generate the stub file for one proto file, or None if it has no services."""
    if not file.service:
        return None
    w = CodeWriter()
    for line in _GENERATED_HEADER:
        w.write_line(line)
    for service in file.service:
        w.write_line("")
        ServiceGen(service, file, root_scope).write(w)
    name = f"{proto_path_to_rust_mod(file.name)}_grpc.rs"
    return GenResult(name=name, content=w.getvalue().encode("utf-8"))


def gen(
    file_descriptors: Sequence[FileDescriptorProto],
    files_to_generate: Iterable[str],
) -> list[GenResult]:
    """Generate stub files for the named proto files that define services."""
    files_map = {f.name: f for f in file_descriptors}
    root_scope = RootScope(file_descriptors)
    results = []
    for file_name in files_to_generate:
        try:
            file = files_map[file_name]
        except KeyError:
            raise KeyError(f"no descriptor for file to generate: {file_name}") from None
        result = gen_file(file, root_scope)
        if result is not None:
            results.append(result)
    return results