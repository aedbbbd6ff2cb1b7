"""gRPC service stubs emitted alongside prost-generated message code."""

from __future__ import annotations

import os
import subprocess
import tempfile
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from google.protobuf.descriptor_pb2 import FileDescriptorProto, FileDescriptorSet

from grpcrsgen.naming import MethodType, fq_grpc, to_camel_case, to_snake_case

__all__ = [
    "Method",
    "Service",
    "const_method_name",
    "generate_service",
    "services_from_file",
    "compile_protos",
]

_ADD_HANDLER = {
    MethodType.UNARY: "add_unary_handler",
    MethodType.CLIENT_STREAMING: "add_client_streaming_handler",
    MethodType.SERVER_STREAMING: "add_server_streaming_handler",
    MethodType.DUPLEX: "add_duplex_streaming_handler",
}

_SINK = {
    MethodType.UNARY: "UnarySink",
    MethodType.CLIENT_STREAMING: "ClientStreamingSink",
    MethodType.SERVER_STREAMING: "ServerStreamingSink",
    MethodType.DUPLEX: "DuplexSink",
}


@dataclass(frozen=True)
class Method:
    """An rpc method as seen by the generator."""

    name: str
    proto_name: str
    input_type: str
    output_type: str
    client_streaming: bool = False
    server_streaming: bool = False

    @property
    def method_type(self) -> MethodType:
        return MethodType.from_streaming(self.client_streaming, self.server_streaming)


@dataclass(frozen=True)
class Service:
    """A service with its generated name, its proto name and its package."""

    name: str
    proto_name: str
    package: str = ""
    methods: tuple[Method, ...] = field(default_factory=tuple)


def const_method_name(service_name: str, method: Method) -> str:
    """Name of the constant that describes a method."""
    return f"METHOD_{to_snake_case(service_name).upper()}_{method.name.upper()}"


def _field_init(name: str, value: str) -> str:
    return f"{name}: {value}, "


def _generate_method(service_name: str, service_path: str, method: Method) -> str:
    ty = f"{fq_grpc('Method')}<{method.input_type}, {method.output_type}>"
    marshaller = (
        f"{fq_grpc('Marshaller')} {{ ser: {fq_grpc('pr_ser')}, de: {fq_grpc('pr_de')} }}"
    )
    body = "".join(
        [
            fq_grpc("Method"),
            "{",
            _field_init("ty", fq_grpc(str(method.method_type))),
            _field_init("name", f'"{service_path}/{method.proto_name}"'),
            _field_init("req_mar", marshaller),
            _field_init("resp_mar", marshaller),
            "};\n",
        ]
    )
    return f"const {const_method_name(service_name, method)}: {ty} = {body}"


def _generate_methods(service: Service) -> str:
    if service.package:
        service_path = f"/{service.package}.{service.proto_name}"
    else:
        service_path = f"/{service.proto_name}"
    return "".join(
        _generate_method(service.name, service_path, m) for m in service.methods
    )


@dataclass(frozen=True)
class _ClientMethod:
    method_name: str
    opt: bool
    request: str | None
    is_async: bool
    result_types: tuple[str, ...]
    inner_method_name: str
    data_name: str

    def generate(self) -> str:
        parts = ["pub fn ", self.method_name]
        if self.is_async:
            parts.append("_async")
        if self.opt:
            parts.append("_opt")
        parts.append("(&self")
        if self.request is not None:
            parts.append(f", req: &{self.request}")
        if self.opt:
            parts.append(f", opt: {fq_grpc('CallOption')}")
        parts.append(") -> ")
        parts.append(fq_grpc("Result"))
        parts.append("<")
        tuple_result = len(self.result_types) != 1
        if tuple_result:
            parts.append("(")
        parts.extend(f"{rt}," for rt in self.result_types)
        if tuple_result:
            parts.append(")")
        parts.append("> { ")
        parts.append(self._inner_body() if self.opt else self._opt_body())
        parts.append(" }\n")
        return "".join(parts)

    def _opt_body(self) -> str:
        suffix = "_async" if self.is_async else ""
        req = "req, " if self.request is not None else ""
        return (
            f"self.{self.method_name}{suffix}_opt({req}"
            f"{fq_grpc('CallOption::default()')})"
        )

    def _inner_body(self) -> str:
        suffix = "_async" if self.is_async else ""
        req = ", req" if self.request is not None else ""
        return f"self.client.{self.inner_method_name}{suffix}(&{self.data_name}{req}, opt)"


def _client_methods(service_name: str, method: Method) -> list[_ClientMethod]:
    data_name = const_method_name(service_name, method)
    inp, out = method.input_type, method.output_type
    kind = method.method_type
    if kind is MethodType.UNARY:
        receiver = f"{fq_grpc('ClientUnaryReceiver')}<{out}>"
        variants = [
            (True, False, (out,)),
            (False, False, (out,)),
            (True, True, (receiver,)),
            (False, True, (receiver,)),
        ]
        request: str | None = inp
        inner = "unary_call"
    elif kind is MethodType.CLIENT_STREAMING:
        results = (
            f"{fq_grpc('ClientCStreamSender')}<{inp}>",
            f"{fq_grpc('ClientCStreamReceiver')}<{out}>",
        )
        variants = [(True, False, results), (False, False, results)]
        request = None
        inner = "client_streaming"
    elif kind is MethodType.SERVER_STREAMING:
        results = (f"{fq_grpc('ClientSStreamReceiver')}<{out}>",)
        variants = [(True, False, results), (False, False, results)]
        request = inp
        inner = "server_streaming"
    else:
        results = (
            f"{fq_grpc('ClientDuplexSender')}<{inp}>",
            f"{fq_grpc('ClientDuplexReceiver')}<{out}>",
        )
        variants = [(True, False, results), (False, False, results)]
        request = None
        inner = "duplex_streaming"
    return [
        _ClientMethod(method.name, opt, request, is_async, result_types, inner, data_name)
        for opt, is_async, result_types in variants
    ]


def _generate_client(service: Service) -> str:
    client_name = f"{service.name}Client"
    parts = [
        "#[derive(Clone)]\n",
        f"pub struct {client_name} {{ client: ::grpcio::Client }}\n",
        f"impl {client_name} {{\n",
        "pub fn new(channel: ::grpcio::Channel) -> Self { ",
        f"{client_name} {{ client: ::grpcio::Client::new(channel) }}",
        "}\n",
    ]
    for method in service.methods:
        parts.extend(cm.generate() for cm in _client_methods(service.name, method))
    parts.append(
        "pub fn spawn<F>(&self, f: F) "
        "where F: ::futures::Future<Item = (), Error = ()> + Send + 'static {"
        "self.client.spawn(f)"
        "}\n"
    )
    parts.append("}\n")
    return "".join(parts)


def _generate_server_method(method: Method) -> str:
    kind = method.method_type
    if kind in (MethodType.UNARY, MethodType.SERVER_STREAMING):
        request_arg = f"req: {method.input_type}"
    else:
        request_arg = f"stream: {fq_grpc('RequestStream')}<{method.input_type}>"
    return (
        f"fn {method.name}(&mut self, ctx: {fq_grpc('RpcContext')}, {request_arg}, "
        f"sink: {fq_grpc(_SINK[kind])}<{method.output_type}>);\n"
    )


def _generate_method_bind(service_name: str, method: Method) -> str:
    return (
        f"builder = builder.{_ADD_HANDLER[method.method_type]}"
        f"(&{const_method_name(service_name, method)}, "
        f"move |ctx, req, resp| instance.{method.name}(ctx, req, resp));\n"
    )


def _generate_server(service: Service) -> str:
    if not service.methods:
        raise ValueError(f"service {service.proto_name!r} has no methods")
    parts = [f"pub trait {service.name} {{\n"]
    parts.extend(_generate_server_method(m) for m in service.methods)
    parts.append("}\n")
    parts.append(
        f"pub fn create_{to_snake_case(service.name)}<S: {service.name}"
        f" + Send + Clone + 'static>(s: S) -> {fq_grpc('Service')} {{\n"
    )
    parts.append("let mut builder = ::grpcio::ServiceBuilder::new();\n")
    *head, last = service.methods
    for method in head:
        parts.append("let mut instance = s.clone();\n")
        parts.append(_generate_method_bind(service.name, method))
    parts.append("let mut instance = s;\n")
    parts.append(_generate_method_bind(service.name, last))
    parts.append("builder.build()\n")
    parts.append("}\n")
    return "".join(parts)


def generate_service(service: Service) -> str:
    """Return method constants, client and server code for a service."""
    if not service.methods:
        raise ValueError(f"service {service.proto_name!r} has no methods")
    return _generate_methods(service) + _generate_client(service) + _generate_server(service)


def _rust_type_path(type_name: str, package: str) -> str:
    """Resolve a fully qualified proto type name relative to ``package``.

    Segments of a foreign package are told from message names by case:
    package segments start with a lower-case letter.
    """
    parts = [p for p in type_name.lstrip(".").split(".") if p]
    if not parts:
        raise ValueError(f"empty type name: {type_name!r}")
    own = package.split(".") if package else []
    if len(parts) > len(own) and parts[: len(own)] == own:
        target_pkg, rest = own, parts[len(own):]
    else:
        split = next(
            (i for i, p in enumerate(parts) if p[0].isupper()), len(parts) - 1
        )
        target_pkg, rest = parts[:split], parts[split:]
    common = 0
    for mine, theirs in zip(own, target_pkg):
        if mine != theirs:
            break
        common += 1
    path = ["super"] * (len(own) - common)
    path.extend(to_snake_case(seg) for seg in target_pkg[common:])
    path.extend(to_snake_case(seg) for seg in rest[:-1])
    path.append(to_camel_case(rest[-1]))
    return "::".join(path)


def services_from_file(file: FileDescriptorProto) -> list[Service]:
    """Describe the services of a proto file, with type paths relative to its package."""
    package = file.package
    return [
        Service(
            name=to_camel_case(svc.name),
            proto_name=svc.name,
            package=package,
            methods=tuple(
                Method(
                    name=to_snake_case(m.name),
                    proto_name=m.name,
                    input_type=_rust_type_path(m.input_type, package),
                    output_type=_rust_type_path(m.output_type, package),
                    client_streaming=m.client_streaming,
                    server_streaming=m.server_streaming,
                )
                for m in svc.method
            ),
        )
        for svc in file.service
    ]


def _is_requested(file_name: str, protos: Iterable[str]) -> bool:
    return any(
        proto == file_name or proto.endswith(f"/{file_name}") for proto in protos
    )


def compile_protos(
    protos: Sequence[str | os.PathLike[str]],
    includes: Sequence[str | os.PathLike[str]],
    out_dir: str | os.PathLike[str],
) -> list[str]:
    """Run protoc on the protos, write service stubs to ``out_dir``.

    Returns the sorted names of all packages compiled. The protoc binary is
    taken from the ``PROTOC`` environment variable (default ``protoc``), and
    ``PROTOC_INCLUDE``, when set, is added after the given include paths.
    Raises OSError if protoc cannot be run or fails.
    """
    protoc = os.environ.get("PROTOC", "protoc")
    with tempfile.TemporaryDirectory(prefix="prost-build") as tmp:
        descriptor_path = Path(tmp) / "prost-descriptor-set"
        cmd = [protoc, "--include_imports", "--include_source_info", "-o", str(descriptor_path)]
        for include in includes:
            cmd.extend(["-I", os.fspath(include)])
        protoc_include = os.environ.get("PROTOC_INCLUDE")
        if protoc_include:
            cmd.extend(["-I", protoc_include])
        cmd.extend(os.fspath(proto) for proto in protos)

        output = subprocess.run(cmd, capture_output=True, check=False)
        if output.returncode != 0:
            stderr = output.stderr.decode("utf-8", errors="replace")
            raise OSError(f"protoc failed: {stderr}")
        descriptor_set = FileDescriptorSet.FromString(descriptor_path.read_bytes())

    packages = sorted({f.package for f in descriptor_set.file if f.HasField("package")})

    requested = [Path(os.fspath(p)).as_posix() for p in protos]
    generated: dict[str, list[str]] = {}
    for file in descriptor_set.file:
        if not file.service or not _is_requested(file.name, requested):
            continue
        code = generated.setdefault(file.package or "_", [])
        code.extend(generate_service(svc) for svc in services_from_file(file))

    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    for package, chunks in generated.items():
        (out / f"{package}.rs").write_text("".join(chunks), encoding="utf-8")

    return packages