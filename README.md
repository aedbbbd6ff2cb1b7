# grpcrsgen

A protoc plugin and library that turns protobuf service descriptors into
gRPC client and server binding code, plus a few helpers for benchmark
statistics, route-guide geometry, logging and gRPC constants.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

`grpcrsgen.benchutil` imports the `resource` module and so needs a POSIX
system.

## Using the protoc plugin

Installing the package provides the `protoc-gen-grpcrs` command, which
protoc finds by name:

```
protoc --grpcrs_out=out/ -I protos protos/helloworld.proto
```

The plugin reads a `CodeGeneratorRequest` on standard input and writes a
`CodeGeneratorResponse` on standard output. For every requested `.proto`
file that declares at least one service it emits a `<module>_grpc.rs` file
holding a method constant per rpc, a `<Service>Client` type with `_opt`
and `_async` variants of each call, a server trait, and a
`create_<service>` function that registers the handlers.

The same work is available as a function:

```python
from grpcrsgen.plugin import run_plugin

response_bytes = run_plugin(request_bytes)
```

## Generating from descriptors directly

```python
from grpcrsgen.codegen import gen

results = gen(file_descriptors, ["helloworld.proto"])
for result in results:
    print(result.name)                     # e.g. "helloworld_grpc.rs"
    print(result.content.decode("utf-8"))
```

`gen` takes `FileDescriptorProto` messages and the names of the files to
generate; files without services are skipped, and a name with no
descriptor raises `KeyError`. `gen_file`, `ServiceGen`, `RootScope` and
`CodeWriter` are available for finer control.

## Compact output and running protoc

`grpcrsgen.prost_codegen` emits the same bindings in a compact style:

- `services_from_file(file)` describes the services of a
  `FileDescriptorProto` as `Service` and `Method` values, with type paths
  relative to the file's package;
- `generate_service(service)` returns the code for one service;
- `const_method_name(service_name, method)` gives the name of a method's
  constant.

`compile_protos(protos, includes, out_dir)` runs protoc (the binary named
by the `PROTOC` environment variable, default `protoc`; `PROTOC_INCLUDE`,
when set, is added after the given include paths), writes the service code
of the requested files to `<package>.rs` files in `out_dir`, and returns the
sorted names of all packages compiled. It raises `OSError` if protoc fails.
It does not generate message types.

## Naming helpers

```python
from grpcrsgen.naming import to_snake_case, to_camel_case, MethodType

to_snake_case("CreateIDForReq")   # "create_id_for_req"
to_camel_case("async_r_client")   # "AsyncRClient"
str(MethodType.from_streaming(True, True))  # "MethodType::Duplex"
```

## Other helpers

- `grpcrsgen.benchutil`: `Histogram` with exponentially sized buckets and
  `report(reset)` returning `HistogramData`; `CpuRecorder` whose
  `cpu_time(reset)` returns a `Sample` of wall, user, system and machine
  CPU time (CPU counters are read on Linux only, zero elsewhere);
  `dur_to_secs`, `dur_to_nanos` and `cpu_num_cores`.
- `grpcrsgen.geo`: `Point`, `Rectangle`, `Feature`, `same_point`,
  `fit_in`, `format_point`, haversine distance in metres via
  `cal_distance`, and `load_features` for a JSON feature list.
- `grpcrsgen.status`: `GrpcStatusCode` (with `from_code`, mapping unknown
  codes to `UNKNOWN`), `GrpcCallStatus`, `GrpcCompletionType` and
  `GrpcConnectivityState`.
- `grpcrsgen.clock`: `GprClockType`, `GprTimespec` (`inf_future`,
  `from_duration`), compression levels and algorithms, payload handling,
  log severity, `InitialMetadataFlags` and `WriteFlags`.
- `grpcrsgen.logutil`: `init_log(log_file)` sends root-logger records to a
  file, or to stderr when `log_file` is `None`, through a background
  thread; close the returned guard, or use it in a `with` block, to flush
  and remove the setup.

## What this package does not do

It generates binding code and provides the helpers above; it is not a gRPC
runtime. It does not open channels, serve requests or make calls, and it
has no benchmark worker, route-guide server or client, or hello-world
programs. The status and clock modules only define values; nothing in the
package sends them over the wire.