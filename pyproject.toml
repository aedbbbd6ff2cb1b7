[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "grpcrsgen"
version = "0.1.0"
description = "protoc plugin and library that generates gRPC client and server bindings from protobuf service descriptors"
requires-python = ">=3.10"
dependencies = [
    "protobuf",
]
keywords = ["grpc", "protobuf", "protoc", "plugin", "code generation"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Code Generators",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
protoc-gen-grpcrs = "grpcrsgen.plugin:main"

[tool.hatch.build.targets.wheel]
packages = ["grpcrsgen"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
