"""gRPC binding generator for protobuf services, with benchmark, geometry, logging and constant helpers."""

__version__ = "0.1.0"