import pytest

from grpcrsgen.naming import MethodType, fq_grpc, split_name, to_camel_case, to_snake_case

# Each row: the name as written in a proto file, its snake_case form, its CamelCase form.
NAME_TABLE = [
    ("AsyncRequest", "async_request", "AsyncRequest"),
    ("asyncRequest", "async_request", "AsyncRequest"),
    ("async_request", "async_request", "AsyncRequest"),
    ("createID", "create_id", "CreateId"),
    ("AsyncRClient", "async_r_client", "AsyncRClient"),
    ("async_r_client", "async_r_client", "AsyncRClient"),
    ("CreateIDForReq", "create_id_for_req", "CreateIdForReq"),
    ("Create_ID_For_Req", "create_id_for_req", "CreateIdForReq"),
    ("Create_ID_For__Req", "create_id_for_req", "CreateIdForReq"),
    ("ID", "id", "Id"),
    ("id", "id", "Id"),
]


@pytest.mark.parametrize(("name", "snake", "camel"), NAME_TABLE)
def test_snake_case_table(name, snake, camel):
    assert to_snake_case(name) == snake


@pytest.mark.parametrize(("name", "snake", "camel"), NAME_TABLE)
def test_camel_case_table(name, snake, camel):
    assert to_camel_case(name) == camel


def test_split_name_words():
    assert list(split_name("CreateIDForReq")) == ["Create", "ID", "For", "Req"]


def test_split_name_empty():
    assert list(split_name("")) == []


def test_leading_underscores_skipped():
    assert to_snake_case("__AsyncRequest") == "async_request"


def test_camel_case_trailing_underscore_raises():
    with pytest.raises(ValueError):
        to_camel_case("abc_")


def test_fq_grpc():
    assert fq_grpc("Method") == "::grpcio::Method"
    assert fq_grpc("CallOption::default()") == "::grpcio::CallOption::default()"


@pytest.mark.parametrize(
    ("client", "server", "expected"),
    [
        (False, False, MethodType.UNARY),
        (True, False, MethodType.CLIENT_STREAMING),
        (False, True, MethodType.SERVER_STREAMING),
        (True, True, MethodType.DUPLEX),
    ],
)
def test_method_type_from_streaming(client, server, expected):
    assert MethodType.from_streaming(client, server) is expected


@pytest.mark.parametrize(
    ("method_type", "text"),
    [
        (MethodType.UNARY, "MethodType::Unary"),
        (MethodType.CLIENT_STREAMING, "MethodType::ClientStreaming"),
        (MethodType.SERVER_STREAMING, "MethodType::ServerStreaming"),
        (MethodType.DUPLEX, "MethodType::Duplex"),
    ],
)
def test_method_type_str(method_type, text):
    assert str(method_type) == text