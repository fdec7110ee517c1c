import email.policy
import socket
import ssl
from email.parser import BytesParser

import pytest

from chordring.transfer import (
    _multipart_body,
    client_ssl_context,
    file_type,
    https_address,
    is_valid_file_type,
    post_file,
    send_file,
)


def _closed_port():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.mark.parametrize(
    "name,expected",
    [("index.html", "html"), ("a/b/photo.jpeg", "jpeg"), ("README", ""), ("x.tar.gz", "gz")],
)
def test_file_type(name, expected):
    assert file_type(name) == expected


@pytest.mark.parametrize("kind", ["html", "txt", "gif", "jpeg", "jpg", "css"])
def test_supported_types(kind):
    assert is_valid_file_type(kind)


@pytest.mark.parametrize("kind", ["", "exe", "png", "HTML"])
def test_unsupported_types(kind):
    assert not is_valid_file_type(kind)


def test_https_address_moves_to_next_port():
    assert https_address("127.0.0.1:8080") == "127.0.0.1:8081"


def test_https_address_without_port_fails():
    with pytest.raises(ValueError):
        https_address("localhost")


def test_https_address_with_bad_port_fails():
    with pytest.raises(ValueError):
        https_address("localhost:abc")


def test_multipart_body_round_trip():
    data = b"line one\r\nline two"
    body, content_type = _multipart_body("myFile", "notes.txt", data)
    message = BytesParser(policy=email.policy.HTTP).parsebytes(
        b"Content-Type: " + content_type.encode() + b"\r\n\r\n" + body
    )
    assert message.is_multipart()
    (part,) = message.iter_parts()
    assert part.get_filename() == "notes.txt"
    assert part.get_param("name", header="content-disposition") == "myFile"
    assert part.get_payload(decode=True) == data


def test_client_context_needs_ca_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        client_ssl_context(str(tmp_path / "missing.crt"), "client.crt", "client.key")


def test_post_file_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        post_file("127.0.0.1:8080", str(tmp_path / "none.txt"), ssl.create_default_context())


def test_send_file_gives_up_on_unreachable_node(tmp_path):
    path = tmp_path / "a.txt"
    path.write_text("hello")
    port = _closed_port()
    address = f"127.0.0.1:{port - 1}"
    assert send_file(address, str(path), ssl.create_default_context(), 2) is False


def test_send_file_with_zero_attempts(tmp_path):
    path = tmp_path / "a.txt"
    path.write_text("hello")
    assert send_file("127.0.0.1:8080", str(path), ssl.create_default_context(), 0) is False