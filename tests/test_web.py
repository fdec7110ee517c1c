import http.client
import threading
import time
from http.server import ThreadingHTTPServer

import pytest

from chordring.command import Command
from chordring.hashing import hash_key
from chordring.node import Node
from chordring.server import Server
from chordring.web import FileRequestHandler, make_https_server

BOUNDARY = "testboundary"


@pytest.fixture
def web(tmp_path):
    node = Node("1", host="127.0.0.1", backup_dir=tmp_path / "backup")
    command = Command(node=node, server=Server(node))
    httpd = ThreadingHTTPServer(("127.0.0.1", 0), FileRequestHandler)
    httpd.command = command
    httpd.root = tmp_path
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    yield httpd, tmp_path, node
    httpd.shutdown()
    httpd.server_close()


def request(httpd, method, path, body=None, headers=None):
    conn = http.client.HTTPConnection("127.0.0.1", httpd.server_address[1], timeout=10)
    try:
        conn.request(method, path, body=body, headers=headers or {})
        response = conn.getresponse()
        return response.status, response.read()
    finally:
        conn.close()


def multipart(filename, data, field="myFile"):
    body = (
        f"--{BOUNDARY}\r\n"
        f'Content-Disposition: form-data; name="{field}"; filename="{filename}"\r\n'
        "Content-Type: application/octet-stream\r\n\r\n"
    ).encode() + data + f"\r\n--{BOUNDARY}--\r\n".encode()
    return body, {"Content-Type": f"multipart/form-data; boundary={BOUNDARY}"}


def test_main_page(web):
    httpd, _, _ = web
    status, body = request(httpd, "GET", "/")
    assert status == 200
    assert body == b"Hello, Welcome to the Main Page"


def test_unsupported_file_type(web):
    httpd, _, _ = web
    status, body = request(httpd, "GET", "/program.exe")
    assert status == 400
    assert body.strip() == b"File type not supported"


def test_serves_local_file(web):
    httpd, root, _ = web
    (root / "a.txt").write_bytes(b"stored contents")
    status, body = request(httpd, "GET", "/a.txt")
    assert status == 200
    assert body == b"stored contents"


def test_other_methods_not_supported(web):
    httpd, _, _ = web
    status, body = request(httpd, "PUT", "/a.txt", body=b"")
    assert status == 501
    assert b"<PUT>" in body


def test_post_without_form(web):
    httpd, _, _ = web
    status, body = request(
        httpd, "POST", "/", body=b"plain", headers={"Content-Type": "text/plain"}
    )
    assert status == 500
    assert body.startswith(b"Error on retrieving file <POST>")


def test_post_bad_type(web):
    httpd, root, _ = web
    body, headers = multipart("b.exe", b"data")
    status, reply = request(httpd, "POST", "/", body=body, headers=headers)
    assert status == 400
    assert not (root / "b.exe").exists()


def test_post_stores_file_and_records_key(web):
    httpd, root, node = web
    file_key = str(hash_key("c.txt"))
    node.data[file_key] = "old"
    body, headers = multipart("c.txt", b"uploaded bytes")
    status, reply = request(httpd, "POST", "/", body=body, headers=headers)
    assert status == 201
    assert reply == b"Successfully Uploaded File,\nFeel free to visit again!!"
    assert (root / "c.txt").read_bytes() == b"uploaded bytes"
    deadline = time.monotonic() + 10
    while node.data[file_key] != "c.txt" and time.monotonic() < deadline:
        time.sleep(0.05)
    assert node.data[file_key] == "c.txt"


def test_proxy_without_client_certificates(web, monkeypatch):
    httpd, root, _ = web
    monkeypatch.chdir(root)
    status, body = request(httpd, "GET", "/missing.txt")
    assert status == 500
    assert body.startswith(b"Error in setting https client for core Server")


def test_https_server_needs_certificates(tmp_path):
    with pytest.raises(FileNotFoundError):
        make_https_server(
            ("127.0.0.1", 0),
            Command(),
            str(tmp_path / "none.crt"),
            str(tmp_path / "none.key"),
            str(tmp_path / "ca.crt"),
        )