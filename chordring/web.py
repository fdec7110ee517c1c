"""HTTPS front end that stores uploaded files and serves or proxies them."""

from __future__ import annotations

import email.parser
import email.policy
import http.client
import mimetypes
import posixpath
import ssl
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from urllib.parse import unquote, urlsplit

from chordring import rpc
from chordring.hashing import hash_key
from chordring.transfer import (
    FORM_FIELD,
    client_ssl_context,
    file_type,
    https_address,
    is_valid_file_type,
    send_file,
)

_SKIPPED_HEADERS = frozenset({"transfer-encoding", "connection", "content-length"})


class _FileServer(ThreadingHTTPServer):
    daemon_threads = True
    allow_reuse_address = True


class FileRequestHandler(BaseHTTPRequestHandler):
    """Handles GET and POST requests for files held by the ring.

    The server object must carry a ``command`` attribute and may carry a
    ``root`` directory for stored files.
    """

    def log_message(self, format, *args):  # noqa: A002
        pass

    @property
    def _command(self):
        return self.server.command

    @property
    def _root(self) -> Path:
        return Path(getattr(self.server, "root", "."))

    def _url_path(self) -> str:
        return unquote(urlsplit(self.path).path)

    def _base(self) -> str:
        return posixpath.basename(self._url_path().rstrip("/")) or "/"

    def _reply(self, code: int, body: bytes, content_type: str) -> None:
        self.send_response(code)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _error(self, code: int, message: str) -> None:
        self._reply(code, (message + "\n").encode("utf-8"), "text/plain; charset=utf-8")

    def _dump_request(self) -> None:
        print(f"{self.requestline}\r\n{self.headers}")

    def _context(self) -> ssl.SSLContext:
        context = self._command.ssl_context
        return context if context is not None else client_ssl_context()

    def _serve_file(self, path: Path) -> None:
        try:
            data = path.read_bytes()
        except OSError:
            self._error(404, "404 page not found")
            return
        kind = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        self._reply(200, data, kind)

    def _not_supported(self) -> None:
        self._error(501, f"Request Method Is Currently Not Supported <{self.command}>")

    do_PUT = do_DELETE = do_PATCH = do_HEAD = do_OPTIONS = _not_supported

    def do_GET(self) -> None:
        self._dump_request()
        base = self._base()
        if base == "/":
            self._reply(
                200, b"Hello, Welcome to the Main Page", "text/plain; charset=utf-8"
            )
            return
        if not is_valid_file_type(file_type(base)):
            self._error(400, "File type not supported")
            return
        if (self._root / base).exists():
            self._serve_file(self._root / self._url_path().lstrip("/"))
            return
        print("File does not exist")
        self._proxy(base)

    def _proxy(self, base: str) -> None:
        node = self._command.node
        forward_to = rpc.find(node.address, base)
        if forward_to == node.address:
            self._serve_file(self._root / self._url_path().lstrip("/"))
            return
        try:
            context = self._context()
        except (OSError, ssl.SSLError) as exc:
            self._error(500, f"Error in setting https client for core Server: {exc}")
            return
        try:
            target = urlsplit("https://" + https_address(forward_to))
            conn = http.client.HTTPSConnection(
                target.hostname, target.port, context=context, timeout=10
            )
            try:
                conn.request("GET", self.path)
                response = conn.getresponse()
                body = response.read()
                headers = response.getheaders()
            finally:
                conn.close()
        except (OSError, ValueError, http.client.HTTPException) as exc:
            self._error(400, f"Failure in forwarding request: {exc}")
            return
        self.send_response(response.status)
        for name, value in headers:
            if name.lower() not in _SKIPPED_HEADERS:
                self.send_header(name, value)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _read_upload(self) -> tuple[str, bytes]:
        content_type = self.headers.get("Content-Type", "")
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length)
        message = email.parser.BytesParser(policy=email.policy.HTTP).parsebytes(
            b"Content-Type: " + content_type.encode("latin-1") + b"\r\n\r\n" + body
        )
        if not message.is_multipart():
            raise ValueError("request Content-Type isn't multipart/form-data")
        for part in message.iter_parts():
            if part.get_param("name", header="content-disposition") == FORM_FIELD:
                filename = part.get_filename()
                if filename:
                    return filename, part.get_payload(decode=True) or b""
        raise ValueError("no such file")

    def do_POST(self) -> None:
        self._dump_request()
        try:
            filename, data = self._read_upload()
        except ValueError as exc:
            self._error(500, f"Error on retrieving file <POST>: {exc}")
            return
        if not is_valid_file_type(file_type(filename)):
            self._error(400, "File type not supported")
            return
        name = Path(filename).name
        target = self._root / name
        try:
            target.write_bytes(data)
        except OSError as exc:
            self._error(500, f"Error on writing to file <POST>: {exc}")
            return
        self._reply(
            201,
            b"Successfully Uploaded File,\nFeel free to visit again!!",
            "text/plain; charset=utf-8",
        )
        self._place_in_ring(name, target)

    def _place_in_ring(self, name: str, path: Path) -> None:
        node = self._command.node
        file_key = str(hash_key(name))
        belongs_to = rpc.find(node.address, file_key)
        if belongs_to == node.address or file_key in node.data:
            print("<Received file>")
            node.data[file_key] = name
            return
        print("<Received then sent file>")
        try:
            context = self._context()
        except (OSError, ssl.SSLError) as exc:
            print("Error on setting https client;", exc)
            return
        send_file(belongs_to, str(path), context)


def make_https_server(
    address: tuple[str, int],
    command,
    cert_file: str = "secure_chord.crt",
    key_file: str = "secure_chord.key",
    ca_file: str = "client.crt",
) -> ThreadingHTTPServer:
    """Build the TLS file server; client certificates are checked when given."""
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    context.load_cert_chain(cert_file, key_file)
    context.load_verify_locations(cafile=ca_file)
    context.verify_mode = ssl.CERT_OPTIONAL
    server = _FileServer(address, FileRequestHandler, bind_and_activate=False)
    try:
        server.socket = context.wrap_socket(server.socket, server_side=True)
        server.server_bind()
        server.server_activate()
    except OSError:
        server.server_close()
        raise
    server.command = command
    server.root = Path(".")
    return server