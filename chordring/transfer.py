"""File uploads between ring members over HTTPS multipart POST requests."""

from __future__ import annotations

import http.client
import ssl
import uuid
from pathlib import Path
from urllib.parse import urlsplit

MAX_ATTEMPTS = 5
FORM_FIELD = "myFile"
VALID_FILE_TYPES = frozenset({"html", "txt", "gif", "jpeg", "jpg", "css"})
POST_TIMEOUT = 10.0


def file_type(filename: str) -> str:
    """Return the extension of ``filename`` without its leading dot."""
    return Path(filename).suffix[1:]


def is_valid_file_type(kind: str) -> bool:
    """True for the file types the web front end serves and accepts."""
    return kind in VALID_FILE_TYPES


def https_address(address: str) -> str:
    """Return ``address`` with its port raised by one, where HTTPS is served."""
    parts = urlsplit("http://" + address)
    port = parts.port  # raises ValueError for a non-numeric port
    if port is None:
        raise ValueError(f"address {address!r} has no port")
    return f"{parts.hostname}:{port + 1}{parts.path}"


def client_ssl_context(
    ca_file: str = "secure_chord.crt",
    cert_file: str = "client.crt",
    key_file: str = "client.key",
) -> ssl.SSLContext:
    """Build the client TLS context: trusted CA, client certificate, no peer check."""
    context = ssl.create_default_context(cafile=ca_file)
    context.load_cert_chain(cert_file, key_file)
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return context


def _multipart_body(field: str, filename: str, data: bytes) -> tuple[bytes, str]:
    boundary = uuid.uuid4().hex
    head = (
        f"--{boundary}\r\n"
        f'Content-Disposition: form-data; name="{field}"; filename="{filename}"\r\n'
        "Content-Type: application/octet-stream\r\n\r\n"
    ).encode("utf-8")
    tail = f"\r\n--{boundary}--\r\n".encode("utf-8")
    return head + data + tail, f"multipart/form-data; boundary={boundary}"


def post_file(
    address: str, file_path: str, context: ssl.SSLContext
) -> tuple[int, bytes]:
    """Upload one file to the HTTPS front end of the node at ``address``.

    Returns the response status and body.
    """
    parts = urlsplit("https://" + https_address(address))
    path = Path(file_path)
    body, content_type = _multipart_body(FORM_FIELD, path.name, path.read_bytes())
    conn = http.client.HTTPSConnection(
        parts.hostname, parts.port, context=context, timeout=POST_TIMEOUT
    )
    try:
        conn.request("POST", "/", body, {"Content-Type": content_type})
        response = conn.getresponse()
        payload = response.read()
    finally:
        conn.close()
    print(f"HTTP {response.status} {response.reason}")
    print(payload.decode("utf-8", errors="replace"))
    print("<Sent file>")
    return response.status, payload


def send_file(
    address: str,
    file_path: str,
    context: ssl.SSLContext,
    attempts: int = MAX_ATTEMPTS,
) -> bool:
    """Try ``post_file`` up to ``attempts`` times; return whether one succeeded."""
    for _ in range(attempts):
        try:
            post_file(address, file_path, context)
        except (OSError, ValueError, http.client.HTTPException) as exc:
            print(f"Failed to send file: {exc}")
            continue
        return True
    return False