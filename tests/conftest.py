from __future__ import annotations

import datetime
import json as jsonlib
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID


def _write_key(path: Path, key) -> None:  # noqa: ANN001
    path.write_bytes(
        key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )
    )


def write_tls_material(home: Path, *, common_name: str = "corectl-test") -> tuple[Path, Path]:
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=1))
        .sign(key, hashes.SHA256())
    )
    home.mkdir(parents=True, exist_ok=True)
    cert_path = home / "tls.crt"
    key_path = home / "tls.key"
    cert_path.write_bytes(cert.public_bytes(serialization.Encoding.PEM))
    _write_key(key_path, key)
    return cert_path, key_path


def write_unrelated_key(path: Path) -> None:
    _write_key(path, ec.generate_private_key(ec.SECP256R1()))


class FakeResponse:
    def __init__(self, status_code: int = 200, body: object | None = None, text: str | None = None) -> None:
        self.status_code = status_code
        if text is None:
            text = "" if body is None else jsonlib.dumps(body)
        self.text = text
        self.content = text.encode("utf-8")

    def json(self) -> object:
        return jsonlib.loads(self.text)


class FakeSession:
    """Records requests and replays queued responses or exceptions."""

    def __init__(self, *responses: object) -> None:
        self.responses = list(responses)
        self.calls: list[dict[str, object]] = []

    def request(self, method, url, *, json=None, headers=None, auth=None, timeout=None):  # noqa: ANN001
        self.calls.append(
            {
                "method": method,
                "url": url,
                "json": json,
                "headers": headers,
                "auth": auth,
                "timeout": timeout,
            }
        )
        result = self.responses.pop(0) if self.responses else FakeResponse()
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def chainmint_home(tmp_path, monkeypatch) -> Path:
    home = tmp_path / "chainmint"
    home.mkdir()
    monkeypatch.setenv("CHAINMINT_HOME", str(home))
    monkeypatch.delenv("CHAINMINT_URL", raising=False)
    monkeypatch.delenv("CHAINMINT_ACCESS_TOKEN", raising=False)
    return home
