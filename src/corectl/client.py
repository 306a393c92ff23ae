"""RPC client for core endpoints and its TLS-aware bootstrap."""

from __future__ import annotations

import logging
import os
import socket
from dataclasses import dataclass
from pathlib import Path

import requests
from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from requests.adapters import HTTPAdapter
from urllib3.connection import HTTPConnection

from corectl._build import client_version
from corectl.errors import ConfigError, RemoteStatusError, ResponseDecodeError, TransportError
from corectl.schemas import decode_error_response

logger = logging.getLogger(__name__)

HOME_ENV_VAR = "CHAINMINT_HOME"
TLS_CERT_FILENAME = "tls.crt"
TLS_KEY_FILENAME = "tls.key"


@dataclass(frozen=True)
class TransportSettings:
    dial_timeout: float = 30.0
    keep_alive: float = 30.0
    max_idle_conns: int = 100
    idle_conn_timeout: float = 90.0
    tls_handshake_timeout: float = 10.0
    expect_continue_timeout: float = 1.0
    read_timeout: float | None = None

    @property
    def connect_timeout(self) -> float:
        # urllib3 runs the TLS handshake under the connect timeout.
        return self.dial_timeout + self.tls_handshake_timeout


DEFAULT_TRANSPORT = TransportSettings()


@dataclass(frozen=True)
class TLSConfig:
    cert_file: Path
    key_file: Path
    subject: str


def home_dir_from_environment() -> Path:
    configured = os.getenv(HOME_ENV_VAR)
    if configured and configured.strip():
        return Path(configured.strip())
    return Path.home() / ".chainmint"


def load_tls_config(cert_file: str | Path, key_file: str | Path) -> TLSConfig | None:
    """Load a client certificate and key pair.

    Returns ``None`` when either file does not exist; the caller then talks
    plaintext. Files that exist but cannot be read or do not form a matching
    pair raise ``ConfigError``.
    """
    cert_path = Path(cert_file)
    key_path = Path(key_file)
    if not cert_path.exists() or not key_path.exists():
        return None

    try:
        cert_pem = cert_path.read_bytes()
        key_pem = key_path.read_bytes()
    except OSError as exc:
        raise ConfigError(f"cannot read TLS material: {exc}") from exc

    try:
        certificate = x509.load_pem_x509_certificate(cert_pem)
    except (UnsupportedAlgorithm, ValueError) as exc:
        raise ConfigError(f"invalid certificate in {cert_path}: {exc}") from exc
    try:
        private_key = serialization.load_pem_private_key(key_pem, password=None)
    except (TypeError, UnsupportedAlgorithm, ValueError) as exc:
        raise ConfigError(f"invalid private key in {key_path}: {exc}") from exc

    public_format = serialization.PublicFormat.SubjectPublicKeyInfo
    try:
        cert_public = certificate.public_key().public_bytes(serialization.Encoding.DER, public_format)
    except UnsupportedAlgorithm as exc:
        raise ConfigError(f"unsupported certificate key in {cert_path}: {exc}") from exc
    key_public = private_key.public_key().public_bytes(serialization.Encoding.DER, public_format)
    if cert_public != key_public:
        raise ConfigError(f"private key {key_path} does not match certificate {cert_path}")

    return TLSConfig(
        cert_file=cert_path,
        key_file=key_path,
        subject=certificate.subject.rfc4514_string(),
    )


class KeepAliveAdapter(HTTPAdapter):
    """HTTPAdapter that enables TCP keep-alive on pooled connections."""

    def __init__(self, settings: TransportSettings = DEFAULT_TRANSPORT) -> None:
        self.settings = settings
        super().__init__(
            pool_connections=settings.max_idle_conns,
            pool_maxsize=settings.max_idle_conns,
            max_retries=0,
        )

    def _socket_options(self) -> list[tuple[int, int, int]]:
        options = list(HTTPConnection.default_socket_options)
        options.append((socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1))
        interval = int(self.settings.keep_alive)
        if hasattr(socket, "TCP_KEEPIDLE"):
            options.append((socket.IPPROTO_TCP, socket.TCP_KEEPIDLE, interval))
        if hasattr(socket, "TCP_KEEPINTVL"):
            options.append((socket.IPPROTO_TCP, socket.TCP_KEEPINTVL, interval))
        return options

    def init_poolmanager(self, connections, maxsize, block=False, **pool_kwargs):  # noqa: ANN001
        pool_kwargs["socket_options"] = self._socket_options()
        super().init_poolmanager(connections, maxsize, block=block, **pool_kwargs)


def build_session(
    tls: TLSConfig | None = None,
    settings: TransportSettings = DEFAULT_TRANSPORT,
) -> requests.Session:
    session = requests.Session()
    adapter = KeepAliveAdapter(settings)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    if tls is not None:
        session.cert = (str(tls.cert_file), str(tls.key_file))
    logger.debug(
        "transport: dial=%ss keepalive=%ss max_idle=%d idle_timeout=%ss "
        "handshake=%ss expect_continue=%ss",
        settings.dial_timeout,
        settings.keep_alive,
        settings.max_idle_conns,
        settings.idle_conn_timeout,
        settings.tls_handshake_timeout,
        settings.expect_continue_timeout,
    )
    return session


def upgrade_scheme(url: str) -> str:
    if url.startswith("http:"):
        return "https:" + url[len("http:"):]
    return url


@dataclass
class RPCClient:
    base_url: str
    session: requests.Session | None = None
    access_token: str | None = None
    settings: TransportSettings = DEFAULT_TRANSPORT

    def __post_init__(self) -> None:
        if self.session is None:
            self.session = build_session(settings=self.settings)

    def _url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def _auth(self) -> tuple[str, str] | None:
        if not self.access_token:
            return None
        user, _, secret = self.access_token.partition(":")
        return user, secret

    def call(self, path: str, payload: object | None = None, *, decode: bool = True) -> object | None:
        """POST ``payload`` to ``path``.

        With ``decode=False`` a 2xx answer is returned as ``None`` without
        looking at the body.
        """
        url = self._url(path)
        logger.debug("POST %s", url)
        try:
            response = self.session.request(
                "POST",
                url,
                json=payload,
                headers={"User-Agent": f"corectl/{client_version()}"},
                auth=self._auth(),
                timeout=(self.settings.connect_timeout, self.settings.read_timeout),
            )
        except requests.RequestException as exc:
            logger.info("request to %s failed: %s", url, exc)
            raise TransportError(f"{path}: {exc}") from exc

        if response.status_code // 100 != 2:
            body: object | None
            try:
                body = response.json()
            except ValueError:
                body = None
            error_data = decode_error_response(body)
            logger.info("%s returned status %d", url, response.status_code)
            if error_data is not None:
                message = f"{path}: status {response.status_code}: {error_data.message}"
            else:
                message = f"{path}: status {response.status_code}: {response.text.strip()}"
            raise RemoteStatusError(
                message,
                status_code=response.status_code,
                error_data=error_data,
                body=body,
            )

        if not decode or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ResponseDecodeError(f"{path}: invalid JSON response: {exc}") from exc


def bootstrap_client(
    core_url: str,
    home_dir: str | Path,
    *,
    access_token: str | None = None,
    settings: TransportSettings = DEFAULT_TRANSPORT,
) -> RPCClient:
    """Build a client for ``core_url``, switching to TLS when local material exists.

    The presence of ``tls.crt``/``tls.key`` under ``home_dir`` is the only
    trust signal: a plain ``http:`` URL is upgraded to ``https:`` when they
    are found. No network call is made.
    """
    home = Path(home_dir)
    tls = load_tls_config(home / TLS_CERT_FILENAME, home / TLS_KEY_FILENAME)
    if tls is None:
        logger.debug("no TLS material under %s; using %s", home, core_url)
        return RPCClient(base_url=core_url, access_token=access_token, settings=settings)

    url = upgrade_scheme(core_url)
    logger.debug("loaded TLS client certificate %s; using %s", tls.subject, url)
    return RPCClient(
        base_url=url,
        session=build_session(tls, settings),
        access_token=access_token,
        settings=settings,
    )


__all__ = [
    "DEFAULT_TRANSPORT",
    "KeepAliveAdapter",
    "RPCClient",
    "TLSConfig",
    "TransportSettings",
    "bootstrap_client",
    "build_session",
    "home_dir_from_environment",
    "load_tls_config",
    "upgrade_scheme",
]
