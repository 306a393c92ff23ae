"""Command handlers for corectl.

Each handler receives the bootstrapped client, the arguments after the
command name, and the stdout stream. Handlers check their own argument
counts and raise ``UsageError``; RPC failures propagate as
``TransportError`` and are reported by the dispatcher.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Mapping, Sequence, TextIO

from corectl import liveness
from corectl.client import RPCClient
from corectl.crypto.keys import decode_public_key, generate_keypair
from corectl.errors import TransportError, UnknownGuardTypeError, UsageError
from corectl.guards import GRANT_PATHS, GUARD_HELP, build_grant_request

logger = logging.getLogger(__name__)

Handler = Callable[[RPCClient, Sequence[str], TextIO], None]


@dataclass(frozen=True)
class Command:
    name: str
    handler: Handler
    summary: str = ""


def build_registry(*commands: Command) -> Mapping[str, Command]:
    registry: dict[str, Command] = {}
    for command in commands:
        if command.name in registry:
            raise ValueError(f"duplicate command: {command.name}")
        registry[command.name] = command
    return MappingProxyType(registry)


def _print_json(stdout: TextIO, payload: object) -> None:
    print(json.dumps(payload, sort_keys=True), file=stdout)


def _require_no_args(name: str, args: Sequence[str]) -> None:
    if len(args) != 0:
        raise UsageError(f"error: {name} takes no args")


def _parse_tags(pairs: Sequence[str], usage: str) -> dict[str, str]:
    tags: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise UsageError(f"invalid tag {pair!r}\n{usage}")
        tags[key] = value
    return tags


def create_block_keypair(client: RPCClient, args: Sequence[str], stdout: TextIO) -> None:
    _require_no_args("create-block-keypair", args)
    response = client.call("/mockhsm/create-block-key")
    pub = None
    if isinstance(response, dict):
        pub = response.get("pub", response.get("Pub"))
    if not isinstance(pub, str):
        raise TransportError(f"unexpected create-block-key response: {response!r}")
    try:
        pub_bytes = decode_public_key(pub)
    except ValueError as exc:
        raise TransportError(f"create-block-key: {exc}") from exc
    print(pub_bytes.hex(), file=stdout)


def reset(client: RPCClient, args: Sequence[str], stdout: TextIO) -> None:
    """Reset a remote core; cores without reset capability answer with an error."""
    _require_no_args("reset", args)
    client.call("/reset", {"Everything": True})


def _edit_authz(client: RPCClient, args: Sequence[str], action: str) -> None:
    usage = f"usage: corectl {action} [policy] [guard]\n{GUARD_HELP}"
    if len(args) != 2:
        raise UsageError(usage)
    try:
        request = build_grant_request(args[0], args[1])
    except UnknownGuardTypeError as exc:
        raise UsageError(f"{exc}\n{usage}") from exc
    logger.debug("%s %s on policy %s", action, request.guard.guard_type, request.policy)
    client.call(GRANT_PATHS[action], request.to_payload())


def grant(client: RPCClient, args: Sequence[str], stdout: TextIO) -> None:
    _edit_authz(client, args, "grant")


def revoke(client: RPCClient, args: Sequence[str], stdout: TextIO) -> None:
    _edit_authz(client, args, "revoke")


def wait(client: RPCClient, args: Sequence[str], stdout: TextIO) -> None:
    _require_no_args("wait", args)
    probes = liveness.wait_for_core(client)
    logger.debug("core ready after %d probes", probes)


def _create_with_keypair(
    client: RPCClient,
    args: Sequence[str],
    stdout: TextIO,
    *,
    name: str,
    path: str,
    extra: dict | None = None,
) -> None:
    if len(args) not in (1, 2):
        raise UsageError(f"usage: corectl {name} <client-token> [alias]")
    keypair = generate_keypair()
    print(f"xprv:{keypair.xprv}", file=stdout)
    print(f"xpub:{keypair.xpub}", file=stdout)
    item = {
        "root_xpubs": [keypair.xpub],
        "quorum": 1,
        "alias": args[1] if len(args) == 2 else None,
        "tags": {},
        "client_token": args[0],
    }
    if extra:
        item.update(extra)
    _print_json(stdout, client.call(path, [item]))


def create_account(client: RPCClient, args: Sequence[str], stdout: TextIO) -> None:
    _create_with_keypair(client, args, stdout, name="create-account", path="/create-account")


def create_asset(client: RPCClient, args: Sequence[str], stdout: TextIO) -> None:
    _create_with_keypair(
        client,
        args,
        stdout,
        name="create-asset",
        path="/create-asset",
        extra={"definition": {}},
    )


def _update_tags(client: RPCClient, args: Sequence[str], stdout: TextIO, *, name: str) -> None:
    usage = f"usage: corectl {name} <id> <key=value>..."
    if len(args) < 2:
        raise UsageError(usage)
    item = {"id": args[0], "tags": _parse_tags(args[1:], usage)}
    _print_json(stdout, client.call(f"/{name}", [item]))


def update_account_tags(client: RPCClient, args: Sequence[str], stdout: TextIO) -> None:
    _update_tags(client, args, stdout, name="update-account-tags")


def update_asset_tags(client: RPCClient, args: Sequence[str], stdout: TextIO) -> None:
    _update_tags(client, args, stdout, name="update-asset-tags")


COMMANDS = build_registry(
    Command("create-block-keypair", create_block_keypair, "create a block signing key in the mock HSM"),
    Command("reset", reset, "reset all core data"),
    Command("grant", grant, "grant a policy to a guard"),
    Command("revoke", revoke, "revoke a policy from a guard"),
    Command("wait", wait, "wait until the core answers requests"),
    Command("create-account", create_account, "create an account with a fresh key"),
    Command("update-account-tags", update_account_tags, "replace account tags"),
    Command("create-asset", create_asset, "create an asset with a fresh key"),
    Command("update-asset-tags", update_asset_tags, "replace asset tags"),
)
