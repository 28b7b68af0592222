"""
Peer CLI Transport
==================

Talks to a Fabric network by driving the ``peer`` command line tool.

On ``open`` the wallet identity is materialised into a private, temporary
MSP directory together with the TLS roots named by the connection profile.
Submits run ``peer chaincode invoke --waitForEvent`` against the endorsing
peers; evaluates run ``peer chaincode query`` against the organization's
first peer. The temporary directory is removed on ``close``.

Version: 0.1.0
"""

import asyncio
import json
import os
import re
import shutil
import tempfile
from collections.abc import Sequence
from pathlib import Path

from shared.config import FabricMode
from shared.fabric.exceptions import GatewayConnectionError, TransactionError
from shared.fabric.profile import ConnectionProfile, Endpoint, Organization
from shared.fabric.transport import DiscoveryOptions, LedgerTransport
from shared.fabric.wallet import Identity
from shared.logging import get_logger

logger = get_logger(__name__)

_QUOTED = r'"((?:[^"\\]|\\.)*)"'
_MESSAGE_RE = re.compile(r"message:" + _QUOTED)
_PAYLOAD_RE = re.compile(r"payload:" + _QUOTED)
_SAFE_NAME_RE = re.compile(r"[^A-Za-z0-9._-]")


def _unescape(text: str) -> bytes:
    """Decode a protobuf text-format string literal body."""
    return text.encode("ascii", "backslashreplace").decode("unicode_escape").encode("latin-1", "backslashreplace")


def parse_error_message(stderr: str, returncode: int) -> str:
    """
    Extract the most useful error text from ``peer`` output.

    Chaincode errors are reported as ``... response: status:500
    message:"<chaincode error>"``; that message is returned verbatim.
    """
    match = _MESSAGE_RE.search(stderr)
    if match:
        return _unescape(match.group(1)).decode("utf-8", errors="replace")

    error_lines = [line for line in stderr.splitlines() if line.startswith("Error:")]
    if error_lines:
        return error_lines[-1][len("Error:") :].strip()

    return stderr.strip() or f"peer exited with status {returncode}"


def parse_invoke_payload(stderr: str) -> bytes:
    """Extract the return payload from ``peer chaincode invoke`` output."""
    match = _PAYLOAD_RE.search(stderr)
    if match is None:
        return b""
    return _unescape(match.group(1))


class PeerCliTransport(LedgerTransport):
    """Ledger transport backed by the Fabric ``peer`` binary."""

    def __init__(
        self,
        peer_binary: str = "peer",
        fabric_cfg_path: Path | None = None,
    ) -> None:
        self.peer_binary = peer_binary
        self.fabric_cfg_path = fabric_cfg_path

        self._profile: ConnectionProfile | None = None
        self._identity: Identity | None = None
        self._organization: Organization | None = None
        self._discovery = DiscoveryOptions()
        self._workdir: Path | None = None
        self._tls_files: dict[str, Path] = {}

    @property
    def mode(self) -> FabricMode:
        return FabricMode.FABRIC

    # =========================================================================
    # Connection
    # =========================================================================

    async def open(
        self,
        profile: ConnectionProfile,
        identity: Identity,
        discovery: DiscoveryOptions,
    ) -> None:
        organization = profile.organization_for_msp(identity.msp_id) or profile.client_organization()
        if organization is None:
            raise GatewayConnectionError(
                f"No organization in connection profile for MSP {identity.msp_id}"
            )
        if not profile.peers_for_organization(organization):
            raise GatewayConnectionError(
                f"Connection profile lists no peers for MSP {organization.mspid}"
            )

        self._profile = profile
        self._identity = identity
        self._organization = organization
        self._discovery = discovery

        try:
            workdir = await asyncio.to_thread(tempfile.mkdtemp, prefix="fabric-gateway-")
            self._workdir = Path(workdir)
            await asyncio.to_thread(
                self._materialise, self._workdir, profile, identity, organization
            )

            # Handshake: fail fast if the CLI is unusable
            returncode, _, stderr = await self._run([self.peer_binary, "version"])
            if returncode != 0:
                raise GatewayConnectionError(parse_error_message(stderr, returncode))
        except (OSError, UnicodeDecodeError) as e:
            await self.close()
            raise GatewayConnectionError(f"Unable to prepare credentials: {e}") from e
        except BaseException:
            # Credentials must not outlive a failed or cancelled open
            await self.close()
            raise

        logger.info(
            "peer_cli_transport_opened",
            msp_id=identity.msp_id,
            gateway_peer=self._gateway_peer()[0],
            discovery=discovery.enabled,
            as_localhost=discovery.as_localhost,
        )

    def _materialise(
        self,
        workdir: Path,
        profile: ConnectionProfile,
        identity: Identity,
        organization: Organization,
    ) -> None:
        """Write the MSP and TLS roots into the private working directory."""
        ca_pem = profile.ca_certificate_for(organization)
        if ca_pem is None:
            raise GatewayConnectionError(
                f"Connection profile has no CA certificate for MSP {organization.mspid}"
            )

        msp = workdir / "msp"
        for sub in ("signcerts", "keystore", "cacerts"):
            (msp / sub).mkdir(parents=True)

        (msp / "signcerts" / "cert.pem").write_text(
            identity.credentials.certificate, encoding="utf-8"
        )
        key_path = msp / "keystore" / "priv_sk"
        key_path.write_text(identity.credentials.private_key, encoding="utf-8")
        os.chmod(key_path, 0o600)
        (msp / "cacerts" / "ca.pem").write_text(ca_pem, encoding="utf-8")

        tls_dir = workdir / "tls"
        tls_dir.mkdir()
        endpoints = {**profile.peers, **profile.orderers}
        for name, endpoint in endpoints.items():
            if endpoint.tls_ca_certs is None:
                continue
            pem = endpoint.tls_ca_certs.read_pem()
            if pem:
                path = tls_dir / f"{_SAFE_NAME_RE.sub('_', name)}.pem"
                path.write_text(pem, encoding="utf-8")
                self._tls_files[name] = path

    async def close(self) -> None:
        if self._workdir is not None:
            await asyncio.to_thread(shutil.rmtree, self._workdir, True)
            logger.debug("peer_cli_transport_closed", workdir=str(self._workdir))
        self._workdir = None
        self._tls_files = {}
        self._profile = None
        self._identity = None
        self._organization = None

    # =========================================================================
    # Topology
    # =========================================================================

    def _require_open(self) -> tuple[ConnectionProfile, Organization]:
        if self._profile is None or self._organization is None or self._workdir is None:
            raise GatewayConnectionError("Peer CLI transport is not connected")
        return self._profile, self._organization

    def _gateway_peer(self) -> tuple[str, Endpoint]:
        profile, organization = self._require_open()
        return profile.peers_for_organization(organization)[0]

    def endorsing_peers(self, channel: str) -> list[tuple[str, Endpoint]]:
        """
        Peers asked to endorse a submit.

        With discovery enabled every organization in the profile contributes
        its first peer. Without discovery the channel's endorsing peers are
        used, falling back to the client organization's peers.
        """
        profile, organization = self._require_open()

        if self._discovery.enabled:
            peers = []
            for org in profile.organizations.values():
                org_peers = profile.peers_for_organization(org)
                if org_peers:
                    peers.append(org_peers[0])
            return peers

        channel_section = profile.channels.get(channel)
        if channel_section:
            peers = [
                (name, profile.peers[name])
                for name, roles in channel_section.peers.items()
                if roles.endorsing_peer and name in profile.peers
            ]
            if peers:
                return peers
        return profile.peers_for_organization(organization)

    def _orderer_args(self, channel: str) -> list[str]:
        profile, _ = self._require_open()
        channel_section = profile.channels.get(channel)
        names = channel_section.orderers if channel_section and channel_section.orderers else list(profile.orderers)
        names = [n for n in names if n in profile.orderers]
        if not names:
            # The CLI falls back to the orderer recorded in the channel config
            return []

        name = names[0]
        orderer = profile.orderers[name]
        args = [
            "-o",
            orderer.address(self._discovery.as_localhost),
            "--ordererTLSHostnameOverride",
            orderer.ssl_target_name,
        ]
        if orderer.tls_enabled:
            args.append("--tls")
            if name in self._tls_files:
                args.extend(["--cafile", str(self._tls_files[name])])
        return args

    def _env(self) -> dict[str, str]:
        name, peer = self._gateway_peer()
        if self._identity is None or self._workdir is None:
            raise GatewayConnectionError("Peer CLI transport is not connected")

        env = os.environ.copy()
        env.update({
            "CORE_PEER_LOCALMSPID": self._identity.msp_id,
            "CORE_PEER_MSPCONFIGPATH": str(self._workdir / "msp"),
            "CORE_PEER_ADDRESS": peer.address(self._discovery.as_localhost),
            "CORE_PEER_TLS_ENABLED": "true" if peer.tls_enabled else "false",
        })
        if peer.tls_enabled and name in self._tls_files:
            env["CORE_PEER_TLS_ROOTCERT_FILE"] = str(self._tls_files[name])
        if self._discovery.as_localhost:
            env["CORE_PEER_TLS_SERVERHOSTOVERRIDE"] = peer.ssl_target_name
        if self.fabric_cfg_path is not None:
            env["FABRIC_CFG_PATH"] = str(self.fabric_cfg_path)
        return env

    # =========================================================================
    # Transactions
    # =========================================================================

    @staticmethod
    def _ctor(transaction: str, args: Sequence[str]) -> str:
        return json.dumps({"function": transaction, "Args": list(args)})

    async def _run(self, cmd: list[str]) -> tuple[int, bytes, str]:
        env = self._env() if self._workdir is not None else None
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
        except OSError as e:
            raise GatewayConnectionError(
                f"Unable to run peer CLI {self.peer_binary}: {e.strerror or e}"
            ) from e

        stdout, stderr = await process.communicate()
        returncode = process.returncode if process.returncode is not None else -1
        return returncode, stdout, stderr.decode("utf-8", errors="replace")

    async def submit(
        self,
        channel: str,
        chaincode: str,
        transaction: str,
        args: Sequence[str],
    ) -> bytes:
        cmd = [
            self.peer_binary, "chaincode", "invoke",
            "-C", channel,
            "-n", chaincode,
            "-c", self._ctor(transaction, args),
            "--waitForEvent",
            *self._orderer_args(channel),
        ]
        for name, peer in self.endorsing_peers(channel):
            cmd.extend(["--peerAddresses", peer.address(self._discovery.as_localhost)])
            if peer.tls_enabled and name in self._tls_files:
                cmd.extend(["--tlsRootCertFiles", str(self._tls_files[name])])

        returncode, _, stderr = await self._run(cmd)
        if returncode != 0:
            raise TransactionError(transaction, parse_error_message(stderr, returncode))
        return parse_invoke_payload(stderr)

    async def evaluate(
        self,
        channel: str,
        chaincode: str,
        transaction: str,
        args: Sequence[str],
    ) -> bytes:
        cmd = [
            self.peer_binary, "chaincode", "query",
            "-C", channel,
            "-n", chaincode,
            "-c", self._ctor(transaction, args),
        ]

        returncode, stdout, stderr = await self._run(cmd)
        if returncode != 0:
            raise TransactionError(transaction, parse_error_message(stderr, returncode))
        # The CLI prints the payload followed by a newline
        return stdout[:-1] if stdout.endswith(b"\n") else stdout
