"""
Connection Profile
==================

Typed view of a Fabric common connection profile (the ``connection.json``
produced by the test network's ``ccp-generate.sh``).

Only the parts the bridge needs are modelled; everything else in the
document is accepted and ignored.

Version: 0.1.0
"""

import asyncio
import json
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from shared.fabric.exceptions import ConnectionProfileError
from shared.logging import get_logger

logger = get_logger(__name__)


class TLSCACerts(BaseModel):
    """TLS CA certificate, given inline (``pem``) or as a file (``path``)."""

    model_config = ConfigDict(extra="ignore")

    pem: str | list[str] | None = None
    path: str | None = None

    def read_pem(self) -> str | None:
        """Return the PEM text, reading it from disk if given as a path."""
        if isinstance(self.pem, list):
            return "\n".join(p.strip() for p in self.pem if p.strip()) or None
        if self.pem:
            return self.pem
        if self.path:
            return Path(self.path).expanduser().read_text(encoding="utf-8")
        return None


class Endpoint(BaseModel):
    """Peer or orderer endpoint."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    url: str
    tls_ca_certs: TLSCACerts | None = Field(default=None, alias="tlsCACerts")
    grpc_options: dict[str, Any] = Field(default_factory=dict, alias="grpcOptions")

    @property
    def host(self) -> str:
        """Host name from the endpoint URL."""
        return urlsplit(self.url).hostname or ""

    @property
    def port(self) -> int | None:
        """Port from the endpoint URL."""
        return urlsplit(self.url).port

    @property
    def tls_enabled(self) -> bool:
        """Whether the endpoint speaks TLS (``grpcs://``)."""
        return self.url.startswith("grpcs://")

    @property
    def ssl_target_name(self) -> str:
        """Host name the server certificate is issued for."""
        return str(
            self.grpc_options.get("ssl-target-name-override")
            or self.grpc_options.get("hostnameOverride")
            or self.host
        )

    def address(self, as_localhost: bool = False) -> str:
        """``host:port`` address, optionally rewritten to ``localhost``."""
        host = "localhost" if as_localhost else self.host
        return f"{host}:{self.port}" if self.port else host


class Organization(BaseModel):
    """Organization entry."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    mspid: str
    peers: list[str] = Field(default_factory=list)
    certificate_authorities: list[str] = Field(
        default_factory=list, alias="certificateAuthorities"
    )


class CertificateAuthority(BaseModel):
    """Certificate authority entry."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    url: str | None = None
    ca_name: str | None = Field(default=None, alias="caName")
    tls_ca_certs: TLSCACerts | None = Field(default=None, alias="tlsCACerts")


class ChannelPeer(BaseModel):
    """Per-channel role flags for a peer."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    endorsing_peer: bool = Field(default=True, alias="endorsingPeer")
    chaincode_query: bool = Field(default=True, alias="chaincodeQuery")


class Channel(BaseModel):
    """Channel entry."""

    model_config = ConfigDict(extra="ignore")

    orderers: list[str] = Field(default_factory=list)
    peers: dict[str, ChannelPeer] = Field(default_factory=dict)


class ClientSection(BaseModel):
    """Client section naming the organization the application belongs to."""

    model_config = ConfigDict(extra="ignore")

    organization: str | None = None


class ConnectionProfile(BaseModel):
    """Fabric common connection profile."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str = ""
    version: str = ""
    client: ClientSection = Field(default_factory=ClientSection)
    organizations: dict[str, Organization] = Field(default_factory=dict)
    peers: dict[str, Endpoint] = Field(default_factory=dict)
    orderers: dict[str, Endpoint] = Field(default_factory=dict)
    certificate_authorities: dict[str, CertificateAuthority] = Field(
        default_factory=dict, alias="certificateAuthorities"
    )
    channels: dict[str, Channel] = Field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConnectionProfile":
        """Build a profile from a decoded JSON document."""
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConnectionProfileError(f"Invalid connection profile: {e}") from e

    def organization_for_msp(self, msp_id: str) -> Organization | None:
        """Find the organization whose MSP ID matches."""
        for org in self.organizations.values():
            if org.mspid == msp_id:
                return org
        return None

    def client_organization(self) -> Organization | None:
        """Organization named in the client section."""
        if self.client.organization:
            return self.organizations.get(self.client.organization)
        return None

    def peers_for_organization(self, org: Organization) -> list[tuple[str, Endpoint]]:
        """Peers belonging to an organization, in profile order."""
        return [(name, self.peers[name]) for name in org.peers if name in self.peers]

    def ca_certificate_for(self, org: Organization) -> str | None:
        """
        Root certificate for an organization's MSP.

        Prefers the organization's certificate authority; falls back to the
        TLS CA of its first peer (the test network issues both from the
        same root).
        """
        for ca_name in org.certificate_authorities:
            ca = self.certificate_authorities.get(ca_name)
            if ca and ca.tls_ca_certs:
                pem = ca.tls_ca_certs.read_pem()
                if pem:
                    return pem
        for _, peer in self.peers_for_organization(org):
            if peer.tls_ca_certs:
                pem = peer.tls_ca_certs.read_pem()
                if pem:
                    return pem
        return None


def load_connection_profile(path: Path) -> ConnectionProfile:
    """
    Read and parse a connection profile.

    Args:
        path: Location of the JSON profile

    Returns:
        Parsed ConnectionProfile

    Raises:
        ConnectionProfileError: If the file is missing or not valid JSON
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConnectionProfileError(
            f"Unable to read connection profile {path}: {e.strerror or e}"
        ) from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConnectionProfileError(
            f"Connection profile {path} is not valid JSON: {e}"
        ) from e

    if not isinstance(data, dict):
        raise ConnectionProfileError(
            f"Connection profile {path} must contain a JSON object"
        )

    profile = ConnectionProfile.from_dict(data)
    logger.debug(
        "connection_profile_loaded",
        path=str(path),
        profile=profile.name,
        peers=len(profile.peers),
    )
    return profile


async def load_connection_profile_async(path: Path) -> ConnectionProfile:
    """Read and parse a connection profile without blocking the event loop."""
    return await asyncio.to_thread(load_connection_profile, path)
