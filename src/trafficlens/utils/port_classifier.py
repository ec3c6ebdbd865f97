"""Port classification into service categories."""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Mapping, NamedTuple


class ServiceCategory(str, Enum):
    """Coarse service categories a port can be classified into."""

    WEB = "Web"
    DATABASE = "Database"
    EMAIL = "Email"
    FILE_SHARING = "File Sharing"
    REMOTE_ACCESS = "Remote Access"
    DNS = "DNS"
    NETWORK = "Network"
    STREAMING = "Streaming"
    VOIP = "VoIP"
    MESSAGING = "Messaging"
    DISCOVERY = "Discovery"

    # Range-based fallbacks for ports missing from the table
    APPLICATION = "Application"
    EPHEMERAL = "Ephemeral"
    OTHER = "Other"

    def __str__(self) -> str:
        return self.value


class PortClassification(NamedTuple):
    """Category and service label resolved for a port."""

    category: ServiceCategory
    service: str


MIN_PORT = 0
MAX_PORT = 65535
REGISTERED_PORT_MIN = 1024
REGISTERED_PORT_MAX = 49151
EPHEMERAL_PORT_MIN = 49152

_C = ServiceCategory

WELL_KNOWN_PORTS: Mapping[int, PortClassification] = MappingProxyType(
    {
        # Web
        80: PortClassification(_C.WEB, "HTTP"),
        443: PortClassification(_C.WEB, "HTTPS"),
        8080: PortClassification(_C.WEB, "HTTP Proxy"),
        8443: PortClassification(_C.WEB, "HTTPS Alt"),
        3000: PortClassification(_C.WEB, "Dev Server"),
        5000: PortClassification(_C.WEB, "Dev Server"),
        # Database
        3306: PortClassification(_C.DATABASE, "MySQL"),
        5432: PortClassification(_C.DATABASE, "PostgreSQL"),
        27017: PortClassification(_C.DATABASE, "MongoDB"),
        6379: PortClassification(_C.DATABASE, "Redis"),
        1433: PortClassification(_C.DATABASE, "SQL Server"),
        1521: PortClassification(_C.DATABASE, "Oracle"),
        # Email
        25: PortClassification(_C.EMAIL, "SMTP"),
        465: PortClassification(_C.EMAIL, "SMTPS"),
        587: PortClassification(_C.EMAIL, "SMTP Submission"),
        110: PortClassification(_C.EMAIL, "POP3"),
        995: PortClassification(_C.EMAIL, "POP3S"),
        143: PortClassification(_C.EMAIL, "IMAP"),
        993: PortClassification(_C.EMAIL, "IMAPS"),
        # File sharing
        21: PortClassification(_C.FILE_SHARING, "FTP"),
        445: PortClassification(_C.FILE_SHARING, "SMB"),
        139: PortClassification(_C.FILE_SHARING, "NetBIOS"),
        2049: PortClassification(_C.FILE_SHARING, "NFS"),
        # DNS and network infrastructure
        53: PortClassification(_C.DNS, "DNS"),
        67: PortClassification(_C.NETWORK, "DHCP Server"),
        68: PortClassification(_C.NETWORK, "DHCP Client"),
        123: PortClassification(_C.NETWORK, "NTP"),
        161: PortClassification(_C.NETWORK, "SNMP"),
        # Streaming and media
        554: PortClassification(_C.STREAMING, "RTSP"),
        1935: PortClassification(_C.STREAMING, "RTMP"),
        5004: PortClassification(_C.STREAMING, "RTP"),
        5005: PortClassification(_C.STREAMING, "RTP"),
        # VoIP and messaging
        5060: PortClassification(_C.VOIP, "SIP"),
        5061: PortClassification(_C.VOIP, "SIP TLS"),
        3478: PortClassification(_C.VOIP, "STUN"),
        5222: PortClassification(_C.MESSAGING, "XMPP"),
        # Remote access
        22: PortClassification(_C.REMOTE_ACCESS, "SSH"),
        23: PortClassification(_C.REMOTE_ACCESS, "Telnet"),
        3389: PortClassification(_C.REMOTE_ACCESS, "RDP"),
        5900: PortClassification(_C.REMOTE_ACCESS, "VNC"),
        # Discovery
        5353: PortClassification(_C.DISCOVERY, "mDNS"),
        1900: PortClassification(_C.DISCOVERY, "SSDP/UPnP"),
        5355: PortClassification(_C.DISCOVERY, "LLMNR"),
        137: PortClassification(_C.DISCOVERY, "NetBIOS NS"),
        138: PortClassification(_C.DISCOVERY, "NetBIOS DG"),
    }
)

RANGE_CATEGORIES = frozenset({_C.APPLICATION, _C.EPHEMERAL, _C.OTHER})


def port_label(port: int) -> str:
    """Service label used for ports without a table entry."""
    return f"Port {port}"


def classify_port(port: int) -> PortClassification:
    """Classify a port number into a service category.

    Table entries win. Unlisted ports fall back to range rules evaluated
    in order: registered (1024-49151) is Application, 49152 and above is
    Ephemeral, everything else is Other.

    Args:
        port: The port number to classify.

    Returns:
        PortClassification with the category and a service label.
    """
    known = WELL_KNOWN_PORTS.get(port)
    if known is not None:
        return known

    if REGISTERED_PORT_MIN <= port <= REGISTERED_PORT_MAX:
        return PortClassification(ServiceCategory.APPLICATION, port_label(port))
    elif port >= EPHEMERAL_PORT_MIN:
        return PortClassification(ServiceCategory.EPHEMERAL, port_label(port))
    else:
        return PortClassification(ServiceCategory.OTHER, port_label(port))


def get_port_category(port: int) -> ServiceCategory:
    """Get the service category for a port.

    Args:
        port: The port number.

    Returns:
        The ServiceCategory the port maps to.
    """
    return classify_port(port).category


def get_port_service(port: int) -> str:
    """Get the service label for a port.

    Args:
        port: The port number.

    Returns:
        Human-readable service label.
    """
    return classify_port(port).service
