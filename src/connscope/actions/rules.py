"""
Rule expressions derived from connection metadata.

Wire format, shared with the rule-set store:
    DOMAIN,<host>
    IP-CIDR,<destinationIP>/32,no-resolve
"""
from ..errors import ActionError
from ..models.connection import ConnectionMetadata

BEHAVIOR_DOMAIN = "DOMAIN"
BEHAVIOR_IP_CIDR = "IP-CIDR"


def derive_rule(metadata: ConnectionMetadata) -> str:
    """Domain rule when a host is known, otherwise an IP rule."""
    host = metadata.host or metadata.sniff_host
    if host:
        return f"{BEHAVIOR_DOMAIN},{host}"
    if metadata.destination_ip:
        return f"{BEHAVIOR_IP_CIDR},{metadata.destination_ip}/32,no-resolve"
    raise ActionError("connection has neither a host nor a destination address")
