"""Address and subnet range math.

Shared helpers so the topology store, the validator and the listings agree on
what a CIDR covers and how addresses sort.
"""

from ipaddress import IPv4Address, AddressValueError

ADDRESS_BITS = 32
ALL_BITS = (1 << ADDRESS_BITS) - 1


def parse_address(text: str | IPv4Address) -> IPv4Address:
    """Parse a dotted-quad address.

    Raises:
        ValueError: if the text is not four decimal octets in 0..255
    """
    if isinstance(text, IPv4Address):
        return text
    try:
        return IPv4Address(str(text).strip())
    except AddressValueError as e:
        raise ValueError(f"Invalid address: {text!r}") from e


def parse_cidr(cidr: str) -> tuple[IPv4Address, int]:
    """Split ``a.b.c.d/n`` into its address and prefix length.

    Host bits are allowed to be set in the address part; the range is derived
    by masking.

    Raises:
        ValueError: on a missing slash, bad address or prefix outside 0..32
    """
    parts = str(cidr).strip().split("/")
    if len(parts) != 2:
        raise ValueError(f"Invalid CIDR: {cidr!r}")
    address = parse_address(parts[0])
    try:
        prefix = int(parts[1])
    except ValueError as e:
        raise ValueError(f"Invalid prefix length in CIDR: {cidr!r}") from e
    if not 0 <= prefix <= ADDRESS_BITS:
        raise ValueError(f"Prefix length out of range in CIDR: {cidr!r}")
    return address, prefix


def netmask(prefix: int) -> int:
    return (ALL_BITS << (ADDRESS_BITS - prefix)) & ALL_BITS


def first_address(cidr: str) -> IPv4Address:
    """Network address of the range (host bits cleared)."""
    address, prefix = parse_cidr(cidr)
    return IPv4Address(int(address) & netmask(prefix))


def last_address(cidr: str) -> IPv4Address:
    """Broadcast address of the range (host bits set)."""
    address, prefix = parse_cidr(cidr)
    return IPv4Address((int(address) & netmask(prefix)) | (~netmask(prefix) & ALL_BITS))


def in_range(cidr: str, address: str | IPv4Address) -> bool:
    network, prefix = parse_cidr(cidr)
    mask = netmask(prefix)
    return int(parse_address(address)) & mask == int(network) & mask


def overlaps(cidr_a: str, cidr_b: str) -> bool:
    """True when the closed ranges [first, last] of both subnets intersect."""
    start_a, end_a = int(first_address(cidr_a)), int(last_address(cidr_a))
    start_b, end_b = int(first_address(cidr_b)), int(last_address(cidr_b))
    return start_a <= end_b and start_b <= end_a


def address_key(address: str | IPv4Address) -> int:
    return int(parse_address(address))


def cidr_key(cidr: str) -> tuple[int, int]:
    """Sort subnets by network address, then by prefix length."""
    address, prefix = parse_cidr(cidr)
    return int(address), prefix


def is_valid_cidr(cidr: str) -> bool:
    try:
        parse_cidr(cidr)
    except ValueError:
        return False
    return True


def has_host_bits(cidr: str) -> bool:
    """True when the address part is not the network address (e.g. ``10.0.1.5/24``)."""
    address, _ = parse_cidr(cidr)
    return address != first_address(cidr)
