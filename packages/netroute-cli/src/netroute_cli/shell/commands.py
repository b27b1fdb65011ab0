"""
Line-oriented command shell.

Grammar (one command per line, whitespace separated):

    load network <path>
    list subnets
    list range <subnet>
    list systems <subnet>
    add computer <subnet> <ip>
    remove computer <subnet> <ip>
    add connection <ip1> <ip2> [<weight>]
    remove connection <ip1> <ip2>
    send packet <source_ip> <destination_ip>
    quit

Every command returns its output text, an ``Error, ...`` line, or None when
it succeeded silently.
"""

from typing import Callable

from netroute_core.config import Settings
from netroute_core.data.loader import read_text
from netroute_core.data.network_loader import load_network
from netroute_core.errors import (
    AddressOutOfRangeError,
    ConnectionRuleError,
    DuplicateConnectionError,
    DuplicateSystemError,
    TopologyValidationError,
)
from netroute_core.network import Network

ERROR_UNKNOWN = "Error, Unknown command."
ERROR_NO_NETWORK = "Error, No network loaded. Use 'load network' first."
ERROR_FORMAT = "Error, Invalid command format. Use '{usage}'"
ERROR_INVALID_IP = "Error, Invalid IP address."
ERROR_SUBNET_NOT_FOUND = "Error, Subnet not found."
ERROR_IP_EXISTS = "Error, IP address already exists in the network."
ERROR_IP_NOT_IN_SUBNET = "Error, IP address is not in the specified subnet."
ERROR_NOT_COMPUTER = "Error, The specified IP does not belong to a computer."
ERROR_NOT_IN_GIVEN_SUBNET = "Error, The specified IP does not exist in the given subnet."
ERROR_SAME_IP_CONNECTION = "Error, Cannot create a connection to the same IP address."
ERROR_DIFFERENT_SUBNET = "Error, Only routers can have connections to other subnets."
ERROR_WEIGHTED_ROUTER_LINK = "Error, Connection between routers must not be weighted."
ERROR_CONNECTION_EXISTS = "Error, Connection already exists."
ERROR_NO_CONNECTION = "Error, No connection exists between the specified systems."
ERROR_SAME_IP_PACKET = "Error, Source and destination IP addresses cannot be the same."
ERROR_NO_PATH = "Error, No path found between the specified systems."
ERROR_QUIT_FORMAT = "Error, Invalid command format. Use 'quit' without any arguments."

USAGE = {
    ("load", "network"): "load network <path>",
    ("list", "subnets"): "list subnets",
    ("list", "range"): "list range <subnet>",
    ("list", "systems"): "list systems <subnet>",
    ("add", "computer"): "add computer <subnet> <ip>",
    ("remove", "computer"): "remove computer <subnet> <ip>",
    ("add", "connection"): "add connection <ip1> <ip2> [<weight>]",
    ("remove", "connection"): "remove connection <ip1> <ip2>",
    ("send", "packet"): "send packet <source_ip> <destination_ip>",
}


def _format_error(key: tuple[str, ...]) -> str:
    if key == ("quit",):
        return ERROR_QUIT_FORMAT
    return ERROR_FORMAT.format(usage=USAGE[key])


class CommandShell:
    """Dispatches shell lines against one in-memory network."""

    def __init__(self, network: Network | None = None, settings: Settings | None = None):
        self.settings = settings or Settings.from_env()
        self.network = network
        self.running = True
        self._handlers: dict[tuple[str, ...], Callable[[list[str]], str | None]] = {
            ("load", "network"): self._load_network,
            ("list", "subnets"): self._list_subnets,
            ("list", "range"): self._list_range,
            ("list", "systems"): self._list_systems,
            ("add", "computer"): self._add_computer,
            ("remove", "computer"): self._remove_computer,
            ("add", "connection"): self._add_connection,
            ("remove", "connection"): self._remove_connection,
            ("send", "packet"): self._send_packet,
            ("quit",): self._quit,
        }

    def execute(self, line: str) -> str | None:
        parts = line.split()
        if not parts:
            return ERROR_UNKNOWN

        main = parts[0].lower()
        sub = parts[1].lower() if len(parts) > 1 else ""
        key = (main, sub) if (main, sub) in self._handlers else (main,)
        handler = self._handlers.get(key)
        if handler is None:
            return ERROR_UNKNOWN

        if key not in {("load", "network"), ("quit",)} and (self.network is None or self.network.is_empty):
            return ERROR_NO_NETWORK
        return handler(parts)

    # -------------------------------
    # Handlers
    # -------------------------------

    def _load_network(self, args: list[str]) -> str | None:
        if len(args) != 3:
            return _format_error(("load", "network"))
        path = args[2]
        try:
            text = read_text(path)
            network = load_network(path, self.settings)
        except TopologyValidationError as e:
            return "\n".join(f"Error, {f.message}" for f in e.report.by_severity("FAIL"))
        except (FileNotFoundError, ValueError) as e:
            return f"Error, {e}"
        self.network = network
        return text.rstrip("\n") or None

    def _list_subnets(self, args: list[str]) -> str | None:
        if len(args) != 2:
            return _format_error(("list", "subnets"))
        return " ".join(subnet.cidr for subnet in self.network.list_subnets())

    def _list_range(self, args: list[str]) -> str | None:
        if len(args) != 3:
            return _format_error(("list", "range"))
        if self.network.subnet_by_cidr(args[2]) is None:
            return ERROR_SUBNET_NOT_FOUND
        first, last = self.network.range_of(args[2])
        return f"{first} {last}"

    def _list_systems(self, args: list[str]) -> str | None:
        if len(args) != 3:
            return _format_error(("list", "systems"))
        if self.network.subnet_by_cidr(args[2]) is None:
            return ERROR_SUBNET_NOT_FOUND
        return " ".join(str(system.address) for system in self.network.list_systems(args[2]))

    def _add_computer(self, args: list[str]) -> str | None:
        if len(args) != 4 or self.network.subnet_by_cidr(args[2]) is None:
            return _format_error(("add", "computer"))
        cidr, ip = args[2], args[3]
        if self.network.system_by_address(ip) is not None:
            return ERROR_IP_EXISTS
        try:
            self.network.add_computer(cidr, ip)
        except AddressOutOfRangeError:
            return ERROR_IP_NOT_IN_SUBNET
        except DuplicateSystemError:
            return ERROR_IP_EXISTS
        except ValueError:
            return ERROR_INVALID_IP
        return None

    def _remove_computer(self, args: list[str]) -> str | None:
        if len(args) != 4 or self.network.subnet_by_cidr(args[2]) is None:
            return _format_error(("remove", "computer"))
        cidr, ip = args[2], args[3]
        system = self.network.system_by_address(ip)
        if system is None:
            return ERROR_INVALID_IP
        if system.is_router:
            return ERROR_NOT_COMPUTER
        if system.subnet != cidr:
            return ERROR_NOT_IN_GIVEN_SUBNET
        self.network.remove_computer(cidr, ip)
        return None

    def _add_connection(self, args: list[str]) -> str | None:
        if len(args) not in (4, 5):
            return _format_error(("add", "connection"))
        ip1, ip2 = args[2], args[3]
        if ip1 == ip2:
            return ERROR_SAME_IP_CONNECTION

        weight = None
        if len(args) == 5:
            try:
                weight = int(args[4])
            except ValueError:
                return _format_error(("add", "connection"))
            if weight < 1:
                return _format_error(("add", "connection"))

        a = self.network.system_by_address(ip1)
        b = self.network.system_by_address(ip2)
        if a is None or b is None:
            return ERROR_INVALID_IP
        if self.network.connection_exists(a, b):
            return ERROR_CONNECTION_EXISTS

        if a.subnet == b.subnet and weight is None:
            return _format_error(("add", "connection"))
        if a.subnet != b.subnet and not (a.is_router and b.is_router):
            return ERROR_DIFFERENT_SUBNET
        if a.subnet != b.subnet and weight is not None:
            return ERROR_WEIGHTED_ROUTER_LINK

        try:
            self.network.connect(a, b, weight)
        except DuplicateConnectionError:
            return ERROR_CONNECTION_EXISTS
        except ConnectionRuleError as e:
            return f"Error, {e}"
        return None

    def _remove_connection(self, args: list[str]) -> str | None:
        if len(args) != 4:
            return _format_error(("remove", "connection"))
        a = self.network.system_by_address(args[2])
        b = self.network.system_by_address(args[3])
        if a is None or b is None:
            return ERROR_INVALID_IP
        if not self.network.remove_connection(a, b):
            return ERROR_NO_CONNECTION
        return None

    def _send_packet(self, args: list[str]) -> str | None:
        if len(args) != 4:
            return _format_error(("send", "packet"))
        if args[2] == args[3]:
            return ERROR_SAME_IP_PACKET
        source = self.network.system_by_address(args[2])
        destination = self.network.system_by_address(args[3])
        if source is None or destination is None:
            return ERROR_INVALID_IP
        if source == destination:
            return ERROR_SAME_IP_PACKET

        path = self.network.find_shortest_path(source, destination)
        if not path:
            return ERROR_NO_PATH
        return " ".join(str(system.address) for system in path)

    def _quit(self, args: list[str]) -> str | None:
        if len(args) > 1:
            return _format_error(("quit",))
        self.running = False
        return None


def run_shell(shell: CommandShell, lines, emit: Callable[[str], None]) -> None:
    """Feed lines to the shell until ``quit`` or the input ends."""
    for raw in lines:
        output = shell.execute(raw.strip())
        if output is not None:
            emit(output)
        if not shell.running:
            break

