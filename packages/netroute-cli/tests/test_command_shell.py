"""
Tests for the line-oriented command shell.
"""

import pytest
from netroute_cli.shell import CommandShell, run_shell
from netroute_core.config import Settings

DIAGRAM = """graph
    subgraph 10.0.1.0/24
        Router1[10.0.1.1]
        PC1[10.0.1.2]
        Router1 <-->|1| PC1
    end
    subgraph 10.0.2.0/24
        Router2[10.0.2.1]
        PC2[10.0.2.2]
        Router2 <-->|1| PC2
    end
    Router1 <--> Router2
"""


@pytest.fixture
def network_file(tmp_path):
    path = tmp_path / "network.mmd"
    path.write_text(DIAGRAM)
    return path


@pytest.fixture
def shell(network_file):
    s = CommandShell(settings=Settings())
    s.execute(f"load network {network_file}")
    return s


class TestLoad:
    """Test loading and the no-network guard."""

    def test_load_echoes_file(self, network_file):
        s = CommandShell(settings=Settings())
        assert s.execute(f"load network {network_file}") == DIAGRAM.rstrip("\n")

    def test_commands_need_a_network(self):
        s = CommandShell(settings=Settings())
        assert s.execute("list subnets") == "Error, No network loaded. Use 'load network' first."

    def test_missing_file(self, tmp_path):
        s = CommandShell(settings=Settings())
        assert s.execute(f"load network {tmp_path / 'nope.mmd'}").startswith("Error, File not found")

    def test_invalid_topology_keeps_previous_network(self, shell, tmp_path):
        bad = tmp_path / "bad.mmd"
        bad.write_text(DIAGRAM.replace("PC2[10.0.2.2]", "PC2[10.0.3.2]"))
        output = shell.execute(f"load network {bad}")
        assert output.startswith("Error, ")
        assert "10.0.3.2" in output
        assert shell.execute("list subnets") == "10.0.1.0/24 10.0.2.0/24"

    def test_load_format(self):
        s = CommandShell(settings=Settings())
        assert s.execute("load network") == "Error, Invalid command format. Use 'load network <path>'"


class TestListings:
    """Test list commands."""

    def test_list_subnets(self, shell):
        assert shell.execute("list subnets") == "10.0.1.0/24 10.0.2.0/24"

    def test_list_range(self, shell):
        assert shell.execute("list range 10.0.1.0/24") == "10.0.1.0 10.0.1.255"
        assert shell.execute("list range 10.0.9.0/24") == "Error, Subnet not found."

    def test_list_systems(self, shell):
        shell.execute("add computer 10.0.1.0/24 10.0.1.100")
        shell.execute("add computer 10.0.1.0/24 10.0.1.9")
        assert shell.execute("list systems 10.0.1.0/24") == "10.0.1.1 10.0.1.2 10.0.1.9 10.0.1.100"


class TestEditing:
    """Test add/remove commands and their error messages."""

    def test_add_computer(self, shell):
        assert shell.execute("add computer 10.0.2.0/24 10.0.2.50") is None
        assert shell.network.system_by_name("PC_10_0_2_50") is not None

    @pytest.mark.parametrize(
        "line, expected",
        [
            ("add computer 10.0.2.0/24 10.0.2.2", "Error, IP address already exists in the network."),
            ("add computer 10.0.2.0/24 10.0.1.50", "Error, IP address is not in the specified subnet."),
            ("add computer 10.0.2.0/24 10.0.2.999", "Error, Invalid IP address."),
            ("add computer 10.0.9.0/24 10.0.9.1", "Error, Invalid command format. Use 'add computer <subnet> <ip>'"),
        ],
    )
    def test_add_computer_errors(self, shell, line, expected):
        assert shell.execute(line) == expected

    def test_remove_computer(self, shell):
        assert shell.execute("remove computer 10.0.2.0/24 10.0.2.2") is None
        assert shell.execute("list systems 10.0.2.0/24") == "10.0.2.1"

    @pytest.mark.parametrize(
        "line, expected",
        [
            ("remove computer 10.0.2.0/24 10.0.2.1", "Error, The specified IP does not belong to a computer."),
            ("remove computer 10.0.1.0/24 10.0.2.2", "Error, The specified IP does not exist in the given subnet."),
            ("remove computer 10.0.2.0/24 10.0.2.77", "Error, Invalid IP address."),
        ],
    )
    def test_remove_computer_errors(self, shell, line, expected):
        assert shell.execute(line) == expected

    def test_add_and_remove_connection(self, shell):
        shell.execute("add computer 10.0.1.0/24 10.0.1.3")
        assert shell.execute("add connection 10.0.1.3 10.0.1.2 4") is None
        assert shell.execute("send packet 10.0.1.3 10.0.2.2") == "10.0.1.3 10.0.1.2 10.0.1.1 10.0.2.1 10.0.2.2"
        assert shell.execute("remove connection 10.0.1.2 10.0.1.3") is None
        assert shell.execute("send packet 10.0.1.3 10.0.2.2") == "Error, No path found between the specified systems."

    @pytest.mark.parametrize(
        "line, expected",
        [
            ("add connection 10.0.1.2 10.0.1.2 1", "Error, Cannot create a connection to the same IP address."),
            ("add connection 10.0.1.2 10.0.1.1 1", "Error, Connection already exists."),
            ("add connection 10.0.1.2 10.0.2.2", "Error, Only routers can have connections to other subnets."),
            ("add connection 10.0.1.2 10.0.9.9 1", "Error, Invalid IP address."),
            (
                "add connection 10.0.1.2 10.0.1.1",
                "Error, Connection already exists.",
            ),
        ],
    )
    def test_add_connection_errors(self, shell, line, expected):
        assert shell.execute(line) == expected

    def test_add_connection_weight_rules(self, shell):
        shell.execute("add computer 10.0.1.0/24 10.0.1.3")
        usage = "Error, Invalid command format. Use 'add connection <ip1> <ip2> [<weight>]'"
        assert shell.execute("add connection 10.0.1.3 10.0.1.2") == usage
        assert shell.execute("add connection 10.0.1.3 10.0.1.2 0") == usage
        assert shell.execute("add connection 10.0.1.3 10.0.1.2 heavy") == usage

    def test_weighted_router_link_rejected(self, shell):
        shell.execute("remove connection 10.0.1.1 10.0.2.1")
        assert shell.execute("add connection 10.0.1.1 10.0.2.1 5") == "Error, Connection between routers must not be weighted."
        assert shell.execute("add connection 10.0.1.1 10.0.2.1") is None

    def test_remove_missing_connection(self, shell):
        assert shell.execute("remove connection 10.0.1.2 10.0.2.2") == (
            "Error, No connection exists between the specified systems."
        )


class TestSendPacket:
    """Test path output."""

    def test_send_packet(self, shell):
        assert shell.execute("send packet 10.0.1.2 10.0.2.2") == "10.0.1.2 10.0.1.1 10.0.2.1 10.0.2.2"

    def test_same_source_and_destination(self, shell):
        assert shell.execute("send packet 10.0.1.2 10.0.1.2") == (
            "Error, Source and destination IP addresses cannot be the same."
        )

    def test_router_link_removed(self, shell):
        shell.execute("remove connection 10.0.1.1 10.0.2.1")
        assert shell.execute("send packet 10.0.1.2 10.0.2.2") == "Error, No path found between the specified systems."


class TestDispatch:
    """Test parsing and quit."""

    def test_unknown_command(self, shell):
        assert shell.execute("fly away") == "Error, Unknown command."
        assert shell.execute("") == "Error, Unknown command."

    def test_quit(self, shell):
        assert shell.execute("quit now") == "Error, Invalid command format. Use 'quit' without any arguments."
        assert shell.running
        assert shell.execute("quit") is None
        assert not shell.running

    def test_run_shell_stops_at_quit(self, network_file):
        out = []
        s = CommandShell(settings=Settings())
        run_shell(s, [f"load network {network_file}\n", "list subnets\n", "quit\n", "list subnets\n"], out.append)
        assert out == [DIAGRAM.rstrip("\n"), "10.0.1.0/24 10.0.2.0/24"]
