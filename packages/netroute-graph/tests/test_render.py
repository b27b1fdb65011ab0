"""
Tests for graphviz rendering. Only the generated DOT source is inspected, so
the graphviz binaries are not needed.
"""

import pytest
from netroute_core.models.records import TopologyRec
from netroute_core.network import Network
from netroute_graph.render import render_network_topology, render_route


@pytest.fixture
def net():
    return Network.from_record(
        TopologyRec.model_validate(
            {
                "subnets": [
                    {
                        "cidr": "10.0.1.0/24",
                        "systems": [
                            {"name": "R1", "address": "10.0.1.1", "role": "router"},
                            {"name": "H1", "address": "10.0.1.2"},
                        ],
                    },
                    {
                        "cidr": "10.0.2.0/24",
                        "systems": [
                            {"name": "R2", "address": "10.0.2.1", "role": "router"},
                            {"name": "H2", "address": "10.0.2.2"},
                            {"name": "H3", "address": "10.0.2.3"},
                        ],
                    },
                ],
                "connections": [
                    {"between": ["H1", "R1"], "weight": 7},
                    {"between": ["H2", "R2"], "weight": 1},
                    {"between": ["H3", "R2"], "weight": 1},
                    {"between": ["R1", "R2"]},
                ],
            }
        )
    )


class TestNetworkTopology:
    """Test the full topology drawing."""

    def test_clusters_per_subnet(self, net):
        source = render_network_topology(net).source
        assert source.startswith("graph netroute_network_topology")
        assert "cluster_10.0.1.0/24" in source
        assert "cluster_10.0.2.0/24" in source

    def test_node_shapes(self, net):
        lines = render_network_topology(net).source.splitlines()
        router_line = next(line for line in lines if "R1\\n10.0.1.1" in line)
        host_line = next(line for line in lines if "H1\\n10.0.1.2" in line)
        assert "shape=box" in router_line
        assert "shape=ellipse" in host_line

    def test_edges(self, net):
        lines = render_network_topology(net).source.splitlines()
        edges = [line for line in lines if " -- " in line]
        assert len(edges) == 4
        assert any("label=7" in line for line in edges)
        assert any("style=bold" in line for line in edges)

    def test_no_highlight_by_default(self, net):
        assert "crimson" not in render_network_topology(net).source


class TestRoute:
    """Test path highlighting."""

    def test_highlights_path(self, net):
        path = net.find_shortest_path("H1", "H2")
        source = render_route(net, path).source
        lines = source.splitlines()

        highlighted_nodes = [line for line in lines if "crimson" in line and " -- " not in line]
        highlighted_edges = [line for line in lines if "crimson" in line and " -- " in line]
        assert len(highlighted_nodes) == 4
        assert len(highlighted_edges) == 3
        assert not any("H3\\n" in line for line in highlighted_nodes)
        assert "H1 -> H2 (3 hops)" in source

    def test_empty_path_renders_plain_topology(self, net):
        source = render_route(net, []).source
        assert "crimson" not in source
        assert "hops" not in source
