import graphviz
from netroute_core.models.network import System
from netroute_core.network import Network, system_order

HIGHLIGHT = "crimson"


def node_id(system: System) -> str:
    return str(system.address)


def render_network_topology(
        network: Network,
        highlight_systems: set[System] | None = None,
        highlight_links: set[frozenset] | None = None,
) -> graphviz.Graph:
    """
    Render subnets and their links:
    - One rounded cluster per subnet, labelled with its CIDR.
    - Routers as boxes, hosts as ellipses.
    - Weighted links labelled with their weight, router links bold.
    """
    highlight_systems = highlight_systems or set()
    highlight_links = highlight_links or set()
    topology = network.topology

    dot = graphviz.Graph("netroute_network_topology", format="svg")
    dot.attr(rankdir="LR")

    for subnet in topology.subnets():
        router = topology.router_of(subnet.cidr)
        with dot.subgraph(
                name=f"cluster_{subnet.cidr}",
                graph_attr={
                    "label": subnet.cidr,
                    "style": "rounded",
                    "color": "lightblue" if router else "grey",
                },
        ) as c:
            for system in sorted(topology.members(subnet.cidr), key=system_order):
                attrs = {"shape": "box" if system.is_router else "ellipse"}
                if system in highlight_systems:
                    attrs.update(color=HIGHLIGHT, penwidth="2")
                c.node(node_id(system), label=f"{system.name}\\n{system.address}", **attrs)

    for connection in topology.connections():
        attrs = {}
        if connection.weight is None:
            attrs["style"] = "bold"
        else:
            attrs["label"] = str(connection.weight)
        if connection.key in highlight_links:
            attrs.update(color=HIGHLIGHT, penwidth="2")
        dot.edge(str(connection.first), str(connection.second), **attrs)

    return dot
