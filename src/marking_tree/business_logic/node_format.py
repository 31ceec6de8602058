"""
Turns result rows into NavigationNode objects.

Row columns are sorted into bundles by name alone: display fields the tree
renders, config fields for the settings menu, the return data the client
sends back to expand the node, and everything else as popup data.
"""

from html.parser import HTMLParser
from typing import Any, Dict, List, Mapping, Optional

from marking_types.navigation import Dimension
from marking_types.nodes import NavigationNode, NodeConfig, NodeGroup

DISPLAY_FIELDS = frozenset({
    "itemcount",
    "name",
    "tooltip",
    "summary",
    "type_label",
    "description",
    "firstname",
    "lastname",
    "timestamp",
})

CONFIG_FIELDS = frozenset({"display", "groupsdisplay", "groups"})

# Column holding the enumerated dimension's value
ID_FIELD = "id"

DISPLAY = "display"
CONFIG = "config"
RETURN = "return"
POPUP = "popup"


def classify_field(name: str) -> str:
    if name == ID_FIELD:
        return RETURN
    if name in DISPLAY_FIELDS:
        return DISPLAY
    if name in CONFIG_FIELDS:
        return CONFIG
    return POPUP


class _TextExtractor(HTMLParser):

    def __init__(self):
        HTMLParser.__init__(self, convert_charrefs=True)
        self.parts: List[str] = []

    def handle_data(self, data):
        self.parts.append(data)

    def text(self) -> str:
        return " ".join("".join(self.parts).split())


def strip_html(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    parser = _TextExtractor()
    parser.feed(str(value))
    parser.close()
    return parser.text()


def summarize(text: Optional[str], length: int) -> Optional[str]:
    """Shorten ``text`` to at most ``length`` characters, cutting on a word boundary."""
    if text is None:
        return None
    if len(text) <= length:
        return text
    cut = text[:max(length - 3, 1)]
    if " " in cut and not text[len(cut)].isspace():
        cut = cut.rsplit(" ", 1)[0]
    return cut.rstrip() + "..."


def build_node(
    row: Mapping[str, Any],
    dimension: Dimension,
    summary_length: int,
    include_config: bool = False,
    groups: Optional[List[NodeGroup]] = None,
) -> NavigationNode:
    bundles: Dict[str, Dict[str, Any]] = {DISPLAY: {}, CONFIG: {}, RETURN: {}, POPUP: {}}
    for field, value in row.items():
        bundles[classify_field(field)][field] = value

    display = bundles[DISPLAY]
    config = bundles[CONFIG]

    node_id = int(bundles[RETURN][ID_FIELD])
    return_data = {dimension.value: node_id, "currentfilter": dimension.value}

    tooltip = strip_html(display.pop("tooltip", None))
    summary = summarize(tooltip, summary_length)

    node_config = None
    if include_config:
        node_config = NodeConfig(
            display=config.get("display"),
            group_display=config.get("groupsdisplay"),
            groups=groups or [],
        )

    return NavigationNode(
        id=node_id,
        dimension=dimension.value,
        type=display.pop("type_label", None) or dimension.value,
        count=int(display.pop("itemcount", None) or 0),
        name=display.pop("name", None) or "",
        tooltip=tooltip,
        summary=summary,
        config=node_config,
        display_data=display,
        return_data=return_data,
        popup_data=bundles[POPUP],
    )
