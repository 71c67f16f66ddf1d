"""
SchematicModel - Central data store for schematic state.

This module contains no Qt dependencies. It owns the components, the wire
list (always replaced wholesale, never edited in place), manual junctions,
net classes and the id counters used to mint fresh wire ids.
"""

from dataclasses import dataclass, field

from .component import ComponentData
from .stroke import NetClass, default_net_classes
from .topology import Junction
from .wire import WireData


def validate_schematic_data(data) -> None:
    """
    Validate JSON structure before loading.

    Raises ValueError with a descriptive message if anything is wrong.
    """
    if not isinstance(data, dict):
        raise ValueError("File does not contain a valid schematic object.")

    if "components" not in data or not isinstance(data["components"], list):
        raise ValueError("Missing or invalid 'components' list.")
    if "wires" not in data or not isinstance(data["wires"], list):
        raise ValueError("Missing or invalid 'wires' list.")

    comp_ids = set()
    for i, comp in enumerate(data["components"]):
        if not isinstance(comp, dict):
            raise ValueError(f"Component #{i + 1} is not an object.")
        for key in ("id", "type"):
            if key not in comp:
                raise ValueError(f"Component #{i + 1} is missing required field '{key}'.")
        if "pos" in comp:
            pos = comp["pos"]
            if not isinstance(pos, dict) or "x" not in pos or "y" not in pos:
                raise ValueError(f"Component '{comp['id']}' has invalid position data.")
            x, y = pos["x"], pos["y"]
        elif "x" in comp and "y" in comp:
            x, y = comp["x"], comp["y"]
        else:
            raise ValueError(f"Component '{comp['id']}' has no position.")
        if not isinstance(x, (int, float)) or not isinstance(y, (int, float)):
            raise ValueError(f"Component '{comp['id']}' position values must be numeric.")
        if comp["id"] in comp_ids:
            raise ValueError(f"Duplicate component id '{comp['id']}'.")
        comp_ids.add(comp["id"])

    wire_ids = set()
    for i, wire in enumerate(data["wires"]):
        if not isinstance(wire, dict):
            raise ValueError(f"Wire #{i + 1} is not an object.")
        for key in ("id", "points"):
            if key not in wire:
                raise ValueError(f"Wire #{i + 1} is missing required field '{key}'.")
        if not isinstance(wire["points"], list):
            raise ValueError(f"Wire '{wire['id']}' has invalid 'points'.")
        for p in wire["points"]:
            if not isinstance(p, dict) or not isinstance(p.get("x"), (int, float)) \
                    or not isinstance(p.get("y"), (int, float)):
                raise ValueError(f"Wire '{wire['id']}' has a non-numeric point.")
        if wire["id"] in wire_ids:
            raise ValueError(f"Duplicate wire id '{wire['id']}'.")
        wire_ids.add(wire["id"])


@dataclass
class SchematicModel:
    """
    Central data store holding all schematic state.

    ``junctions`` holds only manual (user-placed or user-suppressed)
    junctions; automatic ones are derived by every topology rebuild.
    """

    components: dict[str, ComponentData] = field(default_factory=dict)
    wires: list[WireData] = field(default_factory=list)
    junctions: list[Junction] = field(default_factory=list)
    net_classes: dict[str, NetClass] = field(default_factory=default_net_classes)
    id_counters: dict[str, int] = field(default_factory=dict)

    def next_id(self, prefix: str) -> str:
        """Return a fresh id such as 'wire7' and advance the prefix counter."""
        n = self.id_counters.get(prefix, 0) + 1
        self.id_counters[prefix] = n
        return f"{prefix}{n}"

    def reseed_counter(self, prefix: str, ids) -> None:
        """Move the ``prefix`` counter past every numeric id like 'wire12'."""
        highest = self.id_counters.get(prefix, 0)
        for ident in ids:
            suffix = ident[len(prefix):] if ident.startswith(prefix) else ""
            if suffix.isdigit():
                highest = max(highest, int(suffix))
        self.id_counters[prefix] = highest

    def wire_by_id(self, wire_id: str):
        for w in self.wires:
            if w.id == wire_id:
                return w
        return None

    def clear(self) -> None:
        """Remove everything from the schematic."""
        self.components.clear()
        self.wires = []
        self.junctions = []
        self.net_classes = default_net_classes()
        self.id_counters.clear()

    def to_dict(self) -> dict:
        """Serialize the schematic to a JSON-compatible dictionary."""
        data = {
            "components": [c.to_dict() for c in self.components.values()],
            "wires": [w.to_dict() for w in self.wires],
            "counters": dict(self.id_counters),
        }
        if self.junctions:
            data["junctions"] = [j.to_dict() for j in self.junctions]
        custom = {k: v.to_dict() for k, v in self.net_classes.items() if k != "default"}
        if custom:
            data["netClasses"] = custom
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "SchematicModel":
        """Deserialize a schematic; no repair is done here."""
        model = cls()
        model.id_counters = dict(data.get("counters", {}))
        for comp_data in data.get("components", []):
            component = ComponentData.from_dict(comp_data)
            model.components[component.component_id] = component
        model.wires = [WireData.from_dict(w) for w in data.get("wires", [])]
        model.junctions = [
            j for j in (Junction.from_dict(d) for d in data.get("junctions", [])) if j.manual or j.suppressed
        ]
        for net_id, nc in data.get("netClasses", {}).items():
            model.net_classes[net_id] = NetClass.from_dict(nc, net_id)
        return model
