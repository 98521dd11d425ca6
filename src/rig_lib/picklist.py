"""
Pick-list aggregation.

Folds a project's rigging components into the three grouped totals a
rigger orders from:

- Wire: total length per (material, diameter).
- Fittings: count per (termination type, pin size, wire diameter).
- Pins: count per clevis pin size.

Grouping keys are the raw strings as recorded. "8mm" and "8 mm" are
different keys; the system does not model fastener nomenclature, so it
does not guess that they match.
"""

from collections.abc import Iterable

from src.rig_lib import constants as C
from src.rig_lib.types import (
    FittingTotal,
    PickList,
    PinTotal,
    RiggingComponent,
    WireTotal,
)
from src.rig_lib.utils import coerce_quantity, natural_sort_key, parse_length_meters


def _text_or_sentinel(value: object) -> str:
    """Returns the field verbatim, or "N/A" when it is missing or blank."""
    if value is None or value == "":
        return C.NOT_AVAILABLE
    return str(value)


def _terminations(component: RiggingComponent) -> list[tuple[object, object]]:
    return [
        (component.get("upper_termination"), component.get("pin_size_upper")),
        (component.get("lower_termination"), component.get("pin_size_lower")),
    ]


def aggregate_pick_list(components: Iterable[RiggingComponent]) -> PickList:
    """
    Aggregates rigging components into wire, fitting and pin totals.

    Each component contributes at most once to the wire totals (only if it
    has a material or a diameter) and at most twice to fittings and pins
    (upper and lower ends counted separately). Ends with no termination,
    or the "None" termination, contribute nothing. A quantity of 0 (or a
    missing/garbage quantity) is iterated but adds zero everywhere.

    Args:
        components: The project's rigging components, in any order.

    Returns:
        A PickList whose lists are in first-seen key order.
    """
    wire: dict[tuple[str, str], WireTotal] = {}
    fittings: dict[tuple[str, str, str], FittingTotal] = {}
    pins: dict[str, PinTotal] = {}

    for component in components:
        qty = coerce_quantity(component.get("quantity"))
        dia = _text_or_sentinel(component.get("diameter"))
        mat = _text_or_sentinel(component.get("material"))

        if mat != C.NOT_AVAILABLE or dia != C.NOT_AVAILABLE:
            key = (mat, dia)
            if key not in wire:
                wire[key] = {"material": mat, "diameter": dia, "length": 0.0}
            wire[key]["length"] += parse_length_meters(component.get("length")) * qty

        for term, pin in _terminations(component):
            if not term or term == C.NO_TERMINATION:
                continue
            term = str(term)
            pin_val = _text_or_sentinel(pin)

            fitting_key = (term, pin_val, dia)
            if fitting_key not in fittings:
                fittings[fitting_key] = {
                    "type": term,
                    "pin_size": pin_val,
                    "diameter": dia,
                    "quantity": 0,
                }
            fittings[fitting_key]["quantity"] += qty

            if pin_val != C.NOT_AVAILABLE:
                if pin_val not in pins:
                    pins[pin_val] = {"size": pin_val, "quantity": 0}
                pins[pin_val]["quantity"] += qty

    return {
        "wire": list(wire.values()),
        "fittings": list(fittings.values()),
        "pins": list(pins.values()),
    }


def sort_fittings(fittings: Iterable[FittingTotal]) -> list[FittingTotal]:
    """Display order: termination type, then pin size, then wire diameter."""
    return sorted(
        fittings,
        key=lambda f: (
            f["type"].lower(),
            natural_sort_key(f["pin_size"]),
            natural_sort_key(f["diameter"]),
        ),
    )


def sort_pins(pins: Iterable[PinTotal]) -> list[PinTotal]:
    """Display order: natural sort on size ("8mm" before "10mm")."""
    return sorted(pins, key=lambda p: natural_sort_key(p["size"]))


def sort_pick_list(pick_list: PickList) -> PickList:
    """
    Returns a copy of the pick list ordered for presentation.

    Wire keeps first-seen order; fittings and pins are sorted. This is a
    display policy only, the totals are unchanged.
    """
    return {
        "wire": list(pick_list["wire"]),
        "fittings": sort_fittings(pick_list["fittings"]),
        "pins": sort_pins(pick_list["pins"]),
    }


def total_length_meters(components: Iterable[RiggingComponent]) -> float:
    """Sum of parsed length x quantity across every component."""
    return sum(
        parse_length_meters(c.get("length")) * coerce_quantity(c.get("quantity"))
        for c in components
    )


def component_count(components: Iterable[RiggingComponent]) -> int:
    return sum(coerce_quantity(c.get("quantity")) for c in components)
