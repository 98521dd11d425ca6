"""
Type definitions and shared data structures for the rigging library.

This module contains the TypedDicts used throughout the survey, aggregation
and export pipeline. Records are plain dicts so they serialize straight to
the JSON project documents kept by the store.
"""

from typing import TypedDict


class RiggingComponent(TypedDict, total=False):
    """
    A single piece of standing or running rigging recorded during a survey.

    Only ``id``, ``type`` and ``quantity`` are always present. Length,
    diameter and pin sizes are free-form strings in whatever unit the rigger
    wrote down (e.g. "12.5m", "41ft", "5/16").

    Attributes:
        id: Identifier, unique within a project.
        type: Component type (e.g. "Forestay").
        quantity: Number of identical units (>= 1 when entered via the manager).
        length: Mixed-unit length string.
        diameter: Wire diameter string, used verbatim as a grouping key.
        material: Wire construction (e.g. "1x19 Stainless Steel").
        upper_termination: Fitting type at the masthead end.
        lower_termination: Fitting type at the deck end.
        pin_size_upper: Clevis pin size for the upper fitting.
        pin_size_lower: Clevis pin size for the lower fitting.
        notes: Free text.
        photos: Data-URI strings of photos taken for this component.
    """

    id: str
    type: str
    quantity: int
    length: str
    diameter: str
    material: str
    upper_termination: str
    lower_termination: str
    pin_size_upper: str
    pin_size_lower: str
    notes: str
    photos: list[str]


class MiscHardware(TypedDict, total=False):
    """An extra line item not derived from a rigging component."""

    id: str
    item: str
    quantity: int
    notes: str


class ChecklistItem(TypedDict, total=False):
    id: str
    task: str
    completed: bool


class RigProject(TypedDict, total=False):
    """
    A rigging survey for one vessel.

    Attributes:
        id: Project identifier.
        project_name: Survey reference (e.g. "Standing Rigging Replacement 2024").
        vessel_name: The vessel's name.
        boat_type: Production boat model, if chosen.
        components: Ordered rigging components.
        miscellaneous_hardware: Ordered extra line items.
        checklist: Survey tasks cloned from the settings templates.
        created_at: ISO-8601 creation timestamp.
        updated_at: ISO-8601 timestamp of the last save.
    """

    id: str
    project_name: str
    vessel_name: str
    boat_type: str
    components: list[RiggingComponent]
    miscellaneous_hardware: list[MiscHardware]
    checklist: list[ChecklistItem]
    created_at: str
    updated_at: str


class RigSettings(TypedDict):
    """Per-user vocabularies and checklist templates."""

    component_types: list[str]
    termination_types: list[str]
    material_types: list[str]
    production_boats: list[str]
    boat_specific_checklists: dict[str, list[str]]
    default_checklist: list[str]


class WireTotal(TypedDict):
    """Total wire length (meters) for one (material, diameter) pair."""

    material: str
    diameter: str
    length: float


class FittingTotal(TypedDict):
    """Fitting count for one (termination type, pin size, wire diameter)."""

    type: str
    pin_size: str
    diameter: str
    quantity: int


class PinTotal(TypedDict):
    size: str
    quantity: int


class PickList(TypedDict):
    """
    The aggregated bill of materials derived from a project's components.

    Each list is in first-seen key order.
    """

    wire: list[WireTotal]
    fittings: list[FittingTotal]
    pins: list[PinTotal]


def create_empty_pick_list() -> PickList:
    """Factory function to return a pick list with no entries."""
    return {"wire": [], "fittings": [], "pins": []}
