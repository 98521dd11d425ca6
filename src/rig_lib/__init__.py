"""
RigSurvey Library (Package Entry Point).

Exposes the core logic and data structures for rigging surveys: unit
normalization, pick-list aggregation, and project/settings management.
"""

from .manager import (
    add_boat_checklist_item,
    add_checklist_item,
    add_misc_hardware,
    add_setting_entry,
    build_checklist,
    checklist_progress,
    create_project,
    default_settings,
    delete_component,
    delete_misc_hardware,
    remove_boat_checklist_item,
    remove_setting_entry,
    toggle_checklist_item,
    upsert_component,
)
from .picklist import (
    aggregate_pick_list,
    component_count,
    sort_fittings,
    sort_pick_list,
    sort_pins,
    total_length_meters,
)
from .types import (
    ChecklistItem,
    FittingTotal,
    MiscHardware,
    PickList,
    PinTotal,
    RiggingComponent,
    RigProject,
    RigSettings,
    WireTotal,
    create_empty_pick_list,
)
from .utils import (
    coerce_quantity,
    natural_sort_key,
    new_id,
    parse_length_meters,
    safe_file_stem,
    utc_now_iso,
)

__all__ = [
    # types
    "RiggingComponent",
    "MiscHardware",
    "ChecklistItem",
    "RigProject",
    "RigSettings",
    "WireTotal",
    "FittingTotal",
    "PinTotal",
    "PickList",
    "create_empty_pick_list",
    # picklist
    "aggregate_pick_list",
    "sort_fittings",
    "sort_pins",
    "sort_pick_list",
    "total_length_meters",
    "component_count",
    # manager
    "default_settings",
    "build_checklist",
    "create_project",
    "upsert_component",
    "delete_component",
    "add_misc_hardware",
    "delete_misc_hardware",
    "toggle_checklist_item",
    "add_checklist_item",
    "checklist_progress",
    "add_setting_entry",
    "remove_setting_entry",
    "add_boat_checklist_item",
    "remove_boat_checklist_item",
    # utils
    "parse_length_meters",
    "coerce_quantity",
    "natural_sort_key",
    "safe_file_stem",
    "new_id",
    "utc_now_iso",
]
