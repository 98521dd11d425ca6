"""
High-level project and settings mutation logic.

This module acts as the "Controller" for the rigging library. It handles:
- Creating a survey project with its checklist seeded from the templates.
- Adding, replacing and removing rigging components and misc hardware.
- Ticking and extending the survey checklist.
- Editing the per-user settings vocabularies and boat-specific checklists.

Mutating functions change the record in place; persisting it is the
caller's job (see src.storage).
"""

import copy

from src.rig_lib import constants as C
from src.rig_lib.types import (
    ChecklistItem,
    MiscHardware,
    RiggingComponent,
    RigProject,
    RigSettings,
)
from src.rig_lib.utils import coerce_quantity, new_id, utc_now_iso


def default_settings() -> RigSettings:
    """Returns a fresh, independently mutable copy of the default settings."""
    return {
        "component_types": list(C.DEFAULT_COMPONENT_TYPES),
        "termination_types": list(C.DEFAULT_TERMINATION_TYPES),
        "material_types": list(C.DEFAULT_MATERIAL_TYPES),
        "production_boats": list(C.DEFAULT_PRODUCTION_BOATS),
        "boat_specific_checklists": {},
        "default_checklist": list(C.DEFAULT_CHECKLIST),
    }


def build_checklist(settings: RigSettings, boat_type: str | None) -> list[ChecklistItem]:
    """
    Clones the checklist templates for a new survey.

    The global default checklist comes first, followed by any tasks
    registered for the chosen production boat.
    """
    tasks = list(settings.get("default_checklist", []))
    if boat_type:
        tasks.extend(settings.get("boat_specific_checklists", {}).get(boat_type, []))

    return [{"id": new_id(), "task": task, "completed": False} for task in tasks]


def create_project(
    project_name: str,
    vessel_name: str,
    settings: RigSettings,
    boat_type: str | None = None,
) -> RigProject:
    """
    Starts a new rigging survey.

    Args:
        project_name: Survey reference shown under the vessel name.
        vessel_name: The vessel being surveyed.
        settings: The user's settings (source of the checklist templates).
        boat_type: Optional production boat model.

    Returns:
        The new project record (not yet saved).

    Raises:
        ValueError: If the project or vessel name is blank.
    """
    if not project_name.strip() or not vessel_name.strip():
        raise ValueError("Project name and vessel name are required.")

    now = utc_now_iso()
    project: RigProject = {
        "id": new_id(),
        "project_name": project_name.strip(),
        "vessel_name": vessel_name.strip(),
        "components": [],
        "miscellaneous_hardware": [],
        "checklist": build_checklist(settings, boat_type),
        "created_at": now,
        "updated_at": now,
    }
    if boat_type:
        project["boat_type"] = boat_type
    return project


def upsert_component(project: RigProject, component: RiggingComponent) -> RiggingComponent:
    """
    Adds a component, or replaces the one with the same id.

    Blank optional fields are dropped so they read as "not recorded".

    Raises:
        ValueError: If the quantity is below 1 or the type is blank.
    """
    if coerce_quantity(component.get("quantity")) < 1:
        raise ValueError("Quantity must be at least 1.")
    if not str(component.get("type", "")).strip():
        raise ValueError("Component type is required.")

    clean: RiggingComponent = {
        k: v for k, v in component.items() if v not in (None, "")  # type: ignore[misc]
    }
    clean["quantity"] = coerce_quantity(component["quantity"])
    if not clean.get("id"):
        clean["id"] = new_id()

    components = project.setdefault("components", [])
    for i, existing in enumerate(components):
        if existing.get("id") == clean["id"]:
            components[i] = clean
            return clean

    components.append(clean)
    return clean


def delete_component(project: RigProject, component_id: str) -> None:
    project["components"] = [
        c for c in project.get("components", []) if c.get("id") != component_id
    ]


def add_misc_hardware(
    project: RigProject, item: str, quantity: int = 1, notes: str | None = None
) -> MiscHardware:
    """
    Appends a miscellaneous hardware line (e.g. "M10 Clevis Pins").

    Raises:
        ValueError: If the item text is blank or the quantity is below 1.
    """
    if not item.strip():
        raise ValueError("Item description is required.")
    qty = coerce_quantity(quantity)
    if qty < 1:
        raise ValueError("Quantity must be at least 1.")

    misc: MiscHardware = {"id": new_id(), "item": item.strip(), "quantity": qty}
    if notes:
        misc["notes"] = notes
    project.setdefault("miscellaneous_hardware", []).append(misc)
    return misc


def delete_misc_hardware(project: RigProject, misc_id: str) -> None:
    project["miscellaneous_hardware"] = [
        m for m in project.get("miscellaneous_hardware", []) if m.get("id") != misc_id
    ]


def toggle_checklist_item(project: RigProject, item_id: str) -> bool:
    """
    Flips the completed flag of a checklist item.

    Returns:
        The new completed state (False if the item was not found).
    """
    for item in project.get("checklist", []):
        if item.get("id") == item_id:
            item["completed"] = not item.get("completed", False)
            return item["completed"]
    return False


def add_checklist_item(project: RigProject, task: str) -> ChecklistItem:
    if not task.strip():
        raise ValueError("Checklist task is required.")
    item: ChecklistItem = {"id": new_id(), "task": task.strip(), "completed": False}
    project.setdefault("checklist", []).append(item)
    return item


def checklist_progress(project: RigProject) -> tuple[int, int]:
    """Returns (completed, total) for the project's checklist."""
    items = project.get("checklist", [])
    return sum(1 for i in items if i.get("completed")), len(items)


# --- Settings ---


def _check_list_key(list_key: str) -> None:
    if list_key not in C.SETTINGS_LIST_KEYS:
        raise ValueError(f"Unknown settings list: {list_key}")


def add_setting_entry(settings: RigSettings, list_key: str, value: str) -> RigSettings:
    """
    Returns new settings with `value` appended to one of the vocabularies.

    Blank values and exact duplicates are ignored.
    """
    _check_list_key(list_key)
    value = value.strip()
    updated = copy.deepcopy(settings)
    entries: list[str] = updated.setdefault(list_key, [])  # type: ignore[misc]
    if value and value not in entries:
        entries.append(value)
    return updated


def remove_setting_entry(settings: RigSettings, list_key: str, value: str) -> RigSettings:
    _check_list_key(list_key)
    updated = copy.deepcopy(settings)
    updated[list_key] = [v for v in updated.get(list_key, []) if v != value]  # type: ignore[literal-required]
    return updated


def add_boat_checklist_item(settings: RigSettings, boat: str, task: str) -> RigSettings:
    """Registers an extra survey task for one production boat."""
    task = task.strip()
    updated = copy.deepcopy(settings)
    if not boat or not task:
        return updated
    boat_map = updated.setdefault("boat_specific_checklists", {})
    boat_map.setdefault(boat, []).append(task)
    return updated


def remove_boat_checklist_item(settings: RigSettings, boat: str, task: str) -> RigSettings:
    updated = copy.deepcopy(settings)
    boat_map = updated.setdefault("boat_specific_checklists", {})
    boat_map[boat] = [t for t in boat_map.get(boat, []) if t != task]
    return updated
