import json
import os
import sys

from src import config
from src.exporters import build_project_workbook, spreadsheet_filename, workbook_to_bytes
from src.pdf_generator import build_survey_sheet
from src.rig_lib import aggregate_pick_list, safe_file_stem, sort_pick_list
from src.storage import ProjectStore


def load_project(ref):
    """A project from a JSON file path, or by id from the configured store."""
    if os.path.exists(ref):
        with open(ref, "r", encoding="utf-8") as f:
            return json.load(f)

    store = ProjectStore(config.get_data_dir(), config.get_user_namespace())
    try:
        project = store.get_project(ref)
    except ValueError:
        project = None
    if project is None:
        print(f"❌ No project file or stored project named '{ref}'.")
        sys.exit(1)
    return project


if __name__ == "__main__":
    config.configure_logging()

    if len(sys.argv) < 2:
        print("Usage: python cli.py <project.json | project-id> [output_folder]")
        sys.exit(1)

    # 1. Ingest
    project = load_project(sys.argv[1])
    out_dir = sys.argv[2] if len(sys.argv) > 2 else "output"
    components = project.get("components", [])
    misc = project.get("miscellaneous_hardware", [])

    print(f"🚢 {project.get('vessel_name', '')} · {project.get('project_name', '')}")
    print(f"   {len(components)} components, {len(misc)} misc items")

    # 2. Aggregate
    pick_list = sort_pick_list(aggregate_pick_list(components))

    print("\n--- Wire ---")
    for w in pick_list["wire"]:
        print(f"   {w['material']} {w['diameter']}: {w['length']:.2f} m")
    print("\n--- Fittings ---")
    for f in pick_list["fittings"]:
        print(f"   {f['quantity']:>3} x {f['type']} (pin {f['pin_size']}, wire {f['diameter']})")
    print("\n--- Clevis Pins ---")
    for p in pick_list["pins"]:
        print(f"   {p['quantity']:>3} x {p['size']}")
    if not any(pick_list.values()):
        print("⚠️  Nothing to aggregate.")

    # 3. Output
    os.makedirs(out_dir, exist_ok=True)
    xlsx_path = os.path.join(out_dir, spreadsheet_filename(project.get("vessel_name")))
    pdf_path = os.path.join(
        out_dir, f"{safe_file_stem(project.get('vessel_name'))}-survey-sheet.pdf"
    )

    wb = build_project_workbook(
        project.get("vessel_name", ""),
        pick_list["wire"],
        pick_list["fittings"],
        pick_list["pins"],
        misc,
        components,
    )
    try:
        with open(xlsx_path, "wb") as f:
            f.write(workbook_to_bytes(wb))
        print(f"\n✅ XLSX: {xlsx_path}")
    except PermissionError:
        print(f"\n❌ Error: Close {xlsx_path} first.")

    try:
        with open(pdf_path, "wb") as f:
            f.write(build_survey_sheet(project))
        print(f"✅ PDF:  {pdf_path}")
    except PermissionError:
        print(f"\n❌ Error: Close {pdf_path} first.")

    print("\nDone.")
