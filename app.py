import base64
import logging
from typing import cast

import streamlit as st

from src import config
from src.exceptions import PhotoDecodeError, RigSurveyError
from src.exporters import (
    build_project_workbook,
    generate_hardware_list_csv,
    spreadsheet_filename,
    workbook_to_bytes,
)
from src.generators import (
    OpenAIGenerationService,
    draft_rigging_email,
    generate_hardware_list,
)
from src.mailer import (
    collect_project_photos,
    decode_photo,
    email_from_draft,
    generate_rigging_email,
    send_rigging_email,
)
from src.pdf_generator import build_survey_sheet
from src.rig_lib import (
    RiggingComponent,
    RigProject,
    RigSettings,
    add_boat_checklist_item,
    add_checklist_item,
    add_misc_hardware,
    add_setting_entry,
    aggregate_pick_list,
    checklist_progress,
    component_count,
    create_project,
    delete_component,
    delete_misc_hardware,
    remove_boat_checklist_item,
    remove_setting_entry,
    safe_file_stem,
    sort_pick_list,
    toggle_checklist_item,
    total_length_meters,
    upsert_component,
)
from src.rig_lib import constants as C
from src.storage import ProjectStore

config.configure_logging()
logger = logging.getLogger("rigsurvey.app")

st.set_page_config(page_title="RigSurvey", page_icon="⛵")

st.title("⛵ RigSurvey")
st.markdown("""
**Survey a rig, get the pick list.**

Record shrouds, stays and their terminations, then export a priced Bill of Materials,
print a field sheet, or email the specification to your client.
""")

store = ProjectStore(config.get_data_dir(), config.get_user_namespace())

if "project_id" not in st.session_state:
    st.session_state.project_id = None
if "editing_component_id" not in st.session_state:
    st.session_state.editing_component_id = None
if "hardware_result" not in st.session_state:
    st.session_state.hardware_result = None


def open_project(project_id):
    st.session_state.project_id = project_id
    st.session_state.editing_component_id = None
    st.session_state.hardware_result = None


def close_project():
    st.session_state.project_id = None
    st.session_state.editing_component_id = None
    st.session_state.hardware_result = None


def photo_to_data_uri(uploaded) -> str:
    mime = uploaded.type or "image/jpeg"
    encoded = base64.b64encode(uploaded.getvalue()).decode("ascii")
    return f"data:{mime};base64,{encoded}"


def option_index(options, value):
    return options.index(value) if value in options else 0


# --- Views ---


def render_dashboard(settings: RigSettings):
    st.subheader("🧭 New Survey")
    with st.form("new_project_form", clear_on_submit=True):
        vessel_name = st.text_input("Vessel Name", placeholder="e.g. S/V Sea Breeze", key="new_vessel")
        boat_type = st.selectbox("Boat Type / Model", [""] + settings["production_boats"], key="new_boat")
        project_name = st.text_input(
            "Project Name / Reference",
            placeholder="e.g. Standing Rigging Replacement 2024",
            key="new_project_name",
        )
        if st.form_submit_button("Create Project", type="primary"):
            try:
                project = create_project(project_name, vessel_name, settings, boat_type or None)
            except ValueError as e:
                st.warning(str(e))
            else:
                store.save_project(project)
                open_project(project["id"])
                st.rerun()

    st.divider()
    st.subheader("📂 Projects")
    projects = store.list_projects()
    if not projects:
        st.info("No surveys yet. Create one above.")
        return

    for p in projects:
        c1, c2, c3 = st.columns([6, 1, 1])
        c1.markdown(
            f"**{p.get('vessel_name', '')}** · {p.get('project_name', '')}  \n"
            f"{len(p.get('components', []))} components · updated {p.get('updated_at', '')[:10]}"
        )
        c2.button("Open", key=f"open_{p['id']}", on_click=open_project, args=(p["id"],))
        if c3.button("🗑️", key=f"delproj_{p['id']}"):
            store.delete_project(p["id"])
            st.rerun()


def render_component_form(project: RigProject, settings: RigSettings):
    editing_id = st.session_state.editing_component_id
    existing = next(
        (c for c in project.get("components", []) if c.get("id") == editing_id), None
    )
    initial = cast(RiggingComponent, existing or {})

    type_options = settings["component_types"]
    material_options = [""] + settings["material_types"]
    termination_options = ["", C.NO_TERMINATION] + settings["termination_types"]

    st.subheader("✏️ Edit Component" if existing else "➕ Add Component")
    with st.form("component_form", clear_on_submit=True):
        c1, c2 = st.columns([3, 1])
        comp_type = c1.selectbox(
            "Type", type_options, index=option_index(type_options, initial.get("type"))
        )
        quantity = c2.number_input("Qty", min_value=1, value=int(initial.get("quantity", 1)))

        c1, c2, c3 = st.columns(3)
        length = c1.text_input("Length", value=initial.get("length", ""), placeholder="12.5m / 41ft")
        diameter = c2.text_input("Diameter", value=initial.get("diameter", ""), placeholder="8mm")
        material = c3.selectbox(
            "Material",
            material_options,
            index=option_index(material_options, initial.get("material", "")),
        )

        c1, c2 = st.columns(2)
        upper = c1.selectbox(
            "Upper Termination",
            termination_options,
            index=option_index(termination_options, initial.get("upper_termination", "")),
        )
        pin_upper = c2.text_input("Upper Pin Size", value=initial.get("pin_size_upper", ""))
        c1, c2 = st.columns(2)
        lower = c1.selectbox(
            "Lower Termination",
            termination_options,
            index=option_index(termination_options, initial.get("lower_termination", "")),
        )
        pin_lower = c2.text_input("Lower Pin Size", value=initial.get("pin_size_lower", ""))

        notes = st.text_area("Notes", value=initial.get("notes", ""), height=80)
        uploads = st.file_uploader(
            "Photos", type=["jpg", "jpeg", "png"], accept_multiple_files=True
        )

        if st.form_submit_button("Save Component", type="primary"):
            photos = list(initial.get("photos", []))
            photos.extend(photo_to_data_uri(u) for u in uploads or [])
            component: RiggingComponent = {
                "id": initial.get("id", ""),
                "type": comp_type,
                "quantity": int(quantity),
                "length": length,
                "diameter": diameter,
                "material": material,
                "upper_termination": upper,
                "pin_size_upper": pin_upper,
                "lower_termination": lower,
                "pin_size_lower": pin_lower,
                "notes": notes,
                "photos": photos,
            }
            try:
                upsert_component(project, component)
            except ValueError as e:
                st.warning(str(e))
            else:
                store.save_project(project)
                st.session_state.editing_component_id = None
                st.rerun()

    if existing and st.button("Cancel Edit"):
        st.session_state.editing_component_id = None
        st.rerun()


def render_components_tab(project: RigProject, settings: RigSettings):
    components = project.get("components", [])
    if not components:
        st.info("No components listed. Start adding shrouds, stays, or halyards.")

    for comp in components:
        with st.container(border=True):
            c1, c2, c3 = st.columns([6, 1, 1])
            c1.markdown(
                f"**{comp.get('type', '')}** · QTY {comp.get('quantity', 0)} · "
                f"L: {comp.get('length', '-')} · D: {comp.get('diameter', '-')} · "
                f"{comp.get('material', '')}  \n"
                f"Upper: {comp.get('upper_termination', 'Not specified')} "
                f"(pin {comp.get('pin_size_upper', '-')}) · "
                f"Lower: {comp.get('lower_termination', 'Not specified')} "
                f"(pin {comp.get('pin_size_lower', '-')})"
            )
            if c2.button("✏️", key=f"edit_{comp['id']}"):
                st.session_state.editing_component_id = comp["id"]
                st.rerun()
            if c3.button("🗑️", key=f"delcomp_{comp['id']}"):
                delete_component(project, comp["id"])
                store.save_project(project)
                st.rerun()
            for photo in comp.get("photos", []):
                try:
                    _, image, _ = decode_photo(
                        {"data_uri": photo, "component_name": comp.get("type", "")}
                    )
                except PhotoDecodeError:
                    continue
                st.image(image, width=160)

    st.divider()
    render_component_form(project, settings)


def render_misc_tab(project: RigProject):
    with st.form("misc_form", clear_on_submit=True):
        c1, c2 = st.columns([4, 1])
        item = c1.text_input("Item Description", placeholder="e.g. M10 Clevis Pins, Split rings")
        qty = c2.number_input("Qty", min_value=1, value=1, key="misc_qty")
        notes = st.text_input("Notes", key="misc_notes")
        if st.form_submit_button("Add"):
            try:
                add_misc_hardware(project, item, int(qty), notes or None)
            except ValueError as e:
                st.warning(str(e))
            else:
                store.save_project(project)
                st.rerun()

    for m in project.get("miscellaneous_hardware", []):
        c1, c2 = st.columns([6, 1])
        c1.markdown(f"**{m.get('quantity', 0)}x** {m.get('item', '')}")
        if c2.button("🗑️", key=f"delmisc_{m['id']}"):
            delete_misc_hardware(project, m["id"])
            store.save_project(project)
            st.rerun()


def render_checklist_tab(project: RigProject):
    done, total = checklist_progress(project)
    if total:
        st.progress(done / total, text=f"{done} of {total} tasks complete")

    for item in project.get("checklist", []):
        checked = st.checkbox(
            item.get("task", ""), value=bool(item.get("completed")), key=f"chk_{item['id']}"
        )
        if checked != bool(item.get("completed")):
            toggle_checklist_item(project, item["id"])
            store.save_project(project)

    with st.form("checklist_form", clear_on_submit=True):
        task = st.text_input("Add Task")
        if st.form_submit_button("Add Task"):
            try:
                add_checklist_item(project, task)
            except ValueError as e:
                st.warning(str(e))
            else:
                store.save_project(project)
                st.rerun()


def render_pick_list_tab(project: RigProject):
    components = project.get("components", [])
    pick_list = sort_pick_list(aggregate_pick_list(components))

    c1, c2 = st.columns(2)
    c1.metric("Total Length", f"{total_length_meters(components):.2f}m")
    c2.metric("Component Count", component_count(components))

    if pick_list["wire"]:
        st.markdown("**Wire & Standing Rigging**")
        st.dataframe(
            [
                {"Material": w["material"], "Diameter": w["diameter"], "Length (m)": round(w["length"], 2)}
                for w in pick_list["wire"]
            ],
            use_container_width=True,
        )
    if pick_list["fittings"]:
        st.markdown("**Fittings & Terminals**")
        st.dataframe(
            [
                {"Type": f["type"], "Pin Size": f["pin_size"], "Wire Dia": f["diameter"], "Qty": f["quantity"]}
                for f in pick_list["fittings"]
            ],
            use_container_width=True,
        )
    if pick_list["pins"]:
        st.markdown("**Clevis Pins**")
        st.dataframe(
            [{"Size": p["size"], "Qty": p["quantity"]} for p in pick_list["pins"]],
            use_container_width=True,
        )
    if not any(pick_list.values()):
        st.info("Add components to build the pick list.")

    st.caption("Tip: Always double-check pin diameters with a vernier caliper before ordering terminals.")


def render_export_tab(project: RigProject):
    components = project.get("components", [])
    misc = project.get("miscellaneous_hardware", [])
    pick_list = sort_pick_list(aggregate_pick_list(components))

    st.subheader("💾 Export")
    wb = build_project_workbook(
        project.get("vessel_name", ""),
        pick_list["wire"],
        pick_list["fittings"],
        pick_list["pins"],
        misc,
        components,
    )
    c1, c2 = st.columns(2)
    c1.download_button(
        "Download Spreadsheet",
        data=workbook_to_bytes(wb),
        file_name=spreadsheet_filename(project.get("vessel_name")),
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        type="primary",
    )
    c2.download_button(
        "Download Survey Sheet (PDF)",
        data=build_survey_sheet(project),
        file_name=f"{safe_file_stem(project.get('vessel_name'))}-survey-sheet.pdf",
        mime="application/pdf",
    )

    st.subheader("✨ AI Hardware Specification")
    if st.button("Generate Hardware List", disabled=not components):
        with st.spinner("Analyzing Survey Data..."):
            try:
                service = OpenAIGenerationService()
                st.session_state.hardware_result = generate_hardware_list(
                    project, components, misc, service
                )
            except RigSurveyError as e:
                logger.error(f"Hardware list generation failed: {e}")
                st.error(str(e))
    if not components:
        st.caption("Add at least one component to generate a list.")

    result = st.session_state.hardware_result
    if result:
        st.dataframe(result["hardware_list"], use_container_width=True)
        if result.get("summary"):
            st.info(result["summary"])
        st.download_button(
            "Download Hardware List CSV",
            data=generate_hardware_list_csv(result["hardware_list"]),
            file_name=f"{safe_file_stem(project.get('vessel_name'))}-hardware-list.csv",
            mime="text/csv",
        )

    st.subheader("📧 Email Specification")
    with st.form("email_form"):
        recipient = st.text_input("Recipient Email", key="recipient_email")
        content = st.radio(
            "Email Content",
            ["Full report", "Draft with AI"],
            horizontal=True,
            key="email_content",
            help="The AI draft is a short plain-text summary without photos.",
        )
        include_photos = st.checkbox("Include component photos", value=True)
        if st.form_submit_button("Send Email"):
            try:
                if content == "Draft with AI":
                    with st.spinner("Drafting email..."):
                        draft = draft_rigging_email(
                            project.get("project_name", ""),
                            project.get("vessel_name", ""),
                            components,
                            misc,
                            pick_list,
                            OpenAIGenerationService(),
                        )
                    email = email_from_draft(draft)
                else:
                    email = generate_rigging_email(
                        project.get("project_name", ""),
                        project.get("vessel_name", ""),
                        project.get("boat_type"),
                        recipient,
                        components,
                        misc,
                        pick_list,
                        collect_project_photos(components) if include_photos else [],
                    )
                send_rigging_email(email, recipient)
            except RigSurveyError as e:
                st.error(str(e))
            else:
                st.toast("Email sent!", icon="📧")


def render_project(project: RigProject, settings: RigSettings):
    st.button("⬅️ Back to Dashboard", on_click=close_project)
    st.header(f"🚢 {project.get('vessel_name', '')}")
    st.caption(
        project.get("project_name", "")
        + (f" · {project['boat_type']}" if project.get("boat_type") else "")
    )

    tabs = st.tabs(["Components", "Miscellaneous", "Checklist", "Pick List", "Export & Email"])
    with tabs[0]:
        render_components_tab(project, settings)
    with tabs[1]:
        render_misc_tab(project)
    with tabs[2]:
        render_checklist_tab(project)
    with tabs[3]:
        render_pick_list_tab(project)
    with tabs[4]:
        render_export_tab(project)


def render_list_editor(settings: RigSettings, list_key: str, label: str) -> RigSettings:
    with st.expander(f"{label} ({len(settings[list_key])})"):
        for value in settings[list_key]:
            c1, c2 = st.columns([6, 1])
            c1.write(value)
            if c2.button("✖", key=f"rm_{list_key}_{value}"):
                settings = remove_setting_entry(settings, list_key, value)
                store.save_settings(settings)
                st.rerun()
        c1, c2 = st.columns([6, 1])
        new_value = c1.text_input(f"New {label}", key=f"new_{list_key}", label_visibility="collapsed")
        if c2.button("➕", key=f"add_{list_key}"):
            settings = add_setting_entry(settings, list_key, new_value)
            store.save_settings(settings)
            st.rerun()
    return settings


def render_settings(settings: RigSettings):
    st.subheader("⚙️ Settings")
    labels = {
        "component_types": "Component Types",
        "termination_types": "Termination Types",
        "material_types": "Material Types",
        "production_boats": "Production Boats",
        "default_checklist": "Default Checklist",
    }
    for key in C.SETTINGS_LIST_KEYS:
        settings = render_list_editor(settings, key, labels[key])

    st.markdown("**Boat-Specific Checklists**")
    boat = st.selectbox("Production Boat", [""] + settings["production_boats"], key="boat_for_checklist")
    if boat:
        for task in settings["boat_specific_checklists"].get(boat, []):
            c1, c2 = st.columns([6, 1])
            c1.write(task)
            if c2.button("✖", key=f"rm_boat_{boat}_{task}"):
                store.save_settings(remove_boat_checklist_item(settings, boat, task))
                st.rerun()
        c1, c2 = st.columns([6, 1])
        new_task = c1.text_input("New boat task", key="new_boat_task", label_visibility="collapsed")
        if c2.button("➕", key="add_boat_task"):
            store.save_settings(add_boat_checklist_item(settings, boat, new_task))
            st.rerun()


# --- Main ---

settings = store.load_settings()
view = st.sidebar.radio("View", ["Projects", "Settings"], key="view")

if view == "Settings":
    render_settings(settings)
elif st.session_state.project_id:
    current = store.get_project(st.session_state.project_id)
    if current is None:
        st.warning("Project not found.")
        close_project()
    else:
        render_project(current, settings)
else:
    render_dashboard(settings)
