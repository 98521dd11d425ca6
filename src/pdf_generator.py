"""
PDF Generation Engine.

Builds the printable field survey sheet a rigger takes up the mast:
the project title block, the survey checklist with tick boxes, and the
component table with the recorded dimensions and terminations.

It uses the `fpdf2` library to generate the PDF in memory.
"""

import datetime

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from src.rig_lib import RigProject

# (header, width in mm, component key)
COMPONENT_COLUMNS = [
    ("Type", 34, "type"),
    ("Qty", 9, "quantity"),
    ("Length", 17, "length"),
    ("Dia", 14, "diameter"),
    ("Material", 28, "material"),
    ("Upper", 26, "upper_termination"),
    ("U.Pin", 13, "pin_size_upper"),
    ("Lower", 26, "lower_termination"),
    ("L.Pin", 13, "pin_size_lower"),
]

ROW_HEIGHT = 7


def to_latin1(text: object) -> str:
    """Core PDF fonts are latin-1 only; unsupported characters become '?'."""
    return str(text).encode("latin-1", "replace").decode("latin-1")


class SurveySheet(FPDF):
    """
    FPDF Subclass for the printable rigging survey sheet.

    Features:
        - Automatic pagination with the table header repeated on new pages.
        - Custom header/footer.
    """

    def __init__(self, vessel_name: str):
        super().__init__()
        self.vessel_name = vessel_name
        self.set_auto_page_break(auto=True, margin=15)
        self.set_title(to_latin1(f"{vessel_name} Rigging Survey"))

    def header(self):
        """Renders the header on every page."""
        self.set_font("Helvetica", "B", 10)
        self.cell(
            0,
            10,
            to_latin1(f"Rigging Survey - {self.vessel_name}"),
            align="R",
            new_x=XPos.LMARGIN,
            new_y=YPos.NEXT,
        )
        self.line(10, 20, 200, 20)
        self.ln(4)

    def footer(self):
        """Renders the footer on every page."""
        self.set_y(-15)
        self.set_font("Helvetica", "I", 8)
        self.cell(0, 10, f"Page {self.page_no()}", align="C")

    def draw_checkbox(self, x: float, y: float, ticked: bool = False):
        """Draws a square checkbox, crossed through if ticked."""
        self.rect(x, y, 4, 4)
        if ticked:
            self.line(x, y, x + 4, y + 4)
            self.line(x, y + 4, x + 4, y)

    def add_title_block(self, project: RigProject):
        self.set_font("Helvetica", "B", 16)
        self.cell(
            0,
            10,
            to_latin1(project.get("vessel_name", "")),
            new_x=XPos.LMARGIN,
            new_y=YPos.NEXT,
        )
        self.set_font("Helvetica", "", 10)
        self.cell(
            0,
            6,
            to_latin1(f"Project: {project.get('project_name', '')}"),
            new_x=XPos.LMARGIN,
            new_y=YPos.NEXT,
        )
        if project.get("boat_type"):
            self.cell(
                0,
                6,
                to_latin1(f"Boat Type: {project['boat_type']}"),
                new_x=XPos.LMARGIN,
                new_y=YPos.NEXT,
            )
        date_str = datetime.datetime.now().strftime("%Y-%m-%d")
        self.cell(0, 6, f"Printed: {date_str}", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.ln(4)

    def add_checklist(self, project: RigProject):
        items = project.get("checklist", [])
        if not items:
            return

        self.set_font("Helvetica", "B", 12)
        self.cell(0, 8, "Survey Checklist", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.set_font("Helvetica", "", 10)

        for item in items:
            if self.get_y() + ROW_HEIGHT > self.page_break_trigger:
                self.add_page()
            x = self.get_x()
            y = self.get_y()
            self.draw_checkbox(x + 1, y + 1.5, ticked=bool(item.get("completed")))
            self.set_x(x + 8)
            self.cell(
                0,
                ROW_HEIGHT,
                to_latin1(item.get("task", "")),
                new_x=XPos.LMARGIN,
                new_y=YPos.NEXT,
            )
        self.ln(4)

    def _component_header(self):
        self.set_font("Helvetica", "B", 8)
        for title, width, _ in COMPONENT_COLUMNS:
            self.cell(width, ROW_HEIGHT, title, 1)
        self.ln(ROW_HEIGHT)
        self.set_font("Helvetica", "", 8)

    def add_components(self, project: RigProject):
        components = project.get("components", [])

        self.set_font("Helvetica", "B", 12)
        self.cell(0, 8, "Rigging Components", new_x=XPos.LMARGIN, new_y=YPos.NEXT)

        if not components:
            self.set_font("Helvetica", "I", 9)
            self.cell(0, 6, "No components recorded.", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
            return

        self._component_header()
        for component in components:
            # Page Overflow Check: repeat the header on the new page
            if self.get_y() + ROW_HEIGHT > self.page_break_trigger:
                self.add_page()
                self._component_header()

            for _, width, key in COMPONENT_COLUMNS:
                value = to_latin1(component.get(key, ""))
                # Truncate to the column
                max_chars = int(width / 1.6)
                self.cell(width, ROW_HEIGHT, value[:max_chars], 1)
            self.ln(ROW_HEIGHT)

            notes = component.get("notes")
            if notes:
                self.set_font("Helvetica", "I", 7)
                self.multi_cell(0, 4, to_latin1(f"Notes: {notes}"), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
                self.set_font("Helvetica", "", 8)


def build_survey_sheet(project: RigProject) -> bytes:
    """
    Renders a project's printable survey sheet.

    Args:
        project: The survey project.

    Returns:
        bytes: The PDF document.
    """
    pdf = SurveySheet(project.get("vessel_name", "Vessel"))
    pdf.add_page()
    pdf.add_title_block(project)
    pdf.add_checklist(project)
    pdf.add_components(project)
    return bytes(pdf.output())
