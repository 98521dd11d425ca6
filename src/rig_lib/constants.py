"""
Static Knowledge Base for the RigSurvey Engine.

This module serves as the central repository for:
1.  **Sentinels:** The placeholder strings used where a field was not recorded.
2.  **Unit Conversion:** The imperial-to-metric factor used by the length normalizer.
3.  **Survey Defaults:** Component, termination and material vocabularies, the
    production boat list, and the checklist every new survey starts with.
4.  **Spreadsheet Layout:** Section titles, column headers and widths for the
    Bill of Materials workbook.
"""

# --- Sentinels ---

# Stands in for an unrecorded diameter, material or pin size.
# Also used as a grouping key, so "N/A" wire entries group together.
NOT_AVAILABLE = "N/A"

# Termination value the survey form uses for "no fitting at this end".
NO_TERMINATION = "None"

# --- Units ---

FEET_TO_METERS = 0.3048

# Markers that flag a length as imperial feet (matched case-insensitively).
# Includes ASCII apostrophe and the unicode prime.
FEET_MARKERS = ("ft", "'", "′")

# --- Survey Defaults ---

DEFAULT_COMPONENT_TYPES = [
    "Main Shroud (Cap)",
    "Lower Shroud",
    "Intermediate Shroud",
    "Forestay",
    "Backstay",
    "Inner Forestay",
    "Seagull Striker",
    "Runner",
    "Checkstay",
    "Halyard",
    "Baby Stay",
    "Other Stay/Shroud",
]

DEFAULT_TERMINATION_TYPES = [
    "Swage Stud",
    "Toggle Fork",
    "Toggle Eye",
    "T-Ball",
    "Eye Terminal",
    "Stemball",
    "Thimble",
    "Dead-eye",
    "Turnbuckle Body",
    "Mechanical Terminal (Sta-Lok/Norseman)",
    "Spliced Eye (Dyneema)",
    "Other",
]

DEFAULT_MATERIAL_TYPES = [
    "1x19 Stainless Steel",
    "Hammer",
    "Dyform",
    "7x7 Stainless Steel",
    "7x19 Stainless Steel",
    "Compact Strand",
    "Dyneema SK78",
    "Dyneema SK99",
    "Rod Rigging",
]

DEFAULT_PRODUCTION_BOATS = [
    "Beneteau Oceanis 45",
    "Catalina 30",
    "Jeanneau Sun Odyssey 410",
    "Hanse 458",
    "Bavaria C45",
    "Hunter 33",
    "Island Packet 38",
    "Hallberg-Rassy 40C",
    "Lagoon 42",
    "Leopard 45",
]

DEFAULT_CHECKLIST = [
    "Measure Forestay Length",
    "Check Backstay Terminals",
    "Verify Cap Shroud Pin Sizes",
    "Document Lower Shroud Terminations",
    "Inspect Spreader Ends",
    "Measure Halyard Exit Heights",
    "Check Chainplate Condition",
]

# The settings lists an admin may extend or prune.
SETTINGS_LIST_KEYS = (
    "component_types",
    "termination_types",
    "material_types",
    "production_boats",
    "default_checklist",
)

# --- Spreadsheet Layout ---

BOM_SHEET_TITLE = "Bill of Materials"
COMPONENTS_SHEET_TITLE = "Components"

SECTION_WIRE = "── Wire & Standing Rigging ──"
SECTION_FITTINGS = "── Fittings & Terminals ──"
SECTION_PINS = "── Clevis Pins ──"
SECTION_MISC = "── Miscellaneous Hardware ──"
GRAND_TOTAL_LABEL = "GRAND TOTAL"

WIRE_HEADERS = ["Material", "Diameter", "Length (m)", "Unit Price ($/m)", "Total"]
FITTING_HEADERS = ["Type", "Pin Size", "Wire Dia", "Qty", "Unit Price", "Total"]
PIN_HEADERS = ["Size", "Qty", "Unit Price", "Total"]
MISC_HEADERS = ["Item", "Qty", "Unit Price", "Total"]

COMPONENT_HEADERS = [
    "Type",
    "Qty",
    "Length",
    "Diameter",
    "Material",
    "Upper Termination",
    "Upper Pin",
    "Lower Termination",
    "Lower Pin",
    "Notes",
]

# Character widths per column (A, B, C...). Presentation only.
BOM_COLUMN_WIDTHS = [28, 14, 14, 16, 16, 14]
COMPONENT_COLUMN_WIDTHS = [24, 6, 10, 12, 20, 22, 12, 22, 12, 30]
