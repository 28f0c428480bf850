"""Shared constants for TableDesk: sections, labels, defaults."""

# --- Sections (mutually exclusive top-level panels) ---

SECTIONS = ["structure", "content", "info", "query"]

DEFAULT_SECTION = "content"

SECTION_LABELS = {
    "structure": "Structure",
    "content": "Content",
    "info": "Table Info",
    "query": "Query",
}

# Settings key holding the last active section
SELECTION_KEY = "contentview_previous"

# --- Toolbar zones ---

ZONE_LEFT = "left"
ZONE_RIGHT = "right"

# --- Connect form defaults ---

DEFAULT_HOSTNAME = "localhost"
DEFAULT_USERNAME = "root"

DATABASE_EXTENSIONS = (".db", ".sqlite", ".sqlite3")

# --- Content grid ---

DEFAULT_ROW_LIMIT = 200

# --- Diagnostics ---

NULL_TOGGLE_ERROR = "An error occurred whilst executing SQL to alter the NULL setting"
CONNECT_ERROR = "Sorry, could not connect"
