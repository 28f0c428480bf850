"""TableDesk theme for Gradio: neutral slate surfaces, blue accents."""

from gradio.themes.base import Base
from gradio.themes.utils import colors, fonts, sizes


class TableDeskTheme(Base):
    """Compact, grid-friendly theme for the admin UI.

    Slate neutrals keep dense tables readable; blue marks the active
    section and primary actions, red is reserved for destructive ones.
    """

    def __init__(self):
        super().__init__(
            primary_hue=colors.blue,
            secondary_hue=colors.slate,
            neutral_hue=colors.slate,
            spacing_size=sizes.spacing_sm,
            radius_size=sizes.radius_sm,
            text_size=sizes.text_sm,
            font=[
                fonts.GoogleFont("Inter"),
                "ui-sans-serif",
                "sans-serif",
            ],
            font_mono=[
                fonts.GoogleFont("IBM Plex Mono"),
                "ui-monospace",
                "monospace",
            ],
        )

        super().set(
            body_background_fill="#f8fafc",
            block_background_fill="#ffffff",
            block_border_width="1px",
            button_primary_background_fill="*primary_600",
            button_primary_background_fill_hover="*primary_700",
            button_cancel_background_fill="#dc2626",
            button_cancel_text_color="#ffffff",
        )


TABLEDESK_CSS = """
/* Structure cell with a save in flight */
.pending input, .pending textarea { color: grey !important; }

/* Inline diagnostics under a structure row or section */
.diagnostic { color: #b91c1c; font-size: 0.85em; }
"""
