"""TableDesk: browser-based administration for SQLite database servers."""
import logging

import gradio as gr

from db.operations import init_database
from db.server import LOCALHOST_ROOT
from pages.main import build_page
from services.log_config import setup_logging, cleanup_old_logs
from services.settings import init_settings, get_setting, get_int_setting
from tabledesk_theme import TableDeskTheme, TABLEDESK_CSS

logger = logging.getLogger(__name__)


def create_app() -> gr.Blocks:
    """Initialise local state and build the Gradio app."""
    init_database()
    init_settings()
    setup_logging(get_setting("log_level"))
    removed = cleanup_old_logs(get_int_setting("log_retention_days"))
    if removed:
        logger.info("Removed %d old log entries", removed)
    LOCALHOST_ROOT.mkdir(parents=True, exist_ok=True)

    with gr.Blocks(title="TableDesk") as demo:
        page = build_page()
        demo.load(
            page['load'], inputs=page['load_inputs'], outputs=page['load_outputs'],
            api_visibility="private",
        )
    return demo


def main():
    demo = create_app()
    demo.launch(css=TABLEDESK_CSS, theme=TableDeskTheme())


if __name__ == "__main__":
    main()
