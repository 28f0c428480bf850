"""Application Logs accordion -- recent log entries from the state database."""
import gradio as gr
import pandas as pd

from services.log_config import get_logs

LOG_COLUMNS = ["timestamp", "level", "logger", "database", "table", "message"]


def _logs_to_df(level: str, logger_name: str, table: str) -> pd.DataFrame:
    """Fetch recent logs as a display DataFrame."""
    rows = get_logs(level=level, logger_name=logger_name.strip(), table=table.strip(), limit=200)
    if not rows:
        return pd.DataFrame(columns=LOG_COLUMNS)
    return pd.DataFrame([{
        "timestamp": r.get("timestamp", ""),
        "level": r.get("level", ""),
        "logger": r.get("logger", ""),
        "database": r.get("database_name", ""),
        "table": r.get("table_name", ""),
        "message": (r.get("message") or "")[:200],
    } for r in rows], columns=LOG_COLUMNS)


def build_logs_tab():
    """Build the Application Logs accordion. Returns dict of components."""
    with gr.Accordion("Application Logs", open=False) as logs_accordion:
        with gr.Row():
            log_level_filter = gr.Dropdown(
                label="Level",
                choices=["", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                value="",
                interactive=True,
                scale=1,
            )
            log_logger_filter = gr.Textbox(
                label="Logger",
                placeholder="e.g. table_structure, server",
                value="",
                interactive=True,
                scale=2,
            )
            log_table_filter = gr.Textbox(
                label="Table",
                placeholder="exact table name",
                value="",
                interactive=True,
                scale=2,
            )
            log_refresh_btn = gr.Button("Refresh", variant="primary", scale=0)

        log_table = gr.DataFrame(
            value=pd.DataFrame(columns=LOG_COLUMNS),
            interactive=False,
            label="Recent Logs",
            wrap=True,
        )

        log_refresh_btn.click(
            _logs_to_df,
            inputs=[log_level_filter, log_logger_filter, log_table_filter],
            outputs=[log_table],
            api_visibility="private",
        )

    return {
        'accordion': logs_accordion,
        'table': log_table,
    }
