"""Tab modules for the TableDesk Gradio UI."""
from .tab_logs import build_logs_tab
