"""Page builders for the TableDesk Gradio UI."""
