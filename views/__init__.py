"""View layer: section coordination and inline structure editing.

Nothing in this package imports Gradio; pages/ maps these objects onto
components.
"""
