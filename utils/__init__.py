"""Library Admin - CLI helpers

- Output rendering for the console views (ui_helpers.py)
"""
