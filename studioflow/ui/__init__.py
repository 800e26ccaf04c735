"""Streamlit pages for the studio importer."""
