"""
MOF Field Calculator - Streamlit entry point

Runs the dashboard from the repository root so the core, api and app
packages import without installation.

Run with: streamlit run streamlit_app.py
"""

from app.dashboard import main

main()
