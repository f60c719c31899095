"""
Streamlit Dashboard Application

This module provides the web-based keypad screen for the MOF field
calculator.

Components:
- dashboard.py: Main dashboard application
- components/: Reusable UI components
  - keypad.py: Readout and numeric keypad
  - tables.py: CT table and AISS card
  - charts.py: Plotly chart components
"""

__version__ = "0.1.0"
