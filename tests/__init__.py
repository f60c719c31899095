"""
Test Suite for MOF Field Calculator

This module contains tests for:
- Keypad entry (test_digit_buffer.py, test_press_timer.py)
- CT table calculations (test_metering.py)
- AISS lookup (test_aiss.py)
- Snapshot validation (test_validators.py)
- Meter session (test_session.py)
- Resource projection (test_projection.py)
- API endpoints (test_api.py)

Run tests with:
    pytest tests/ -v
    pytest tests/ --cov=core --cov=api
"""

import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
