"""
Utility modules for the clinic reservation application.

This package contains shared utility functions and helpers used across
the application, including datetime utilities for the spreadsheet formats,
input validators and sheet sanitizers.
"""
