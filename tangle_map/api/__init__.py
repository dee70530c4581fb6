"""
HTTP interface for generating and rendering compositions.
"""
