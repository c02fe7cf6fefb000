"""
AllOne - note sharing platform for students
"""

__version__ = "1.0.0"
