"""
Enrollment eligibility & correlativities engine.
"""
__version__ = "1.0.0"
