"""
Persona Retention

Turns monthly user feedback into behavioural personas and per-persona
retention: CSV in, month x persona statistics, series and alerts out.
"""

__version__ = "1.0.0"
