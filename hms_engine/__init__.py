"""
HMS Engine

Rule-based clinical decision support and patient numbering for the
hospital front desk: triage priority, lab result summaries, billing
anomaly flags, performance trends and sequential patient identifiers.
"""

__version__ = "1.0.0"
