"""Front desk application for the hospital backend.

Patient registration with UHIDs, per-visit identifiers and doctor slot
availability/booking, exposed through a REST API.
"""
