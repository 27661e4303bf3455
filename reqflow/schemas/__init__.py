"""
schemas/ — Pydantic models for the reqflow API and for the records
stored inside requisition rows (line items, history entries).
"""
