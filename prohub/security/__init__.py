"""Audit trail persistence."""
