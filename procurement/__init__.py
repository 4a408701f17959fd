"""Procurement platform: tenders, proposals and the multi-stage approval workflow."""

__version__ = "0.3.0"
