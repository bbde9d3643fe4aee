"""Utility modules for HubKit."""
