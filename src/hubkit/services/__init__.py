"""Git backed services."""
