"""
HubKit - GitHub repository workflow helper.

Keeps local branches in sync with their remotes, lists maintenance
branches in version order and tracks the development branch alias.
"""

__version__ = "1.0.0"
