"""
Shared pieces used across modules: collaborator interfaces and HTTP helpers.
"""
