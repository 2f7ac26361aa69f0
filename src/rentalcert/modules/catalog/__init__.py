"""
Catalog module.

Property types and the compliance checklist items configured per type.
"""
