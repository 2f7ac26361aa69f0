"""
Review module.

Reviewer assignment, review decisions and risk assessment for submitted
applications.
"""
