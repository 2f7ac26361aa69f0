"""
Certifications Module

Issuance, lifecycle and public verification of host certifications.

API Endpoints:
- /admin/certifications - Issue, list, revoke, renew, bulk operations, stats
- /admin/templates - Certificate template management
- /verify/{identifier} - Public verification (rate limited)

Background Jobs (via APScheduler):
- certifications_expiry_sweep: Runs hourly, expires overdue certifications
  and notifies hosts of upcoming expiry
"""
