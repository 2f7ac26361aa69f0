"""
Applications Module

Host certification applications and their step-by-step completion:
1. PROPERTY_DETAILS - property name, address, type and capacity
2. COMPLIANCE_CHECKLIST - confirmations for the property type's checklist
3. DOCUMENT_UPLOAD - required supporting documents
4. PAYMENT - certification fee (recorded by the payment integration)
5. SUBMISSION - hand-off to review

API Endpoints:
- POST /applications - Create a draft
- GET /applications - List
- GET /applications/{id} - Get
- GET /applications/{id}/progress - Step progress
- PATCH /applications/{id}/step - Move to a step and save its data
- POST /applications/{id}/submit - Submit
- DELETE /applications/{id} - Soft delete
"""
