"""
Audit Domain

Append-only audit trail shared by every state-affecting operation:
- audit_log: generic events (AI state changes, approvals, flag updates)
- booking_audit: booking transitions, written by the bookings domain

Rows are only ever inserted; there is no update or delete path.
"""
