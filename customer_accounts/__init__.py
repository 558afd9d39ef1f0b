"""
Customer accounts deletion service.

Permanently removes customer accounts and everything that hangs off of them:
payment-provider customers and billing agreements, devices and push
registrations, offline messages, OAuth tokens and grant codes, and finally the
canonical account record. Deletion is attempted synchronously where possible,
and otherwise deferred to a durable task queue that calls back into this
service until the deletion succeeds.
"""
