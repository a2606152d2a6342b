"""System and audit logging."""
