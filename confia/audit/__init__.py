"""Audit logging package."""

from confia.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
