"""Scope membership - may the subject act in this institution or polo?

Subjects can be limited to the institutions and polos they belong to.
The check runs after the base grant and before the contextual dimensions,
and like them it only restricts:

- A subject with neither institution_ids nor polo_ids is unscoped.
- A request for an institution needs membership of that institution, or of
  the request's polo (polo staff act inside their own institution).
- A request for a polo needs membership of that polo, or of the request's
  institution (institution staff reach every polo of it).
"""

from __future__ import annotations

from institution_abac.context import RequestContext, Subject

__all__ = ["scope_violation"]


def scope_violation(subject: Subject, context: RequestContext) -> str | None:
    """Explain why the subject is outside the request's scope.

    Args:
        subject: Caller with optional scope membership.
        context: Request carrying the institution and polo being acted on.

    Returns:
        Denial reason, or None when the subject is in scope.
    """
    if subject.institution_ids is None and subject.polo_ids is None:
        return None

    institutions = subject.institution_ids or []
    polos = subject.polo_ids or []
    in_institution = context.institution_id is not None and context.institution_id in institutions
    in_polo = context.polo_id is not None and context.polo_id in polos

    if context.institution_id is not None and not (in_institution or in_polo):
        return f"subject is outside institution '{context.institution_id}'"
    if context.polo_id is not None and not (in_polo or in_institution):
        return f"subject is outside polo '{context.polo_id}'"
    return None
