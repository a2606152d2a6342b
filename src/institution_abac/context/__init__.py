"""Request context - who is asking, for what, in which situation.

The caller (the CRUD application) builds a Subject and a RequestContext
from its own data; payment gateways and institution records are its
concern, not the engine's.
"""

from institution_abac.context.request import RequestContext, Subject

__all__ = [
    "RequestContext",
    "Subject",
]
