"""institution-abac: contextual permission evaluation for institutions.

Combines a base role grant with three restrictive rule dimensions
(institution phase, period windows and payment status) into a single
allow/deny decision.
"""

__version__ = "0.1.0"
