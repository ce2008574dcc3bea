"""
Policy package.

Evaluates the proxy's access-policy document. The algebra is three-valued
(passed / not passed / empty) so that a combinator that was never
configured stays neutral instead of denying.

Modules of interest:
- result: The tri-state outcome with merge and inversion.
- models: Matchers, criteria, combinators, actions and routes.
- loader: YAML loading into the policy models.
- index: Public-access override, routing key lookup and known identity discovery.
"""

from .result import PolicyResult
from .models import Policy, PolicyAction, PolicyDocument, PolicyRoute
from .loader import load_policy_document, load_policy_from_str
from .index import PolicyIndex

__all__ = [
    "PolicyResult",
    "Policy",
    "PolicyAction",
    "PolicyDocument",
    "PolicyRoute",
    "PolicyIndex",
    "load_policy_document",
    "load_policy_from_str",
]
