"""Event handlers for the Kinde workflow runtime.

* :mod:`kinde_workflows.billing` -- reports per-organization seat usage to
  a billing meter after authentication.
* :mod:`kinde_workflows.username` -- rejects malformed or banned usernames
  during signup.
"""
