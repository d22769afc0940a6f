"""
Contracts (data models and routes).

This folder defines the request/response shapes of the platform API and the
table of operations that use them.

Why this exists:
- The client and the reference server share one definition of every payload
- Prevents "guessing" payload formats or URLs in multiple places
- A drifted server response fails validation instead of leaking a wrong shape

Both the in-process and real HTTP clients should use these contracts.
"""
