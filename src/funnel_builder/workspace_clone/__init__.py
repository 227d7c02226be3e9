"""Workspace clone engine.

Copies a source workspace's funnels, themes, settings, pages and role
templates to a new owner inside one database transaction.

Sub-modules:
- ``payment_guard``  - at-most-once payment check
- ``graph_reader``   - eager snapshot of the source workspace subtree
- ``slug_allocator`` - collision-free workspace slug allocation
- ``redaction``      - plan-aware scrubbing of copied funnel settings
- ``orchestrator``   - writes the copied graph
- ``clone_record``   - provenance row that consumes the payment
- ``provisioner``    - best-effort membership and subdomain set-up after commit
- ``service``        - :class:`CloneWorkspaceService`, the entry point
"""
