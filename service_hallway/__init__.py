"""
Hallway service package.

Serves one personalised landing page per visitor behind a Pomerium proxy:
every destination in ``config.toml`` whose route policy in
``pomerium.yaml`` admits the visitor's email, grouped as configured.

- app.main: Application entrypoint that wires routes and lifecycle.
- app.policy: Policy document model, three-valued evaluation and index.
- app.routes: Destination tree loaded from ``config.toml``.
- app.access: Per-identity visibility, precomputed at startup.
- app.rendering: Jinja2 templates and the per-email render cache.
- app.auth: Identity assertion decoding and proxy well-known data.

Design notes:
- Module import performs no IO. Configuration is read when the service
  object is created; network fetches happen in the startup hook.
- The access table is immutable once built; only the render cache
  changes while serving.
"""
