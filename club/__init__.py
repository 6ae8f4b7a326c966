"""
Gaming club client package.

Layers:

  club/repositories/ : pure I/O: the persisted login session (JSON file).
  club/services/     : identity, session, cached resource access, purchases
                        and report aggregates.
  club/validators.py : declarative form schemas.
  club/formatters.py : display strings for money, dates and phone numbers.
  club/query_cache.py: the client-side cache the services read through.

``GameClubPortal`` (in ``gameclub.py``) is the integration point: it builds
the HTTP client, cache, notifier and services once and hands the same
instances to every screen.
"""
