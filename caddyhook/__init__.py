"""Caddy route hook.

Keeps a Caddy server's routes in step with running containers:
 - builds a route from a ``PUBLIC:INTERNAL:PORT`` annotation
 - renders it as a Caddy JSON route (plain, private-only or redirect)
 - creates it through the admin API unless it already exists
 - deletes it by ``@id`` or, for untagged routes, by position

Each invocation is a single pass against the admin API; nothing is stored
locally between runs.
"""
