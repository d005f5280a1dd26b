"""
Notification Center for the Social Scheduler application.

It exposes the server of record (API routers, core utilities, domain models,
repositories and services) and the polling client that keeps a per-user
notification feed in sync with it.
"""
