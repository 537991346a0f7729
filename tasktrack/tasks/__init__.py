"""
TaskTrack Tasks — the task access-control and state-transition core.

    schemas    — constraint sets for create/update payloads
    policy     — authorize(actor, task, operation)
    lifecycle  — creation defaults, partial updates, status transitions
    store      — filtered enumeration and persistence
    service    — policy → lifecycle → store for each operation
"""
