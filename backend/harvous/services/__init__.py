"""
Harvous Backend - Services Layer
=================================

Business rules between the routes and the database. Each service is a
stateless class with a module-level instance; the request's AsyncSession
is passed to every call.

Service Inventory:
    NoteService        notes, thread membership, simple note ids
    ThreadService      threads (pin, note counts)
    SpaceService       spaces
    TagService         tags and the database side of auto tagging
    ScriptureService   detection endpoint, verse lookup, duplicate checks,
                       reference processing for notes
    VerseProvider      interface for verse text sources
    BibleOrgService    Bible.org labs API client (retries + circuit breaker)
"""
