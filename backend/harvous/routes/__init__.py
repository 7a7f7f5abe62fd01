"""
Harvous Backend - API Routes
=============================

Route modules and what they mount:
    notes.py      /api/notes/*       CRUD, threads, auto tags, scripture links
    threads.py    /api/threads/*
    spaces.py     /api/spaces/*
    tags.py       /api/tags/*, /api/notes/{id}/tags/{tag_id}
    scripture.py  /api/scripture/*   detect, fetch-verse, check-existing
    health.py     /health

Handlers stay thin: resolve the user and the session, call one service,
return its result. Errors are raised as HarvousError subclasses and turned
into JSON by the handlers registered in main.py.
"""
