"""
InkPad Backend — API Routes Package
====================================

Route Inventory:
    - notes.py:   POST   /api/notes                create a note
                  GET    /api/notes                list the caller's notes
                  GET    /api/notes/folders        distinct folders
                  GET    /api/notes/tags           distinct tags
                  GET    /api/notes/search         regex search with filters
                  GET    /api/notes/{id}           single note
                  GET    /api/notes/{id}/pages     decoded drawing pages
                  PUT    /api/notes/{id}           update a note
                  DELETE /api/notes/{id}           delete a note
    - health.py:  GET    /health                   service health check

Routes stay thin: they extract request data, call NoteService, and shape
the response. Business rules live in services/.
"""
