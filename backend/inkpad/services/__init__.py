"""
InkPad Backend — Services Layer
================================

What:  Business logic between routes (HTTP) and the database.
How:   Services receive the session and caller id, apply the rules, and return
       response schemas. Routes never touch the ORM directly.

Service Inventory:
    - NoteService: ownership-scoped CRUD, folder/tag listing, search, and
      drawing-page export through the handwritten persistence adapter
"""
