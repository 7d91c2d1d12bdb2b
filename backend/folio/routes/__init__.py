"""
Folio Backend — API Routes Package
====================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - reflections.py: /api/reflections   (CRUD + publish)
    - albums.py:      /api/albums        (CRUD with multipart images, image removal)
    - tags.py:        /api/tags          (list, create)
    - files.py:       /api/files         (local storage objects)
    - health.py:      /health

Design Principle:
    Routes are THIN: they resolve the principal, parse the request, call a
    service, and pick the status code. Authorization and ordering of writes
    live in the services.
"""
