"""
Folio Backend — Services Layer
================================

What:  Business logic between the routes (HTTP) and the database / object storage.

Service Inventory:
    - lifecycle:          publication state machine of a reflection
    - slugs:              slug derivation and disambiguation
    - upload_service:     image payload validation (extension, size, Pillow decode)
    - storage_service:    ObjectStorage interface with local and Supabase backends
    - reflection_service: reflection orchestrator
    - tag_service:        tag listing and creation
    - album_service:      album / image orchestrator (uploads, compensation, cleanup)
"""
