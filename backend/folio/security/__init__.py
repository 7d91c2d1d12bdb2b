"""
Folio Backend — Access-Control Core
=====================================

What:  Principal, Identity Resolver, Visibility Policy and Ownership Guard.
Why:   Everything deciding who may see or change what lives here, separate from
       the orchestrators that act on those decisions.
"""
