"""api.v1 package.

Keep this file minimal to avoid circular imports.
Submodules (short_id_pool, cables, locations) are
imported directly where needed, e.g.:

    from dcim.api.v1 import cables                 # standard implicit submodule import
    # or
    from dcim.api.v1.cables import router
"""
