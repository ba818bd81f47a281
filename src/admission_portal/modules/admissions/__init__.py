"""
Admissions module - Student applications, documents and payments.

Routers are imported by submodule path (``admissions.router`` and
``admissions.admin_router``) to keep model imports free of cycles.
"""
