"""Office Hours check-in package.

Organized by feature modules (leaders, sessions, attendance, reports, live, admin)
with a thin Flask controller layer over service/repository layers.
"""
