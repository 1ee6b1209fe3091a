"""Attendance Analytics package.

Organized by feature modules (activities, members, attendance, reports, ...)
with a thin Flask controller layer over service/repository layers.
"""
