"""HRMS backend package.

Organized by feature modules (users, attendance, leaves, payroll,
notifications) with a thin Flask controller layer over service and
repository layers.
"""
