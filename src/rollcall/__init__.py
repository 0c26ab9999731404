"""Rollcall package.

Organized by feature modules (users, registers, employees, attendance, payroll)
with a thin Flask controller layer over service/repository layers.
"""
