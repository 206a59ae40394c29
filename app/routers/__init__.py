"""
Mataam Back Office - API Routers Package
"""

from app.routers import audit, employees, payroll, transactions

__all__ = ["audit", "employees", "payroll", "transactions"]
