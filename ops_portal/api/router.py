"""
API Router Aggregator
=============================================================================
  health.py      /health, /ready, /metrics
  auth.py        /auth/*
  navigation.py  /navigation, /navigation/resolve
  dashboard.py   /dashboard
  tools.py       /tools/*
  requests.py    /requests/*       (tool request workflow)
  leave.py       /leave/*          (leave request workflow)
  employees.py   /employees
  attendance.py  /attendance
  finance.py     /finance/*
  admin.py       /admin/*
=============================================================================
"""

from fastapi import APIRouter

from ops_portal.api.admin import router as admin_router
from ops_portal.api.attendance import router as attendance_router
from ops_portal.api.auth import router as auth_router
from ops_portal.api.dashboard import router as dashboard_router
from ops_portal.api.employees import router as employees_router
from ops_portal.api.finance import router as finance_router
from ops_portal.api.health import router as health_router
from ops_portal.api.leave import router as leave_router
from ops_portal.api.navigation import router as navigation_router
from ops_portal.api.requests import router as requests_router
from ops_portal.api.tools import router as tools_router

api_router = APIRouter()

api_router.include_router(health_router)
api_router.include_router(auth_router)
api_router.include_router(navigation_router)
api_router.include_router(dashboard_router)
api_router.include_router(tools_router)
api_router.include_router(requests_router)
api_router.include_router(leave_router)
api_router.include_router(employees_router)
api_router.include_router(attendance_router)
api_router.include_router(finance_router)
api_router.include_router(admin_router)
