"""
festreg/routes/__init__.py
Route registration
"""
from fastapi import APIRouter
from festreg.routes import events, judging, rounds, teams, users

router = APIRouter()

router.include_router(events.router)
router.include_router(teams.router)
router.include_router(rounds.router)
router.include_router(judging.router)
router.include_router(users.router)
