from fastapi import Request
from quest_src.clock import ClockSource
from .service import ProgressionService
from .reset import DailyResetService

def get_clock(request: Request) -> ClockSource:
    return request.app.state.clock

def get_progression_service(request: Request) -> ProgressionService:
    return request.app.state.progression_service

def get_reset_service(request: Request) -> DailyResetService:
    return request.app.state.reset_service
