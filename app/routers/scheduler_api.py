from fastapi import APIRouter, Depends
from typing import Dict, Any
from app.deps import get_scheduler
from app.services.scheduler import SchedulerEngine

router = APIRouter(prefix="/scheduler", tags=["scheduler"])

@router.post("/run")
def run_now(sched: SchedulerEngine = Depends(get_scheduler)) -> Dict[str, Any]:
    return sched.process_due_tweets()

@router.post("/start")
def start(sched: SchedulerEngine = Depends(get_scheduler)) -> Dict[str, Any]:
    if not sched.start():
        return {"status": "already-running"}
    return {"status": "started", "cron": sched.cron}

@router.post("/stop")
def stop(sched: SchedulerEngine = Depends(get_scheduler)) -> Dict[str, Any]:
    if sched.stop():
        return {"status": "stopped"}
    return {"status": "not-running"}

@router.get("/status")
def status(sched: SchedulerEngine = Depends(get_scheduler)) -> Dict[str, Any]:
    return {"running": sched.running, "cron": sched.cron}
