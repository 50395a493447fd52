from fastapi import FastAPI
from app.config import settings
from app.deps import init_db, build_scheduler_engine
from app.logging_config import configure_logging

# Routers
from app.routers import users, auth_twitter, accounts, topics, generate, tweets, scheduler_api

app = FastAPI(title="Tweet Scheduler API", version="0.6.0")

@app.on_event("startup")
def _startup():
    configure_logging()
    init_db()
    app.state.scheduler = build_scheduler_engine()
    if settings.scheduler_enabled:
        app.state.scheduler.start()

@app.on_event("shutdown")
def _shutdown():
    sched = getattr(app.state, "scheduler", None)
    if sched is not None:
        sched.stop()

@app.get("/")
def root():
    return {"message": "Tweet Scheduler API is running!"}

# Mount routes
app.include_router(users.router)          # /users
app.include_router(auth_twitter.router)   # /auth/twitter/*
app.include_router(accounts.router)       # /accounts
app.include_router(topics.router)         # /topics/*
app.include_router(generate.router)       # /generate/*
app.include_router(tweets.router)         # /tweets/*
app.include_router(scheduler_api.router)  # /scheduler/*
