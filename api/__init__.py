"""api/ -- FastAPI application, transport models and routers."""
