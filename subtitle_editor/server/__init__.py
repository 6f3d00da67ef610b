"""HTTP editing-session API: FastAPI app, pydantic models, session store."""
