import os
import time
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger
from dotenv import load_dotenv
from pydantic import ValidationError

from tools.freckle import profile_from_payload
from tools.models import EnrichmentResult, normalize_identifier
from tools.result_cache import ResultCache

VERSION = "1.0.0"

# Load environment variables
load_dotenv()

# Configure logging
logger.add(
    os.getenv("LOG_FILE", "logs/app.log"),
    rotation="1 day",
    retention="7 days",
    level=os.getenv("LOG_LEVEL", "INFO"),
)


def create_app(result_cache: Optional[ResultCache] = None) -> FastAPI:
    """
    Build the webhook receiver.

    The result cache belongs to the app: it is created when the app starts
    (unless one is handed in) and dropped when it shuts down.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.result_cache = result_cache if result_cache is not None else ResultCache()
        logger.info("LinkedIn result cache ready")
        yield
        app.state.result_cache.clear()

    app = FastAPI(
        title="LinkedIn Enrichment Correlator",
        description="Receives LinkedIn enrichment results and serves them to pollers",
        version=VERSION,
        lifespan=lifespan,
    )

    @app.post("/webhooks/linkedin")
    async def linkedin_webhook(req: Request):
        """
        Inbound webhook the enrichment provider calls with a result.

        Expected payload:
        {
            "email": "jane.doe@company.com",
            "name": "Jane Doe",
            "title": "Head of Partnerships",
            "company": "Company Name",
            "linkedinUrl": "https://www.linkedin.com/in/janedoe",
            "location": "Austin, TX",
            "headline": "Partnerships at Company"
        }
        """
        try:
            body = await req.json()
        except ValueError as e:
            logger.error(f"LinkedIn webhook body is not JSON: {e}")
            return JSONResponse(status_code=400, content={"success": False, "error": "Invalid JSON body"})

        if not isinstance(body, dict):
            logger.error("LinkedIn webhook body is not a JSON object")
            return JSONResponse(status_code=400, content={"success": False, "error": "Invalid webhook payload"})

        email = body.get("email") or body.get("search_email")
        if not isinstance(email, str) or not normalize_identifier(email):
            logger.error("No email found in webhook data")
            return JSONResponse(status_code=400, content={"success": False, "error": "No email found in webhook data"})

        logger.info(f"Received LinkedIn webhook for: {email}")

        try:
            profile = profile_from_payload(body)
        except ValidationError as e:
            logger.error(f"LinkedIn webhook for {email} has invalid profile fields: {e}")
            return JSONResponse(status_code=400, content={"success": False, "error": "Invalid webhook payload"})

        if body.get("error") and not profile.has_useful_data():
            result = EnrichmentResult(success=False, error=str(body["error"]))
        else:
            result = EnrichmentResult(success=True, data=profile)

        # Accepted whether or not anyone is still waiting for it
        req.app.state.result_cache.store_result(email, result)
        logger.info(f"Processed and stored LinkedIn data for: {email}")

        return {"success": True, "message": "LinkedIn data received and processed"}

    @app.get("/api/linkedin-result/{email}")
    async def linkedin_result(email: str, req: Request):
        """Polling endpoint: the stored result, or 404 while nothing is ready."""
        result = req.app.state.result_cache.fetch_result(email)
        if result is None:
            return JSONResponse(status_code=404, content={"success": False, "error": "No result found"})
        return result.model_dump()

    @app.get("/health")
    def health(req: Request):
        """Health check endpoint."""
        return {
            "status": "healthy",
            "timestamp": time.time(),
            "version": VERSION,
            "services": {
                "result_cache": len(req.app.state.result_cache),
            }
        }

    @app.get("/admin/results")
    def list_results(req: Request):
        """Every cached result (for debugging)."""
        entries = req.app.state.result_cache.all_results()
        return {"total": len(entries), "results": [entry.to_dict() for entry in entries]}

    @app.delete("/admin/results")
    def clear_results(req: Request):
        """Drop every cached result (for debugging)."""
        req.app.state.result_cache.clear()
        return {"status": "cleared"}

    # Error handlers
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}")
        return JSONResponse(
            status_code=500,
            content={"status": "error", "message": "Internal server error"}
        )

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    # Create logs directory if it doesn't exist
    os.makedirs("logs", exist_ok=True)

    logger.info("Starting LinkedIn Enrichment Correlator")

    uvicorn.run(
        "app:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=True,
        log_level="info"
    )
