"""
deployment/api.py - REST API

Stateless HTTP surface over the engine: schema validation and import,
one-shot form evaluation and mask formatting.
"""

from typing import Any, Dict, List, Optional, Union
from datetime import datetime, timezone
import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from formengine.bootstrap.config import FormEngineConfig
from formengine.core import import_schema, serialize_schema
from formengine.dependencies import DependencyResolver
from formengine.masks import get_default_engine
from formengine.validators import SchemaValidator

logger = logging.getLogger("deployment.api")

API_VERSION = "1.0.0"


# =============================================================================
# Request Models
# =============================================================================

class EvaluateRequest(BaseModel):
    """Schema document plus the current form state."""
    model_config = ConfigDict(populate_by_name=True)

    form_schema: Dict[str, Any] = Field(..., alias="schema")
    values: Dict[str, Any] = Field(default_factory=dict)
    touched: Dict[str, bool] = Field(default_factory=dict)
    changed: Optional[List[str]] = None


class MaskRequest(BaseModel):
    """Raw input and the mask to apply."""
    raw: str = ""
    mask: Union[str, Dict[str, Any], None] = None


# =============================================================================
# App Factory
# =============================================================================

def _refuse(error: Optional[str], errors: List[str]) -> HTTPException:
    return HTTPException(status_code=422, detail={"error": error, "errors": errors})


def create_app(config: Optional[FormEngineConfig] = None) -> FastAPI:
    """
    Create FastAPI application.

    Args:
        config: Engine configuration; defaults when omitted

    Returns:
        FastAPI application instance
    """
    config = config or FormEngineConfig()

    app = FastAPI(
        title="formengine API",
        description="Declarative form schema validation and evaluation",
        version=API_VERSION,
        debug=config.debug,
        docs_url="/docs" if config.api.enable_docs else None,
        redoc_url="/redoc" if config.api.enable_docs else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    masks = get_default_engine()

    # =========================================================================
    # Health Endpoints
    # =========================================================================

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": API_VERSION,
            "environment": config.environment,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    # =========================================================================
    # Schema Endpoints
    # =========================================================================

    @app.post("/api/v1/schemas/validate")
    async def validate_schema(document: Dict[str, Any]):
        """Static checks; always 200, the verdict is in the body."""
        result = SchemaValidator().validate(document)
        return result.to_dict()

    @app.post("/api/v1/schemas/import")
    async def import_schema_document(document: Dict[str, Any]):
        """Accept a schema, or refuse it with the validator's error list."""
        result = import_schema(document)
        if result.schema is None:
            logger.info(f"Import refused: {result.error}")
            raise _refuse(result.error, result.errors)
        return {
            "success": True,
            "schema": serialize_schema(result.schema),
            "warnings": result.warnings,
        }

    # =========================================================================
    # Form Endpoints
    # =========================================================================

    @app.post("/api/v1/forms/evaluate")
    async def evaluate_form(request: EvaluateRequest):
        """One resolver pass over the posted values."""
        imported = import_schema(request.form_schema)
        if imported.schema is None:
            raise _refuse(imported.error, imported.errors)

        resolver = DependencyResolver(imported.schema, masks=masks)
        values = {**resolver.initial_values(), **request.values}
        snapshot = resolver.evaluate(values, request.touched, request.changed)

        body = snapshot.to_dict()
        body["isValid"] = snapshot.is_valid
        return body

    # =========================================================================
    # Mask Endpoints
    # =========================================================================

    @app.post("/api/v1/masks/apply")
    async def apply_mask(request: MaskRequest):
        formatted = masks.apply_mask(request.raw, request.mask)
        return {
            "formatted": formatted,
            "complete": masks.is_complete(formatted, request.mask),
            "maxLength": masks.max_length(request.mask),
        }

    logger.info("formengine API created")
    return app


# Module-level app instance for uvicorn
app = create_app()
