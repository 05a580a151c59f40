"""
Form schema API routes.
"""

from fastapi import APIRouter, Depends
import structlog

from models.form_schema import FormSchemaCreate, FormSchemaUpdate
from services.form_schema_service import FormSchemaService, get_form_schema_service
from routes.errors import handle_error, require_sme_id

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/forms")
async def list_forms(
    sme_id: str = Depends(require_sme_id),
    service: FormSchemaService = Depends(get_form_schema_service)
):
    """List the caller's form schemas with their fields."""
    try:
        schemas = service.list_schemas(sme_id)
        return {
            "success": True,
            "schemas": [s.model_dump(mode="json") for s in schemas]
        }

    except Exception as e:
        return handle_error(e)


@router.get("/forms/{schema_id}")
async def get_form(
    schema_id: str,
    service: FormSchemaService = Depends(get_form_schema_service)
):
    """
    Get a form schema with its fields.

    Raises:
        404: Schema not found
    """
    try:
        schema = service.get_schema(schema_id)
        return {"success": True, "schema": schema.model_dump(mode="json")}

    except Exception as e:
        return handle_error(e)


@router.post("/forms", status_code=201)
async def create_form(
    data: FormSchemaCreate,
    sme_id: str = Depends(require_sme_id),
    service: FormSchemaService = Depends(get_form_schema_service)
):
    """Create a form schema and its fields."""
    try:
        schema = service.create_schema(sme_id, data)
        return {"success": True, "schema": schema.model_dump(mode="json")}

    except Exception as e:
        return handle_error(e)


@router.put("/forms/{schema_id}")
async def update_form(
    schema_id: str,
    data: FormSchemaUpdate,
    sme_id: str = Depends(require_sme_id),
    service: FormSchemaService = Depends(get_form_schema_service)
):
    """
    Update a form schema; a fields list replaces the existing fields.

    Raises:
        403: Schema not found or not owned by caller
    """
    try:
        service.update_schema(schema_id, sme_id, data)
        return {"success": True, "message": "Form updated successfully"}

    except Exception as e:
        return handle_error(e)


@router.delete("/forms/{schema_id}")
async def delete_form(
    schema_id: str,
    sme_id: str = Depends(require_sme_id),
    service: FormSchemaService = Depends(get_form_schema_service)
):
    """
    Soft delete a form schema.

    Raises:
        403: Schema not found or not owned by caller
    """
    try:
        service.deactivate_schema(schema_id, sme_id)
        return {"success": True, "message": "Form deleted successfully"}

    except Exception as e:
        return handle_error(e)
