"""
Form schema service.

Resolves SME-owned form schemas and their ordered fields, and manages
schema creation, updates and soft deletion.
"""

from datetime import datetime, timezone
import structlog
from supabase import Client

from config import get_supabase_client
from models.form_schema import (
    FormField,
    FormFieldCreate,
    FormSchemaCreate,
    FormSchemaResponse,
    FormSchemaUpdate,
)
from exceptions import (
    AuthorizationError,
    DatabaseError,
    FormSchemaNotFoundError,
    SchemaLookupError,
)

logger = structlog.get_logger(__name__)


class FormSchemaService:
    """
    Form schema business logic.

    Reads form_schemas / form_fields through an injected Supabase client.
    """

    def __init__(self, db: Client):
        self.db = db
        self.schemas_table = "form_schemas"
        self.fields_table = "form_fields"

    # ===================
    # READ OPERATIONS
    # ===================

    def belongs_to(self, schema_id: str, sme_id: str) -> bool:
        """
        Check that a schema exists and is owned by the SME.

        Single point lookup; a missing schema and a foreign schema look the
        same to the caller.

        Raises:
            DatabaseError: If the lookup itself fails
        """
        try:
            result = (
                self.db.table(self.schemas_table)
                .select("id")
                .eq("id", schema_id)
                .eq("sme_id", sme_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(
                "schema_ownership_lookup_failed",
                schema_id=schema_id,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

        owned = bool(result.data)
        if not owned:
            logger.info("schema_not_owned", schema_id=schema_id, sme_id=sme_id)
        return owned

    def get_fields(self, schema_id: str) -> list[FormField]:
        """
        Get the fields of a schema in field_order.

        Raises:
            SchemaLookupError: If the fields cannot be loaded
        """
        logger.debug("getting_form_fields", schema_id=schema_id)

        try:
            result = (
                self.db.table(self.fields_table)
                .select("*")
                .eq("schema_id", schema_id)
                .order("field_order")
                .execute()
            )
            return [FormField(**row) for row in result.data or []]

        except Exception as e:
            logger.error(
                "get_form_fields_failed",
                schema_id=schema_id,
                error=str(e)
            )
            raise SchemaLookupError(schema_id, str(e)) from e

    def get_schema(self, schema_id: str) -> FormSchemaResponse:
        """
        Get a schema with its fields.

        Raises:
            FormSchemaNotFoundError: If the schema doesn't exist
        """
        try:
            result = (
                self.db.table(self.schemas_table)
                .select("*")
                .eq("id", schema_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("get_form_schema_failed", schema_id=schema_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise FormSchemaNotFoundError(schema_id)

        return FormSchemaResponse(
            **result.data[0],
            fields=self.get_fields(schema_id)
        )

    def list_schemas(self, sme_id: str) -> list[FormSchemaResponse]:
        """List an SME's schemas, newest first, with fields attached."""
        logger.info("listing_form_schemas", sme_id=sme_id)

        try:
            result = (
                self.db.table(self.schemas_table)
                .select("*")
                .eq("sme_id", sme_id)
                .order("created_at", desc=True)
                .execute()
            )
            schemas = result.data or []

            if not schemas:
                return []

            fields_result = (
                self.db.table(self.fields_table)
                .select("*")
                .in_("schema_id", [s["id"] for s in schemas])
                .order("field_order")
                .execute()
            )

        except Exception as e:
            logger.error("list_form_schemas_failed", sme_id=sme_id, error=str(e))
            raise DatabaseError("select", str(e))

        by_schema: dict[str, list[FormField]] = {}
        for row in fields_result.data or []:
            by_schema.setdefault(row["schema_id"], []).append(FormField(**row))

        return [
            FormSchemaResponse(**schema, fields=by_schema.get(schema["id"], []))
            for schema in schemas
        ]

    # ===================
    # WRITE OPERATIONS
    # ===================

    def create_schema(self, sme_id: str, data: FormSchemaCreate) -> FormSchemaResponse:
        """
        Create a schema and its fields.

        Field order follows the submitted list; fields without a key get
        field_<index>.
        """
        logger.info(
            "creating_form_schema",
            sme_id=sme_id,
            name=data.name,
            fields=len(data.fields)
        )

        try:
            result = (
                self.db.table(self.schemas_table)
                .insert({
                    "sme_id": sme_id,
                    "name": data.name,
                    "description": data.description,
                })
                .execute()
            )
            schema = result.data[0]

            fields = self._insert_fields(schema["id"], data.fields)

        except Exception as e:
            logger.error("create_form_schema_failed", sme_id=sme_id, error=str(e))
            raise DatabaseError("insert", str(e))

        logger.info("form_schema_created", schema_id=schema["id"], fields=len(fields))

        return FormSchemaResponse(**schema, fields=fields)

    def update_schema(self, schema_id: str, sme_id: str, data: FormSchemaUpdate) -> None:
        """
        Update name/description and optionally replace the fields.

        Replacement deletes the schema's fields and inserts the new list
        with field_order = index.

        Raises:
            AuthorizationError: If the schema is missing or owned by another SME
        """
        if not self.belongs_to(schema_id, sme_id):
            raise AuthorizationError()

        changes = data.model_dump(exclude_unset=True, exclude={"fields"})
        changes["updated_at"] = datetime.now(timezone.utc).isoformat()

        try:
            (
                self.db.table(self.schemas_table)
                .update(changes)
                .eq("id", schema_id)
                .execute()
            )
        except Exception as e:
            logger.error("update_form_schema_failed", schema_id=schema_id, error=str(e))
            raise DatabaseError("update", str(e))

        if data.fields is not None:
            try:
                self.db.table(self.fields_table).delete().eq("schema_id", schema_id).execute()
                self._insert_fields(schema_id, data.fields)
            except Exception as e:
                logger.error("replace_form_fields_failed", schema_id=schema_id, error=str(e))
                raise DatabaseError("update", str(e))

        logger.info(
            "form_schema_updated",
            schema_id=schema_id,
            fields_replaced=data.fields is not None
        )

    def _insert_fields(self, schema_id: str, fields: list[FormFieldCreate]) -> list[FormField]:
        """Insert fields in list order; keys default to field_<index>."""
        if not fields:
            return []

        rows = [
            {
                "schema_id": schema_id,
                "field_key": f.field_key or f"field_{index}",
                "label": f.label,
                "type": f.type.value,
                "required": f.required,
                "options": f.options,
                "validation": f.validation,
                "placeholder": f.placeholder,
                "help_text": f.help_text,
                "field_order": index,
            }
            for index, f in enumerate(fields)
        ]
        result = self.db.table(self.fields_table).insert(rows).execute()
        return [FormField(**row) for row in result.data or []]

    def deactivate_schema(self, schema_id: str, sme_id: str) -> None:
        """
        Soft delete a schema (is_active = false).

        Raises:
            AuthorizationError: If the schema is missing or owned by another SME
        """
        if not self.belongs_to(schema_id, sme_id):
            raise AuthorizationError()

        try:
            (
                self.db.table(self.schemas_table)
                .update({
                    "is_active": False,
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                })
                .eq("id", schema_id)
                .execute()
            )
        except Exception as e:
            logger.error("deactivate_form_schema_failed", schema_id=schema_id, error=str(e))
            raise DatabaseError("update", str(e))

        logger.info("form_schema_deactivated", schema_id=schema_id)


def get_form_schema_service() -> FormSchemaService:
    """Build a FormSchemaService on the shared Supabase client."""
    return FormSchemaService(get_supabase_client())
