from __future__ import annotations

import json
from typing import Any

from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError

from schemagen.schema.model import COMPONENTS_PREFIX, DEFS_PREFIX, Schema
from schemagen.schema.repository import SchemaRepository

_DRAFT_2020_12 = "https://json-schema.org/draft/2020-12/schema"

OUTPUT_FORMATS = ("openapi", "jsonschema")


class SchemaDocumentError(RuntimeError):
    pass


def build_openapi_document(root: Schema, repository: SchemaRepository) -> dict[str, Any]:
    return {
        "root": root.to_dict(ref_prefix=COMPONENTS_PREFIX),
        "components": {"schemas": repository.to_dict(ref_prefix=COMPONENTS_PREFIX)},
    }


def build_json_schema_document(
    root: Schema,
    repository: SchemaRepository,
    *,
    title: str | None = None,
) -> dict[str, Any]:
    """Render a standalone draft 2020-12 document.

    Definitions land under ``$defs`` and nullable nodes use ``"null"`` type
    unions instead of the OpenAPI ``nullable`` keyword.
    """
    document: dict[str, Any] = {"$schema": _DRAFT_2020_12}
    if title:
        document["title"] = title
    document.update(root.to_dict(ref_prefix=DEFS_PREFIX, json_schema=True))
    if len(repository):
        document["$defs"] = repository.to_dict(ref_prefix=DEFS_PREFIX, json_schema=True)
    check_document(document)
    return document


def build_document(
    root: Schema,
    repository: SchemaRepository,
    *,
    output_format: str = "openapi",
    title: str | None = None,
) -> dict[str, Any]:
    if output_format == "openapi":
        return build_openapi_document(root, repository)
    if output_format == "jsonschema":
        return build_json_schema_document(root, repository, title=title)
    raise SchemaDocumentError(
        f"Unknown output format {output_format!r}. Expected one of: {', '.join(OUTPUT_FORMATS)}."
    )


def check_document(document: dict[str, Any]) -> None:
    try:
        Draft202012Validator.check_schema(document)
    except SchemaError as exc:
        raise SchemaDocumentError(f"Generated schema is not valid: {exc.message}") from exc


def stable_json_text(data: dict[str, Any]) -> str:
    payload = json.dumps(data, sort_keys=True, indent=2, ensure_ascii=False, default=str)
    return f"{payload}\n"
