"""
Built-in pipeline stages.

Every stage takes the RequestContext and returns True to continue or False
to stop. A stage that returns False has already written the response.

Writes (create/update/delete) go through `ctx.options.store`, not
`ctx.store`: a query_scope stage may have narrowed the request handle with
conditions that only make sense for reads.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import BaseModel, ValidationError
from pydantic_core import PydanticSerializationError, to_jsonable_python

from restpipe.store.base import StoreError

from .capabilities import Validatable, coerce_identity, identity_field, identity_of
from .context import RequestContext

logger = logging.getLogger(__name__)

_MALFORMED_JSON_ERRORS = {"json_invalid", "json_type"}


def _error_map(exc: ValidationError) -> dict[str, str]:
    errors: dict[str, str] = {}
    for err in exc.errors():
        key = ".".join(str(part) for part in err.get("loc", ())) or "body"
        errors.setdefault(key, str(err.get("msg", "Invalid value")))
    return errors


def _reject_invalid(ctx: RequestContext, exc: ValidationError) -> bool:
    if any(err.get("type") in _MALFORMED_JSON_ERRORS for err in exc.errors()):
        logger.warning("Can't parse incoming json for %s", ctx.model_type.__name__)
        ctx.write_error(422, "Malformed JSON body.")
        return False
    errors = _error_map(exc)
    logger.warning("Upload for %s does not fit the model: %s", ctx.model_type.__name__, errors)
    ctx.write_json(422, {"errors": errors})
    return False


def _plain(value: Any) -> Any:
    """Model -> dict keyed the way model_validate expects, keeping excluded fields."""
    if isinstance(value, BaseModel):
        data = {
            (info.alias or name): _plain(getattr(value, name)) for name, info in type(value).model_fields.items()
        }
        data.update(value.model_extra or {})
        return data
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def _overlay(base: dict[str, Any], patch: dict[str, Any]) -> dict[str, Any]:
    # Objects merge key by key; lists and scalars in the patch replace.
    merged = dict(base)
    for key, value in patch.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _overlay(current, value)
        else:
            merged[key] = value
    return merged


def _run_validation(ctx: RequestContext) -> bool:
    uploaded = ctx.uploaded
    if not isinstance(uploaded, Validatable):
        return True
    errors = uploaded.validate_upload()
    if not errors:
        return True
    logger.warning("Validation error for %s: %s", ctx.model_type.__name__, errors)
    ctx.write_json(422, {"errors": dict(errors)})
    return False


async def fetch_by_id(ctx: RequestContext) -> bool:
    """Look up the `id` path parameter through the (possibly scoped) request store."""
    raw = ctx.param("id")
    try:
        ident = coerce_identity(ctx.model_type, raw)
    except ValidationError:
        ctx.write_error(404, "Not Found")
        return False

    item = await ctx.store.get(ctx.model_type, ctx.table_name, ident)
    if item is None:
        ctx.write_error(404, "Not Found")
        return False
    ctx.result = item
    return True


async def fetch_all(ctx: RequestContext) -> bool:
    ctx.result = await ctx.store.list(ctx.model_type, ctx.table_name)
    return True


async def parse_upload(ctx: RequestContext) -> bool:
    """Parse the request body into a fresh model instance, then run validate_upload()."""
    body = await ctx.request.body()
    try:
        ctx.uploaded = ctx.model_type.model_validate_json(body or b"")
    except ValidationError as exc:
        return _reject_invalid(ctx, exc)
    return _run_validation(ctx)


async def merge_upload(ctx: RequestContext) -> bool:
    """
    Overlay the request body onto the fetched result.

    Only the keys present in the body change; nested objects merge key by
    key. The identity field must come
    out unchanged.
    """
    body = await ctx.request.body()
    try:
        patch = json.loads(body or b"")
    except ValueError:
        logger.warning("Can't parse incoming json for %s", ctx.model_type.__name__)
        ctx.write_error(422, "Malformed JSON body.")
        return False
    if not isinstance(patch, dict):
        ctx.write_error(422, "JSON body must be an object.")
        return False

    before_id = identity_of(ctx.result)
    merged_data = _overlay(_plain(ctx.result), patch)
    try:
        merged = ctx.model_type.model_validate(merged_data)
    except ValidationError as exc:
        return _reject_invalid(ctx, exc)

    after_id = identity_of(merged)
    if after_id != before_id:
        logger.warning("Patch trying to change %s from %r to %r", identity_field(ctx.model_type), before_id, after_id)
        ctx.write_error(422, "Identity field cannot be changed.")
        return False

    ctx.result = merged
    ctx.uploaded = merged
    return _run_validation(ctx)


async def create(ctx: RequestContext) -> bool:
    try:
        ctx.result = await ctx.options.store.create(ctx.table_name, ctx.uploaded)
    except StoreError as exc:
        logger.warning("Error creating %s: %s", ctx.model_type.__name__, exc)
        ctx.write_error(422, "Could not create item.")
        return False
    return True


async def update(ctx: RequestContext) -> bool:
    try:
        ctx.result = await ctx.options.store.update(ctx.table_name, ctx.uploaded)
    except StoreError as exc:
        logger.warning("Error updating %s: %s", ctx.model_type.__name__, exc)
        ctx.write_error(422, "Could not update item.")
        return False
    return True


async def delete(ctx: RequestContext) -> bool:
    """Delete the fetched item. The result keeps the item as it was before deletion."""
    logger.info("Deleting %s %r", ctx.model_type.__name__, identity_of(ctx.result))
    try:
        await ctx.options.store.delete(ctx.table_name, ctx.result)
    except StoreError as exc:
        logger.warning("Error deleting %s: %s", ctx.model_type.__name__, exc)
        ctx.write_error(422, "Could not delete item.")
        return False
    return True


async def serialize(ctx: RequestContext) -> bool:
    if ctx.result is None:
        logger.error("Serialise empty result for %s", ctx.model_type.__name__)
        ctx.write_error(404, "Not Found")
        return False
    try:
        content = to_jsonable_python(ctx.result, by_alias=True)
    except (PydanticSerializationError, TypeError, ValueError) as exc:
        logger.error("JSON encode failed: %s", exc)
        ctx.write_error(422, "Failed to encode JSON.")
        return False
    ctx.write_json(200, content)
    return True
