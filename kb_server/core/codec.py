"""Record codec: one entity or relation <-> one line of durable text."""

import json

from pydantic import ValidationError

from .constants import RECORD_ENTITY, RECORD_RELATION
from .exceptions import MalformedRecordError
from .types import Entity, Relation

# Durable record: sum type discriminated on the "type" tag
Record = Entity | Relation

_RECORD_MODELS: dict[str, type[Entity] | type[Relation]] = {
    RECORD_ENTITY: Entity,
    RECORD_RELATION: Relation,
}


def encode_record(item: Record) -> str:
    """Serialize an entity or relation as a single tagged JSON line (no newline)."""
    if isinstance(item, Entity):
        tag = RECORD_ENTITY
    elif isinstance(item, Relation):
        tag = RECORD_RELATION
    else:
        raise TypeError(f"Cannot encode {type(item).__name__} as a durable record")

    payload = {"type": tag, **item.to_dict()}
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def decode_record(line: str, line_number: int | None = None) -> Record:
    """
    Parse one durable line back into an Entity or Relation.
    Raises MalformedRecordError on bad JSON, a missing/unknown tag or missing fields.
    """
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        raise MalformedRecordError(f"invalid JSON ({e.msg})", line_number) from e

    if not isinstance(data, dict):
        raise MalformedRecordError("record is not a JSON object", line_number)

    tag = data.pop("type", None)
    model = _RECORD_MODELS.get(tag) if isinstance(tag, str) else None
    if model is None:
        raise MalformedRecordError(f"unknown record type {tag!r}", line_number)

    try:
        return model.model_validate(data)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise MalformedRecordError(f"invalid {tag} record ({fields})", line_number) from e
