"""Type definitions for the knowledge graph.

Attribute names are Pythonic; the wire names used on disk and by tool callers
(``entityType``, ``relationType``, ``from``, ...) are the field aliases, so
always dump with ``by_alias=True`` (``to_dict`` does).
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WireModel(BaseModel):
    """Base for models that travel as plain camelCase dicts."""
    model_config = ConfigDict(populate_by_name=True)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)


class Entity(WireModel):
    """Named, typed node carrying an ordered list of observations."""
    name: str = Field(..., description="The name of the entity")
    entity_type: str = Field(..., alias="entityType", description="The type of the entity")
    observations: list[str] = Field(
        default_factory=list,
        description="An array of observation contents associated with the entity",
    )

    @field_validator("observations")
    @classmethod
    def _unique_observations(cls, value: list[str]) -> list[str]:
        # First occurrence wins, order preserved
        return list(dict.fromkeys(value))


class Relation(WireModel):
    """Directed, typed edge between two entity names."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    from_: str = Field(..., alias="from", description="The name of the entity where the relation starts")
    to: str = Field(..., description="The name of the entity where the relation ends")
    relation_type: str = Field(..., alias="relationType", description="The type of the relation")

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.from_, self.to, self.relation_type)

    def touches(self, names: set[str]) -> bool:
        """True if either endpoint is in names."""
        return self.from_ in names or self.to in names


class KnowledgeGraph(WireModel):
    """Complete graph structure."""
    entities: list[Entity] = Field(default_factory=list)
    relations: list[Relation] = Field(default_factory=list)

    def entity_names(self) -> set[str]:
        return {e.name for e in self.entities}

    def find_entity(self, name: str) -> Entity | None:
        for entity in self.entities:
            if entity.name == name:
                return entity
        return None


class ObservationInput(WireModel):
    """Observations to append to one entity."""
    entity_name: str = Field(..., alias="entityName", description="The name of the entity to add the observations to")
    contents: list[str] = Field(..., description="An array of observation contents to add")


class ObservationResult(WireModel):
    """Observations actually appended to one entity."""
    entity_name: str = Field(..., alias="entityName")
    added_observations: list[str] = Field(default_factory=list, alias="addedObservations")


class ObservationDeletion(WireModel):
    """Observations to remove from one entity."""
    entity_name: str = Field(..., alias="entityName", description="The name of the entity containing the observations")
    observations: list[str] = Field(..., description="An array of observations to delete")
