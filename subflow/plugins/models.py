from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import JSON, DateTime
from sqlmodel import Field, SQLModel

from subflow.workflows.engine.definitions import PluginDefinition


class PluginRecord(SQLModel, table=True):
    """Stored plugin graph"""
    __tablename__ = "plugin"

    id: str = Field(primary_key=True)
    team_id: str = Field(index=True)
    name: str
    avatar: Optional[str] = None
    nodes: List[Dict] = Field(default_factory=list, sa_type=JSON)
    edges: List[Dict] = Field(default_factory=list, sa_type=JSON)
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), sa_type=DateTime(timezone=True)
    )

    @classmethod
    def from_definition(cls, plugin: PluginDefinition) -> "PluginRecord":
        return cls(
            id=plugin.id,
            team_id=plugin.team_id,
            name=plugin.name,
            avatar=plugin.avatar,
            nodes=[node.model_dump(by_alias=True) for node in plugin.nodes],
            edges=[edge.model_dump(by_alias=True) for edge in plugin.edges],
        )

    def to_definition(self) -> PluginDefinition:
        return PluginDefinition(
            id=self.id,
            team_id=self.team_id,
            name=self.name,
            avatar=self.avatar,
            nodes=self.nodes,
            edges=self.edges,
        )
