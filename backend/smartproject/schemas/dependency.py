from pydantic import BaseModel, ConfigDict

from smartproject.db.models.dependency import DependencyType


class DependencyCreate(BaseModel):
    predecessor_id: int
    successor_id: int
    type: DependencyType = DependencyType.finish_to_start
    lag: int = 0


class DependencyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    predecessor_id: int
    successor_id: int
    type: str
    lag: int
