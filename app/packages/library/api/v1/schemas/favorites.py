"""收藏响应模型。"""

from typing import List

from pydantic import BaseModel

from app.packages.library.api.v1.schemas.common import ResponseEnvelope


class FavoriteState(BaseModel):
    material_id: int
    is_favorite: bool


FavoriteStateResponse = ResponseEnvelope[FavoriteState]
FavoriteIdsResponse = ResponseEnvelope[List[int]]
