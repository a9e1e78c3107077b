from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class CategoryBase(BaseModel):
    name: str
    parent_id: Optional[int] = None


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(BaseModel):
    """부분 수정용. 요청에 포함된 필드만 반영 (parent_id=null 은 최상위로 이동)"""
    name: Optional[str] = None
    parent_id: Optional[int] = None


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    category_id: int
    name: str
    parent_id: Optional[int]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CategoryTreeNode(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    category_id: int
    name: str
    parent_id: Optional[int]
    children: List["CategoryTreeNode"] = []


class CategoryDetailResponse(CategoryResponse):
    parent: Optional[CategoryResponse] = None
    ancestors: List[CategoryResponse] = []
    children: List[CategoryResponse] = []


class CategoryDescendantsResponse(BaseModel):
    category_id: int
    descendant_ids: List[int]
    count: int


class CategoryDeleteResponse(BaseModel):
    success: bool
    message: str
    category_id: int
    affected_child_categories: int


CategoryTreeNode.model_rebuild()
