from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session
from app.db.session import get_session
from app.models.user import User
from app.routers.posts import require_post_editor
from app.services.composer import PostComposer

router = APIRouter()

class BlockCreate(BaseModel):
    # Checked by the composer so unknown types map to InvalidBlockType
    type: str
    content: Dict[str, Any] = {}
    order_index: int = 0

class BlockUpdate(BaseModel):
    content: Optional[Dict[str, Any]] = None
    order_index: Optional[int] = None

def get_composer(session: Session = Depends(get_session)) -> PostComposer:
    return PostComposer(session)

@router.get("/{post_id}/blocks")
def list_blocks(post_id: int, composer: PostComposer = Depends(get_composer)):
    return {"success": True, "blocks": composer.list_blocks(post_id)}

@router.post("/{post_id}/blocks")
def add_block(
    post_id: int,
    block_in: BlockCreate,
    editor: User = Depends(require_post_editor),
    composer: PostComposer = Depends(get_composer)
):
    block = composer.add_block(post_id, block_in.type, block_in.content, block_in.order_index)
    return {"success": True, "message": "Block created successfully", "block": block}

@router.put("/{post_id}/blocks/{block_id}")
def update_block(
    post_id: int,
    block_id: int,
    block_in: BlockUpdate,
    editor: User = Depends(require_post_editor),
    composer: PostComposer = Depends(get_composer)
):
    block = composer.update_block(post_id, block_id, block_in.model_dump(exclude_unset=True))
    return {"success": True, "message": "Block updated successfully", "block": block}

@router.delete("/{post_id}/blocks/{block_id}")
def remove_block(
    post_id: int,
    block_id: int,
    editor: User = Depends(require_post_editor),
    composer: PostComposer = Depends(get_composer)
):
    composer.remove_block(post_id, block_id)
    return {"success": True, "message": "Block deleted successfully"}
