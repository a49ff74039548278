"""
Post composer: validates and orders the content blocks of a post.

Rules enforced when a block is added:

* the type is one of ``text``, ``quote``, ``image``, ``youtube``;
* the payload has the fields its type needs, and a text block carries at
  most ``MAX_TEXT_WORDS`` words;
* a post holds at most ``MAX_BLOCKS`` blocks, of which at most
  ``MAX_IMAGE_BLOCKS`` are images;
* a text block is never appended right after another text block.

Updates only re-check the word ceiling of text content, and ``order_index``
is stored as given. Removal is unconditional.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from sqlmodel import Session, select

from app.core.errors import (
    AppError,
    BlockNotFound,
    ConsecutiveTextBlocks,
    ImageBlockInvalid,
    InvalidBlockType,
    PostNotFound,
    QuoteBlockInvalid,
    TextBlockInvalid,
    TextTooLong,
    TooManyBlocks,
    TooManyImageBlocks,
    YoutubeBlockInvalid,
)
from app.db.session import commit_or_fail
from app.models.post import BlockType, Post, PostBlock
from app.services.image import ImageService

logger = logging.getLogger(__name__)

MAX_BLOCKS = 15
MAX_IMAGE_BLOCKS = 5
MAX_TEXT_WORDS = 800
MIN_BLOCKS = 1  # product rule, not enforced


def parse_block_type(value: Any) -> BlockType:
    try:
        return BlockType(value)
    except ValueError:
        raise InvalidBlockType()


def _is_word_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_content(block_type: BlockType, content: Optional[Dict[str, Any]]) -> None:
    """Check the payload of a single block against its type."""
    content = content or {}

    if block_type == BlockType.TEXT:
        word_count = content.get("word_count")
        if not content.get("html") or not word_count or not _is_word_count(word_count):
            raise TextBlockInvalid()
        if word_count > MAX_TEXT_WORDS:
            raise TextTooLong()

    elif block_type == BlockType.QUOTE:
        if not content.get("quote"):
            raise QuoteBlockInvalid()

    elif block_type == BlockType.IMAGE:
        if not content.get("image_id"):
            raise ImageBlockInvalid()

    elif block_type == BlockType.YOUTUBE:
        if not content.get("youtube_url") or not content.get("video_id"):
            raise YoutubeBlockInvalid()


def check_structure(siblings: Sequence[PostBlock], block_type: BlockType) -> None:
    """
    Check that a block of ``block_type`` may join ``siblings``.

    ``siblings`` must be ordered by ``order_index``; the last one is the block
    the new one would follow.
    """
    if len(siblings) >= MAX_BLOCKS:
        raise TooManyBlocks()

    if block_type == BlockType.IMAGE:
        image_count = sum(1 for block in siblings if block.type == BlockType.IMAGE)
        if image_count >= MAX_IMAGE_BLOCKS:
            raise TooManyImageBlocks()

    if block_type == BlockType.TEXT and siblings and siblings[-1].type == BlockType.TEXT:
        raise ConsecutiveTextBlocks()


class PostComposer:
    def __init__(self, session: Session):
        self.session = session

    def _siblings(self, post_id: int) -> List[PostBlock]:
        return list(self.session.exec(
            select(PostBlock)
            .where(PostBlock.post_id == post_id)
            .order_by(PostBlock.order_index, PostBlock.id)
        ).all())

    def _lock_post(self, post_id: int) -> Post:
        # Row lock on the owning post serializes concurrent writers where the
        # backend supports it (ignored by SQLite).
        post = self.session.exec(
            select(Post).where(Post.id == post_id).with_for_update()
        ).first()
        if not post:
            raise PostNotFound()
        return post

    def _get_block(self, post_id: int, block_id: int) -> PostBlock:
        block = self.session.exec(
            select(PostBlock).where(PostBlock.id == block_id, PostBlock.post_id == post_id)
        ).first()
        if not block:
            raise BlockNotFound()
        return block

    def list_blocks(self, post_id: int) -> List[PostBlock]:
        """All blocks of a post by ascending ``order_index``; ties keep storage order."""
        return self._siblings(post_id)

    def add_block(self, post_id: int, block_type: Any, content: Optional[Dict[str, Any]], order_index: int) -> PostBlock:
        block_type = parse_block_type(block_type)
        try:
            validate_content(block_type, content)
            self._lock_post(post_id)
            check_structure(self._siblings(post_id), block_type)
        except AppError as e:
            self.session.rollback()
            logger.warning(f"Rejected {block_type.value} block for post {post_id}: {e.code}")
            raise

        block = PostBlock(
            post_id=post_id,
            type=block_type,
            content=content,
            order_index=order_index,
        )
        self.session.add(block)
        commit_or_fail(self.session, "create block")
        self.session.refresh(block)
        logger.info(f"Added {block_type.value} block {block.id} to post {post_id}")
        return block

    def update_block(self, post_id: int, block_id: int, patch: Dict[str, Any]) -> PostBlock:
        block = self._get_block(post_id, block_id)

        content = patch.get("content")
        if content is not None:
            if block.type == BlockType.TEXT and "word_count" in content:
                word_count = content["word_count"]
                if not _is_number(word_count):
                    logger.warning(f"Rejected update of text block {block_id}: TextBlockInvalid")
                    raise TextBlockInvalid("word_count must be a number")
                if word_count > MAX_TEXT_WORDS:
                    logger.warning(f"Rejected update of text block {block_id}: TextTooLong")
                    raise TextTooLong()
            block.content = content

        if patch.get("order_index") is not None:
            block.order_index = patch["order_index"]

        block.updated_at = datetime.utcnow()
        self.session.add(block)
        commit_or_fail(self.session, "update block")
        self.session.refresh(block)
        return block

    def remove_block(self, post_id: int, block_id: int) -> None:
        """Delete the block if the post has it; an unknown id is a no-op."""
        block = self.session.exec(
            select(PostBlock).where(PostBlock.id == block_id, PostBlock.post_id == post_id)
        ).first()
        if not block:
            logger.info(f"Block {block_id} not in post {post_id}, nothing to remove")
            return
        self.session.delete(block)
        commit_or_fail(self.session, "delete block")
        logger.info(f"Removed block {block_id} from post {post_id}")

    def render_blocks(self, blocks: Sequence[PostBlock]) -> List[Dict[str, Any]]:
        """Blocks as dicts, image blocks carrying their resolved ``image``."""
        image_ids = [
            block.content.get("image_id")
            for block in blocks
            if block.type == BlockType.IMAGE and block.content
        ]
        images = ImageService(self.session).resolve(image_ids)

        rendered = []
        for block in blocks:
            data = block.model_dump()
            if block.type == BlockType.IMAGE and block.content:
                image = images.get(str(block.content.get("image_id")))
                if image:
                    data["image"] = image.model_dump()
            rendered.append(data)
        return rendered
