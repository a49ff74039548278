import pytest

from app.core.errors import (
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
from app.models.image import Image
from app.models.post import BlockType, PostBlock
from app.services.composer import (
    MAX_BLOCKS,
    PostComposer,
    check_structure,
    parse_block_type,
    validate_content,
)


def text(words: int = 10) -> dict:
    return {"html": "<p>x</p>", "word_count": words}


def blocks_of(*types: BlockType):
    return [PostBlock(post_id=1, type=t, content={}, order_index=i) for i, t in enumerate(types)]


# Payload rules

def test_parse_block_type_rejects_unknown():
    assert parse_block_type("quote") == BlockType.QUOTE
    with pytest.raises(InvalidBlockType):
        parse_block_type("video")


def test_text_word_ceiling():
    validate_content(BlockType.TEXT, text(800))
    with pytest.raises(TextTooLong):
        validate_content(BlockType.TEXT, text(801))


@pytest.mark.parametrize("content", [
    {},
    {"html": "<p>x</p>"},
    {"word_count": 3},
    {"html": "", "word_count": 3},
    {"html": "<p>x</p>", "word_count": 0},
    {"html": "<p>x</p>", "word_count": "12"},
    {"html": "<p>x</p>", "word_count": True},
])
def test_text_requires_html_and_word_count(content):
    with pytest.raises(TextBlockInvalid):
        validate_content(BlockType.TEXT, content)


def test_other_payloads():
    validate_content(BlockType.QUOTE, {"quote": "Stay curious", "author": "Someone"})
    validate_content(BlockType.IMAGE, {"image_id": "abc", "caption": "A caption"})
    validate_content(BlockType.YOUTUBE, {"youtube_url": "https://youtu.be/abc", "video_id": "abc"})

    with pytest.raises(QuoteBlockInvalid):
        validate_content(BlockType.QUOTE, {"author": "Someone"})
    with pytest.raises(ImageBlockInvalid):
        validate_content(BlockType.IMAGE, None)
    with pytest.raises(YoutubeBlockInvalid):
        validate_content(BlockType.YOUTUBE, {"youtube_url": "https://youtu.be/abc"})


# Structural rules

def test_block_limit_applies_to_every_type():
    full = blocks_of(*([BlockType.QUOTE] * MAX_BLOCKS))
    for block_type in BlockType:
        with pytest.raises(TooManyBlocks):
            check_structure(full, block_type)
    check_structure(full[:-1], BlockType.QUOTE)


def test_sixth_image_rejected():
    five_images = blocks_of(*([BlockType.IMAGE] * 5))
    with pytest.raises(TooManyImageBlocks):
        check_structure(five_images, BlockType.IMAGE)
    check_structure(five_images, BlockType.QUOTE)
    check_structure(five_images[:-1], BlockType.IMAGE)


def test_text_after_text_rejected():
    with pytest.raises(ConsecutiveTextBlocks):
        check_structure(blocks_of(BlockType.TEXT), BlockType.TEXT)
    check_structure(blocks_of(BlockType.TEXT, BlockType.IMAGE), BlockType.TEXT)
    check_structure([], BlockType.TEXT)


# Composer against the store

def test_add_text_after_image(session, post, add_blocks):
    add_blocks(post, BlockType.TEXT, BlockType.IMAGE)
    composer = PostComposer(session)

    composer.add_block(post.id, "text", text(10), 2)

    blocks = composer.list_blocks(post.id)
    assert [(b.type, b.order_index) for b in blocks] == [
        (BlockType.TEXT, 0), (BlockType.IMAGE, 1), (BlockType.TEXT, 2)
    ]


def test_add_text_after_text(session, post, add_blocks):
    add_blocks(post, BlockType.TEXT)
    composer = PostComposer(session)

    with pytest.raises(ConsecutiveTextBlocks):
        composer.add_block(post.id, "text", text(10), 1)
    assert len(composer.list_blocks(post.id)) == 1


def test_last_block_is_decided_by_order_index(session, post):
    session.add(PostBlock(post_id=post.id, type=BlockType.TEXT, content=text(), order_index=5))
    session.add(PostBlock(post_id=post.id, type=BlockType.QUOTE, content={"quote": "q"}, order_index=1))
    session.commit()
    composer = PostComposer(session)

    with pytest.raises(ConsecutiveTextBlocks):
        composer.add_block(post.id, "text", text(), 0)


def test_add_sixth_image(session, post, add_blocks):
    add_blocks(post, *([BlockType.IMAGE] * 5))
    with pytest.raises(TooManyImageBlocks):
        PostComposer(session).add_block(post.id, "image", {"image_id": "x"}, 5)


def test_add_sixteenth_block(session, post, add_blocks):
    add_blocks(post, *([BlockType.QUOTE, BlockType.TEXT] * 7 + [BlockType.QUOTE]))
    with pytest.raises(TooManyBlocks):
        PostComposer(session).add_block(post.id, "youtube", {"youtube_url": "u", "video_id": "v"}, 15)


def test_add_block_to_missing_post(session):
    with pytest.raises(PostNotFound):
        PostComposer(session).add_block(999, "quote", {"quote": "q"}, 0)


def test_payload_checked_before_structure(session, post, add_blocks):
    add_blocks(post, BlockType.TEXT)
    with pytest.raises(TextTooLong):
        PostComposer(session).add_block(post.id, "text", text(801), 1)


def test_sequential_adds_never_leave_adjacent_text(session, post):
    composer = PostComposer(session)
    order = ["text", "text", "quote", "text", "text", "image", "text", "youtube", "text", "text"]
    payloads = {
        "text": text(),
        "quote": {"quote": "q"},
        "image": {"image_id": "i"},
        "youtube": {"youtube_url": "u", "video_id": "v"},
    }
    for index, block_type in enumerate(order):
        try:
            composer.add_block(post.id, block_type, payloads[block_type], index)
        except ConsecutiveTextBlocks:
            pass

    types = [block.type for block in composer.list_blocks(post.id)]
    assert all(not (a == b == BlockType.TEXT) for a, b in zip(types, types[1:]))


def test_stale_snapshot_can_exceed_block_limit(session, post, add_blocks, monkeypatch):
    add_blocks(post, *([BlockType.QUOTE, BlockType.TEXT] * 7))
    first = PostComposer(session)
    second = PostComposer(session)
    # Both writers read 14 blocks before either one inserts
    snapshot = first._siblings(post.id)
    monkeypatch.setattr(second, "_siblings", lambda post_id: snapshot)

    first.add_block(post.id, "quote", {"quote": "a"}, 14)
    second.add_block(post.id, "quote", {"quote": "b"}, 15)

    assert len(first.list_blocks(post.id)) == 16
    with pytest.raises(TooManyBlocks):
        first.add_block(post.id, "quote", {"quote": "c"}, 16)


def test_update_order_index_is_not_rechecked(session, post, add_blocks):
    add_blocks(post, BlockType.TEXT, BlockType.QUOTE, BlockType.TEXT)
    composer = PostComposer(session)
    first_text = composer.list_blocks(post.id)[0]

    updated = composer.update_block(post.id, first_text.id, {"order_index": 99})

    assert updated.order_index == 99
    types = [block.type for block in composer.list_blocks(post.id)]
    assert types == [BlockType.QUOTE, BlockType.TEXT, BlockType.TEXT]


def test_update_text_word_ceiling(session, post, add_blocks):
    add_blocks(post, BlockType.TEXT)
    composer = PostComposer(session)
    block = composer.list_blocks(post.id)[0]

    with pytest.raises(TextTooLong):
        composer.update_block(post.id, block.id, {"content": text(801)})

    updated = composer.update_block(post.id, block.id, {"content": text(800)})
    assert updated.content["word_count"] == 800


def test_update_text_ceiling_applies_to_float_counts(session, post, add_blocks):
    add_blocks(post, BlockType.TEXT)
    composer = PostComposer(session)
    block = composer.list_blocks(post.id)[0]

    with pytest.raises(TextTooLong):
        composer.update_block(post.id, block.id, {"content": {"html": "<p>x</p>", "word_count": 5000.0}})
    with pytest.raises(TextBlockInvalid):
        composer.update_block(post.id, block.id, {"content": {"html": "<p>x</p>", "word_count": "many"}})

    session.refresh(block)
    assert block.content["word_count"] == 1


def test_update_with_empty_content_replaces_payload(session, post, add_blocks):
    add_blocks(post, BlockType.QUOTE)
    composer = PostComposer(session)
    block = composer.list_blocks(post.id)[0]

    updated = composer.update_block(post.id, block.id, {"content": {}})

    assert updated.content == {}


def test_update_unknown_block(session, post):
    with pytest.raises(BlockNotFound):
        PostComposer(session).update_block(post.id, 12345, {"order_index": 1})


def test_remove_block(session, post, add_blocks):
    add_blocks(post, BlockType.TEXT, BlockType.QUOTE)
    composer = PostComposer(session)
    block = composer.list_blocks(post.id)[1]

    composer.remove_block(post.id, block.id)

    assert len(composer.list_blocks(post.id)) == 1
    # Removing again is a no-op
    composer.remove_block(post.id, block.id)
    assert len(composer.list_blocks(post.id)) == 1


def test_remove_ignores_block_of_another_post(session, make_post, author, add_blocks):
    first = make_post(author)
    second = make_post(author)
    add_blocks(first, BlockType.QUOTE)
    composer = PostComposer(session)
    block = composer.list_blocks(first.id)[0]

    composer.remove_block(second.id, block.id)

    assert [b.id for b in composer.list_blocks(first.id)] == [block.id]


def test_render_resolves_images(session, post):
    image = Image(filename="a.png", storage_key="posts/a.png")
    session.add(image)
    session.commit()
    session.refresh(image)
    session.add(PostBlock(post_id=post.id, type=BlockType.IMAGE, content={"image_id": image.id}, order_index=0))
    session.add(PostBlock(post_id=post.id, type=BlockType.IMAGE, content={"image_id": "missing"}, order_index=1))
    session.commit()
    composer = PostComposer(session)

    rendered = composer.render_blocks(composer.list_blocks(post.id))

    assert rendered[0]["image"]["id"] == image.id
    assert rendered[0]["image"]["public_url"].endswith("/posts/a.png")
    assert "image" not in rendered[1]
