from app.models.post import BlockType, PostStatus


def blocks_url(post_id: int) -> str:
    return f"/api/v1/posts/{post_id}/blocks"


def test_list_blocks_is_public(client, post, add_blocks):
    add_blocks(post, BlockType.QUOTE, BlockType.TEXT)

    response = client.get(blocks_url(post.id))

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert [b["type"] for b in data["blocks"]] == ["quote", "text"]


def test_author_adds_block(client, post, author, auth_headers):
    response = client.post(blocks_url(post.id), headers=auth_headers(author), json={
        "type": "text",
        "content": {"html": "<p>Hello</p>", "word_count": 1},
        "order_index": 0
    })

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Block created successfully"
    assert data["block"]["type"] == "text"
    assert data["block"]["post_id"] == post.id


def test_admin_adds_block(client, post, admin, auth_headers):
    response = client.post(blocks_url(post.id), headers=auth_headers(admin), json={
        "type": "quote", "content": {"quote": "q"}, "order_index": 0
    })
    assert response.status_code == 200


def test_add_requires_token(client, post):
    response = client.post(blocks_url(post.id), json={"type": "quote", "content": {"quote": "q"}})
    assert response.status_code == 401
    assert response.json()["code"] == "Unauthorized"


def test_add_rejects_other_users(client, post, stranger, auth_headers):
    response = client.post(blocks_url(post.id), headers=auth_headers(stranger), json={
        "type": "quote", "content": {"quote": "q"}
    })
    assert response.status_code == 403
    assert response.json() == {
        "success": False,
        "error": "You do not have permission to modify this post",
        "code": "Forbidden"
    }


def test_add_to_missing_post(client, author, auth_headers):
    response = client.post(blocks_url(999), headers=auth_headers(author), json={
        "type": "quote", "content": {"quote": "q"}
    })
    assert response.status_code == 404
    assert response.json()["code"] == "PostNotFound"


def test_validation_errors_carry_codes(client, post, author, auth_headers, add_blocks):
    add_blocks(post, BlockType.TEXT)
    headers = auth_headers(author)
    cases = [
        ({"type": "gallery", "content": {}}, "InvalidBlockType"),
        ({"type": "text", "content": {"html": "<p>x</p>"}}, "TextBlockInvalid"),
        ({"type": "text", "content": {"html": "<p>x</p>", "word_count": 801}}, "TextTooLong"),
        ({"type": "text", "content": {"html": "<p>x</p>", "word_count": 5}}, "ConsecutiveTextBlocks"),
        ({"type": "image", "content": {}}, "ImageBlockInvalid"),
    ]
    for body, code in cases:
        response = client.post(blocks_url(post.id), headers=headers, json=body)
        assert response.status_code == 400, body
        assert response.json()["code"] == code

    assert len(client.get(blocks_url(post.id)).json()["blocks"]) == 1


def test_update_block(client, post, author, auth_headers, add_blocks):
    add_blocks(post, BlockType.TEXT)
    block_id = client.get(blocks_url(post.id)).json()["blocks"][0]["id"]
    headers = auth_headers(author)

    response = client.put(f"{blocks_url(post.id)}/{block_id}", headers=headers, json={"order_index": 99})
    assert response.status_code == 200
    assert response.json()["block"]["order_index"] == 99
    assert response.json()["block"]["content"]["word_count"] == 1

    response = client.put(f"{blocks_url(post.id)}/{block_id}", headers=headers, json={
        "content": {"html": "<p>long</p>", "word_count": 900}
    })
    assert response.status_code == 400
    assert response.json()["code"] == "TextTooLong"


def test_delete_through_another_post_leaves_block(client, make_post, author, auth_headers, add_blocks):
    first = make_post(author)
    second = make_post(author)
    add_blocks(first, BlockType.QUOTE)
    block_id = client.get(blocks_url(first.id)).json()["blocks"][0]["id"]

    response = client.delete(f"{blocks_url(second.id)}/{block_id}", headers=auth_headers(author))

    assert response.status_code == 200
    assert len(client.get(blocks_url(first.id)).json()["blocks"]) == 1


def test_update_block_of_another_post_is_not_found(client, make_post, author, auth_headers, add_blocks):
    first = make_post(author)
    second = make_post(author)
    add_blocks(first, BlockType.QUOTE)
    block_id = client.get(blocks_url(first.id)).json()["blocks"][0]["id"]

    response = client.put(f"{blocks_url(second.id)}/{block_id}", headers=auth_headers(author), json={"order_index": 3})

    assert response.status_code == 404
    assert response.json()["code"] == "BlockNotFound"


def test_update_rejects_fractional_word_count_over_limit(client, post, author, auth_headers, add_blocks):
    add_blocks(post, BlockType.TEXT)
    block_id = client.get(blocks_url(post.id)).json()["blocks"][0]["id"]

    response = client.put(f"{blocks_url(post.id)}/{block_id}", headers=auth_headers(author), json={
        "content": {"html": "<p>long</p>", "word_count": 1200.5}
    })

    assert response.status_code == 400
    assert response.json()["code"] == "TextTooLong"
    assert client.get(blocks_url(post.id)).json()["blocks"][0]["content"]["word_count"] == 1


def test_update_with_empty_content(client, post, author, auth_headers, add_blocks):
    add_blocks(post, BlockType.QUOTE)
    block_id = client.get(blocks_url(post.id)).json()["blocks"][0]["id"]

    response = client.put(f"{blocks_url(post.id)}/{block_id}", headers=auth_headers(author), json={"content": {}})

    assert response.status_code == 200
    assert response.json()["block"]["content"] == {}


def test_delete_block(client, post, author, auth_headers, add_blocks):
    add_blocks(post, BlockType.TEXT, BlockType.QUOTE)
    block_id = client.get(blocks_url(post.id)).json()["blocks"][1]["id"]

    response = client.delete(f"{blocks_url(post.id)}/{block_id}", headers=auth_headers(author))

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Block deleted successfully"}
    assert len(client.get(blocks_url(post.id)).json()["blocks"]) == 1


def test_published_post_blocks_follow_same_rules(client, make_post, author, auth_headers, add_blocks):
    post = make_post(author, status=PostStatus.PUBLISHED)
    add_blocks(post, *([BlockType.IMAGE] * 5))

    response = client.post(blocks_url(post.id), headers=auth_headers(author), json={
        "type": "image", "content": {"image_id": "x"}, "order_index": 5
    })

    assert response.status_code == 400
    assert response.json()["code"] == "TooManyImageBlocks"
