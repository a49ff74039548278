from app.models.post import PostStatus
from app.models.project import Project, ProjectStatus
from app.models.user import UserRole
from app.services.ownership import ownership_cache, ownership_key

ADMIN = "/api/v1/admin"


def test_admin_required(client, author, auth_headers):
    response = client.get(f"{ADMIN}/stats", headers=auth_headers(author))
    assert response.status_code == 403
    assert response.json()["error"] == "Admin access required"
    assert client.get(f"{ADMIN}/stats").status_code == 401


def test_stats(client, session, admin, author, make_post, auth_headers):
    make_post(author, status=PostStatus.PUBLISHED, view_count=10, upvote_count=2)
    make_post(author, status=PostStatus.PUBLISHED, view_count=5)
    make_post(author)
    session.add(Project(title="A", description="a", created_by=author.id))
    session.add(Project(title="B", description="b", created_by=author.id, status=ProjectStatus.ARCHIVED))
    session.commit()

    stats = client.get(f"{ADMIN}/stats", headers=auth_headers(admin)).json()["stats"]

    assert stats == {
        "total_members": 2,
        "total_admins": 1,
        "total_projects": 2,
        "active_projects": 1,
        "published_posts": 2,
        "draft_posts": 1,
        "total_views": 15,
        "total_upvotes": 2
    }


def test_list_users_includes_inactive(client, admin, make_user, auth_headers):
    make_user("gone", is_active=False)
    data = client.get(f"{ADMIN}/users", headers=auth_headers(admin), params={"search": "gone"}).json()
    assert [u["username"] for u in data["users"]] == ["gone"]
    assert data["users"][0]["is_active"] is False


def test_role_change_takes_effect_immediately(client, post, admin, stranger, auth_headers):
    edit = {"title": "Edited"}
    assert client.put(f"/api/v1/posts/{post.id}", headers=auth_headers(stranger), json=edit).status_code == 403
    assert ownership_cache.get(ownership_key(post.id, stranger.id)) is not None

    response = client.put(f"{ADMIN}/users/{stranger.id}/role", headers=auth_headers(admin), json={"role": "admin"})
    assert response.json()["user"]["role"] == "admin"

    assert client.put(f"/api/v1/posts/{post.id}", headers=auth_headers(stranger), json=edit).status_code == 200


def test_invalid_role_rejected(client, admin, stranger, auth_headers):
    response = client.put(f"{ADMIN}/users/{stranger.id}/role", headers=auth_headers(admin), json={"role": "owner"})
    assert response.status_code == 422


def test_deactivate_user(client, admin, stranger, auth_headers):
    assert client.delete(f"{ADMIN}/users/{stranger.id}", headers=auth_headers(admin)).status_code == 200
    assert client.get("/api/v1/users/me", headers=auth_headers(stranger)).status_code == 401
    assert client.delete(f"{ADMIN}/users/{admin.id}", headers=auth_headers(admin)).status_code == 403
    assert client.delete(f"{ADMIN}/users/999", headers=auth_headers(admin)).json()["code"] == "UserNotFound"


def test_admin_posts_include_drafts(client, admin, author, make_post, auth_headers):
    make_post(author, status=PostStatus.PUBLISHED)
    make_post(author)

    data = client.get(f"{ADMIN}/posts", headers=auth_headers(admin)).json()
    assert data["total"] == 2
    drafts = client.get(f"{ADMIN}/posts", headers=auth_headers(admin), params={"status": "draft"}).json()
    assert drafts["total"] == 1


def test_role_filter(client, admin, author, auth_headers):
    data = client.get(f"{ADMIN}/users", headers=auth_headers(admin), params={"role": UserRole.ADMIN.value}).json()
    assert [u["username"] for u in data["users"]] == ["admin"]
