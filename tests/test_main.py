def signup(client, username):
    response = client.post(
        "/api/auth/signup",
        json={"username": username, "email": f"{username}@test.com", "password": "password123"},
    )
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['token']}"}


def test_register_and_login(client):
    signup(client, "testuser")

    response = client.post("/api/auth/login", json={"username": "testuser", "password": "password123"})
    assert response.status_code == 200
    assert response.json()["token_type"] == "bearer"

    response = client.post("/api/auth/login", json={"username": "testuser", "password": "nope-nope"})
    assert response.status_code == 401


def test_duplicate_register_conflict(client):
    signup(client, "testuser")

    response = client.post(
        "/api/auth/signup",
        json={"username": "testuser", "email": "testuser@test.com", "password": "password123"},
    )
    assert response.status_code == 409
    assert response.json()["code"] == "USER_ALREADY_EXISTS"


def test_overlong_password_rejected(client):
    response = client.post(
        "/api/auth/signup",
        json={"username": "longpw", "email": "longpw@test.com", "password": "p" * 80},
    )
    assert response.status_code == 422

    response = client.post(
        "/api/auth/signup",
        json={"username": "longpw", "email": "longpw@test.com", "password": "\u00e9" * 40},
    )
    assert response.status_code == 400


def test_requires_token(client):
    assert client.get("/api/post").status_code == 401
    assert client.get("/api/post", headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_private_author_posts_follow_symmetry(client):
    a = signup(client, "alice")
    b = signup(client, "bob")
    b_id = client.get("/api/user/me", headers=b).json()["id"]

    assert client.post("/api/user/me", json={"public_account": False}, headers=b).status_code == 200
    assert client.post("/api/post", json={"content": "bob's post"}, headers=b).status_code == 201

    response = client.get(f"/api/post/by_user/{b_id}", headers=a)
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"

    client.post("/api/user/me", json={"public_account": True}, headers=b)
    response = client.get(f"/api/post/by_user/{b_id}", headers=a)
    assert response.status_code == 200
    assert [p["content"] for p in response.json()] == ["bob's post"]


def test_post_lifecycle(client):
    a = signup(client, "alice")
    b = signup(client, "bob")

    post = client.post("/api/post", json={"content": "hello world"}, headers=a).json()

    response = client.get(f"/api/post/{post['id']}", headers=b)
    assert response.status_code == 200
    body = response.json()
    assert body["author"]["username"] == "alice"
    assert body["qty_likes"] == 0

    assert client.delete(f"/api/post/{post['id']}", headers=b).status_code == 403
    assert client.delete(f"/api/post/{post['id']}", headers=a).status_code == 204
    assert client.get(f"/api/post/{post['id']}", headers=a).status_code == 404


def test_post_validation(client):
    a = signup(client, "alice")

    assert client.post("/api/post", json={"content": "x" * 241}, headers=a).status_code == 422
    assert client.get("/api/post?before=1&after=2", headers=a).status_code == 400
    assert client.get("/api/post?limit=0", headers=a).status_code == 400


def test_comments_and_reactions(client):
    a = signup(client, "alice")
    b = signup(client, "bob")
    post = client.post("/api/post", json={"content": "discuss"}, headers=a).json()

    response = client.post(f"/api/comment/{post['id']}/comment", json={"content": "nice"}, headers=b)
    assert response.status_code == 201
    comment = response.json()
    assert comment["is_comment"] is True

    thread = client.get(f"/api/comment/{post['id']}", headers=a).json()
    assert [c["id"] for c in thread] == [comment["id"]]

    assert client.post(f"/api/reaction/{post['id']}", json={"type": "LIKE"}, headers=b).status_code == 201
    response = client.post(f"/api/reaction/{post['id']}", json={"type": "LIKE"}, headers=b)
    assert response.status_code == 409
    assert response.json()["code"] == "POST_ALREADY_LIKE"

    likes = client.get(f"/api/reaction/likes/{post['id']}", headers=a).json()
    assert len(likes) == 1

    assert client.delete(f"/api/reaction/{post['id']}?type=LIKE", headers=b).status_code == 200
    assert client.delete(f"/api/reaction/{post['id']}?type=LIKE", headers=b).status_code == 409

    detail = client.get(f"/api/post/{post['id']}", headers=a).json()
    assert detail["qty_comments"] == 1
    assert detail["qty_likes"] == 0


def test_follow_endpoints(client):
    a = signup(client, "alice")
    b = signup(client, "bob")
    a_id = client.get("/api/user/me", headers=a).json()["id"]
    b_id = client.get("/api/user/me", headers=b).json()["id"]

    response = client.post(f"/api/follower/follow/{a_id}", headers=a)
    assert response.status_code == 409
    assert response.json()["code"] == "CANNOT_FOLLOW_YOURSELF"

    assert client.post(f"/api/follower/follow/{b_id}", headers=a).status_code == 200
    assert client.post(f"/api/follower/follow/{b_id}", headers=a).status_code == 409
    assert [f["follower_id"] for f in client.get(f"/api/follower/{b_id}/followers", headers=a).json()] == [a_id]

    assert client.post(f"/api/follower/unfollow/{b_id}", headers=a).status_code == 200
    assert client.post(f"/api/follower/unfollow/{b_id}", headers=a).status_code == 409


def test_direct_messages(client):
    a = signup(client, "alice")
    b = signup(client, "bob")
    a_id = client.get("/api/user/me", headers=a).json()["id"]
    b_id = client.get("/api/user/me", headers=b).json()["id"]

    assert client.post(f"/api/message/{b_id}", json={"message": "hi"}, headers=a).status_code == 403

    client.post(f"/api/follower/follow/{b_id}", headers=a)
    client.post(f"/api/follower/follow/{a_id}", headers=b)
    assert client.post(f"/api/message/{b_id}", json={"message": "hi"}, headers=a).status_code == 201

    history = client.get(f"/api/message/{a_id}", headers=b).json()
    assert [m["content"] for m in history] == ["hi"]
