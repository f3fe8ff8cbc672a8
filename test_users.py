def test_list_users_hides_passwords(admin_client):
    res = admin_client.get("/api/users")
    assert res.status_code == 200
    users = res.json()
    assert [u["username"] for u in users] == ["admin", "employee"]
    for user in users:
        assert "password" not in user
        assert "hashedPassword" not in user
        assert "hashed_password" not in user
    assert users[0]["role"] == "admin"
    assert users[1]["email"] == "employee@company.com"


def test_user_routes_are_admin_only(client, employee_client):
    assert client.get("/api/users").status_code == 401
    assert employee_client.get("/api/users").status_code == 403
    assert employee_client.post("/api/users", json={"username": "x", "password": "y"}).status_code == 403
    assert employee_client.delete("/api/users/1").status_code == 403


def test_create_user_and_login(admin_client, login_as, storage):
    res = admin_client.post("/api/users", json={"username": "erik", "password": "erik-pw", "email": "erik@company.com"})
    assert res.status_code == 200
    user = res.json()
    assert user["role"] == "employee"
    assert "password" not in user
    # gespeichert wird nur der Hash
    assert storage.get_user(user["id"]).hashed_password != "erik-pw"

    erik = login_as("erik", "erik-pw")
    assert erik.get("/api/auth/me").json()["user"]["role"] == "employee"


def test_create_admin_user(admin_client, login_as):
    admin_client.post("/api/users", json={"username": "boss", "password": "boss-pw", "role": "admin"})
    boss = login_as("boss", "boss-pw")
    assert boss.get("/api/users").status_code == 200


def test_create_user_validation(admin_client):
    assert admin_client.post("/api/users", json={"username": "admin", "password": "again"}).status_code == 400
    assert admin_client.post("/api/users", json={"username": "x"}).status_code == 400
    assert admin_client.post("/api/users", json={"username": "x", "password": "y", "role": "owner"}).status_code == 400


def test_update_user(admin_client, make_client):
    res = admin_client.put("/api/users/2", json={"email": "new@company.com", "password": "new-pw"})
    assert res.status_code == 200
    assert res.json()["email"] == "new@company.com"
    assert res.json()["username"] == "employee"

    c = make_client()
    assert c.post("/api/auth/login", json={"username": "employee", "password": "password123"}).status_code == 401
    assert c.post("/api/auth/login", json={"username": "employee", "password": "new-pw"}).status_code == 200


def test_update_user_username_clash(admin_client):
    res = admin_client.put("/api/users/2", json={"username": "admin"})
    assert res.status_code == 400
    # eigener Name ist kein Konflikt
    assert admin_client.put("/api/users/2", json={"username": "employee"}).status_code == 200


def test_update_and_delete_unknown_user(admin_client):
    assert admin_client.put("/api/users/999", json={"email": "x@y.z"}).status_code == 404
    assert admin_client.delete("/api/users/999").status_code == 404


def test_delete_user_keeps_their_records(admin_client, employee_client):
    employee_client.post("/api/tasks/3/notes", json={"notes": "Lobby done"})
    employee_client.post("/api/messages/6/acknowledge")
    employee_client.post("/api/employee-notes", json={"content": "Bye"})

    assert admin_client.delete("/api/users/2").status_code == 200
    assert [u["id"] for u in admin_client.get("/api/users").json()] == [1]

    assert admin_client.get("/api/tasks/3/notes").json()[0]["userId"] == 2
    assert admin_client.get("/api/messages/6/acknowledgements").json()[0]["userId"] == 2
    assert admin_client.get("/api/employee-notes").json()[0]["userId"] == 2


def test_update_user_rejects_null(admin_client, make_client):
    for body in ({"role": None}, {"username": None}, {"password": None}):
        assert admin_client.put("/api/users/2", json=body).status_code == 400

    res = admin_client.get("/api/users")
    assert res.status_code == 200
    assert res.json()[1]["role"] == "employee"

    c = make_client()
    assert c.post("/api/auth/login", json={"username": "employee", "password": "password123"}).status_code == 200
    assert c.get("/api/auth/me").status_code == 200
