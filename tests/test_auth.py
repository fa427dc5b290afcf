from interview_api.routers.auth import create_access_token, hash_password, verify_password


def test_register_login_me(client):
	res = client.post("/auth/register", json={"name": "Kai", "email": "Kai@Example.com", "password": "s3cret-pass"})
	assert res.status_code == 200
	body = res.json()
	assert body["success"] is True
	assert body["user"]["email"] == "kai@example.com"
	assert body["token"]

	res = client.post("/auth/login", json={"email": "kai@example.com", "password": "s3cret-pass"})
	assert res.status_code == 200
	token = res.json()["token"]

	me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
	assert me.status_code == 200
	assert me.json()["user"]["name"] == "Kai"


def test_register_requires_all_fields(client):
	res = client.post("/auth/register", json={"name": "Kai", "email": "kai@example.com"})
	assert res.status_code == 400
	assert res.json() == {"success": False, "message": "All fields required"}


def test_duplicate_email_rejected(client):
	payload = {"name": "Kai", "email": "kai@example.com", "password": "pw-one"}
	assert client.post("/auth/register", json=payload).status_code == 200
	res = client.post("/auth/register", json=payload)
	assert res.status_code == 400
	assert res.json()["message"] == "Email already registered"


def test_bad_credentials(client):
	client.post("/auth/register", json={"name": "Kai", "email": "kai@example.com", "password": "right"})
	assert client.post("/auth/login", json={"email": "kai@example.com", "password": "wrong"}).status_code == 400
	assert client.post("/auth/login", json={"email": "who@example.com", "password": "right"}).status_code == 400


def test_token_for_unknown_user_is_rejected(client):
	token = create_access_token({"sub": "ghost"})
	assert client.get("/auth/me", headers={"Authorization": f"Bearer {token}"}).status_code == 401
	assert client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"}).status_code == 401


def test_long_passwords_are_truncated_for_bcrypt():
	long_password = "x" * 100
	hashed = hash_password(long_password)
	assert verify_password(long_password, hashed)
	assert verify_password("x" * 72, hashed)
